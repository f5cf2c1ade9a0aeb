import asyncio
import sys
from typing import Optional

from loguru import logger

from .config import Settings, get_settings
from .datasources.base import RepositorySource
from .datasources.github_adapter import GitHubAdapter
from .services.collections import get_server_entries
from .services.denylist import DenylistStore
from .services.discovery import find_potential_servers


async def run(
    settings: Settings,
    source: Optional[RepositorySource] = None,
    denylist: Optional[DenylistStore] = None,
) -> int:
    """One discovery pass. Returns the process exit code."""
    owned: Optional[GitHubAdapter] = None
    try:
        if source is None:
            source = owned = GitHubAdapter(settings)
        if denylist is None:
            denylist = DenylistStore(settings.denylist_path)
        denylist.load()

        published = get_server_entries(settings.servers_dir)
        logger.info(f"[main] {len(published)} servers already published in {settings.servers_dir}")

        report = await find_potential_servers(
            source,
            denylist,
            topic=settings.search_topic,
            repo_limit=settings.repo_limit,
            manifest_path=settings.manifest_path,
            published=published,
        )
        report.print_console()
        return 0
    except Exception:
        logger.exception("[main] unhandled error during discovery")
        return 1
    finally:
        if owned is not None:
            await owned.aclose()


def main() -> int:
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())
    return asyncio.run(run(settings))


if __name__ == "__main__":
    sys.exit(main())
