from dataclasses import dataclass, field
from typing import Iterable, List, Set

from loguru import logger

from ..datasources.base import RepositorySource
from ..schemas import Invalid, RepositorySummary, ServerEntry
from .classifier import classify, parse_manifest
from .denylist import DenylistStore


@dataclass
class DiscoveryReport:
    checked: int = 0
    accepted: List[RepositorySummary] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    denylisted: List[str] = field(default_factory=list)
    already_published: Set[str] = field(default_factory=set)

    def print_console(self) -> None:
        print("\n--- Potential MCP Servers Found ---")
        for server in self.accepted:
            marker = " [listed]" if server.repo_path in self.already_published else ""
            print(f"- {server.repo_path} ({server.html_url}){marker}")
        print("------------------------------------")
        print(
            f"Checked {self.checked} repositories. Found {len(self.accepted)}. "
            f"Rejected {len(self.rejected)}, skipped {len(self.skipped)}, "
            f"denylisted {len(self.denylisted)}."
        )


def _published_paths(entries: Iterable[ServerEntry]) -> Set[str]:
    paths = set()
    for entry in entries:
        if entry.repo_url.host not in ("github.com", "www.github.com"):
            continue
        parts = (entry.repo_url.path or "").strip("/").split("/")
        if len(parts) >= 2:
            paths.add(f"{parts[0]}/{parts[1]}".lower())
    return paths


async def find_potential_servers(
    source: RepositorySource,
    denylist: DenylistStore,
    *,
    topic: str,
    repo_limit: int,
    manifest_path: str = "package.json",
    published: Iterable[ServerEntry] = (),
) -> DiscoveryReport:
    """Search ``topic`` and keep the repositories whose manifest looks like an MCP server.

    The denylist must already be loaded. Repositories on it are not fetched;
    repositories whose manifest does not qualify are appended to it. Missing
    or unparsable manifests are skipped without touching the denylist.
    """
    repos = await source.search_by_topic(topic, repo_limit)
    logger.info(f"[discovery] {len(repos)} candidates for topic={topic}")

    published_paths = _published_paths(published)
    report = DiscoveryReport()
    seen: Set[str] = set()

    for repo in repos:
        repo_path = repo.repo_path
        if repo_path.lower() in seen:
            logger.debug(f"[discovery] {repo_path} listed twice by search, ignoring")
            continue
        seen.add(repo_path.lower())
        report.checked += 1

        if denylist.has(repo_path):
            logger.info(f"[discovery] {repo_path} is denylisted")
            report.denylisted.append(repo_path)
            continue

        logger.info(f"[discovery] checking {repo_path}...")
        content = await source.fetch_file(repo, manifest_path)
        if content is None:
            logger.info(f"[discovery] {repo_path}: no {manifest_path}")
            report.skipped.append(repo_path)
            continue

        parsed = parse_manifest(content)
        if isinstance(parsed, Invalid):
            logger.warning(f"[discovery] {repo_path}: cannot parse {manifest_path}: {parsed}")
            report.skipped.append(repo_path)
            continue

        verdict = classify(parsed.value)
        if verdict.is_server:
            logger.info(f"[discovery] {repo_path}: found potential server")
            report.accepted.append(repo)
            if repo_path.lower() in published_paths:
                report.already_published.add(repo_path)
        else:
            logger.info(
                f"[discovery] {repo_path}: does not meet criteria "
                f"(bin: {verdict.has_bin}, sdk: {verdict.has_sdk_dependency})"
            )
            report.rejected.append(repo_path)
            denylist.record(repo_path)

    return report
