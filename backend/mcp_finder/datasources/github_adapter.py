from datetime import datetime, timezone
from typing import List, Optional

import httpx
from loguru import logger

from ..config import Settings, get_settings
from ..schemas import (
    Invalid,
    RepositorySummary,
    project_repository,
    validate_content_file,
    validate_search_page,
    validate_ungh_file,
)
from ..services.cache import CachingTransport, FileSystemCache
from .base import RepositorySource

# the search API refuses anything larger
PAGE_SIZE = 100
# preview media type that enables topic qualifiers in search
SEARCH_ACCEPT = "application/vnd.github.mercy-preview+json"
CONTENTS_ACCEPT = "application/vnd.github.v3+json"


class GitHubAdapter(RepositorySource):
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[FileSystemCache] = None,
    ):
        self.settings = settings or get_settings()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "MCP-Server-Finder",
        }
        self.headers = headers
        # only sent to github_base_url, never to the ungh mirror
        self.auth_headers = {}
        if self.settings.github_token:
            self.auth_headers["Authorization"] = f"Bearer {self.settings.github_token}"

        if transport is None:
            # httpx takes a single proxy URL for every scheme
            transport = httpx.AsyncHTTPTransport(proxy=self.settings.github_proxy)
        if cache is None:
            cache = FileSystemCache(self.settings.cache_dir, self.settings.cache_ttl_seconds)
        self.client = httpx.AsyncClient(
            base_url=str(self.settings.github_base_url),
            headers=headers,
            transport=CachingTransport(cache, transport),
            timeout=self.settings.http_timeout,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "GitHubAdapter":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def search_by_topic(self, topic: str, limit: int) -> List[RepositorySummary]:
        """Collect up to ``limit`` repositories tagged with ``topic``, in the order GitHub ranks them.

        Paging stops early on an HTTP error, a malformed page or an empty page;
        whatever was gathered up to that point is returned. Network errors
        propagate to the caller.
        """
        if not isinstance(topic, str) or not topic.strip():
            raise ValueError("topic must be a non-empty string")
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")

        query = f"topic:{topic}"
        if self.settings.search_language:
            query += f" language:{self.settings.search_language}"

        results: List[RepositorySummary] = []
        page = 1
        while True:
            params = {"q": query, "per_page": PAGE_SIZE, "page": page}
            headers = {"Accept": SEARCH_ACCEPT, **self.auth_headers}
            resp = await self.client.get("/search/repositories", params=params, headers=headers)
            if not resp.is_success:
                logger.error(
                    f"[search] topic={topic} page={page} failed: HTTP {resp.status_code}\n{resp.text}"
                )
                break
            self._log_rate_limit(resp)

            try:
                raw = resp.json()
            except ValueError as exc:
                logger.error(f"[search] topic={topic} page={page} is not JSON: {exc}")
                break
            checked = validate_search_page(raw)
            if isinstance(checked, Invalid):
                logger.error(f"[search] topic={topic} page={page} has an unexpected shape: {checked}")
                break

            items = checked.value.items
            if not items:
                logger.info(f"[search] topic={topic} exhausted at page {page}")
                break

            for index, raw_item in enumerate(items):
                if len(results) >= limit:
                    break
                projected = project_repository(raw_item)
                if isinstance(projected, Invalid):
                    logger.warning(f"[search] skipping item {index} on page {page}: {projected}")
                    continue
                results.append(projected.value)

            logger.info(
                f"[search] page {page}: {len(items)} items, {len(results)}/{limit} collected "
                f"(total_count={checked.value.total_count})"
            )
            if len(results) >= limit:
                break
            page += 1
        return results

    async def fetch_file(self, repository: RepositorySummary, path: str) -> Optional[str]:
        """Return the text of ``path`` on the repository's default branch, or None.

        None covers every operational failure: missing file, other HTTP errors,
        network errors and payloads that fail validation.
        """
        if not path:
            raise ValueError("path must be a non-empty string")
        if not repository.owner or not repository.name:
            raise ValueError(f"repository needs an owner and a name, got {repository.repo_path!r}")

        owner, name, branch = repository.owner, repository.name, repository.default_branch
        if self.settings.content_source == "ungh":
            base = str(self.settings.ungh_base_url).rstrip("/")
            url = f"{base}/repos/{owner}/{name}/files/{branch}/{path}"
            params = None
            headers = {"Accept": "application/json"}
            validate = validate_ungh_file
        else:
            url = f"/repos/{owner}/{name}/contents/{path}"
            params = {"ref": branch} if branch else None
            headers = {"Accept": CONTENTS_ACCEPT, **self.auth_headers}
            validate = validate_content_file

        target = f"{path} in {repository.repo_path}"
        try:
            resp = await self.client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(f"[manifest] request error for {target}: {type(exc).__name__} {exc!r}")
            return None

        if resp.status_code == 404:
            logger.info(f"[manifest] {target} not found")
            return None
        if not resp.is_success:
            logger.error(f"[manifest] HTTP {resp.status_code} for {target}\n{resp.text}")
            return None

        try:
            raw = resp.json()
        except ValueError as exc:
            logger.error(f"[manifest] {target} response is not JSON: {exc}")
            return None
        checked = validate(raw)
        if isinstance(checked, Invalid):
            logger.error(f"[manifest] {target} response failed validation: {checked}")
            return None
        return checked.value

    @staticmethod
    def _log_rate_limit(resp: httpx.Response) -> None:
        remaining = resp.headers.get("X-RateLimit-Remaining", "?")
        limit = resp.headers.get("X-RateLimit-Limit", "?")
        reset = resp.headers.get("X-RateLimit-Reset")
        try:
            reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc).isoformat()
        except (TypeError, ValueError, OverflowError, OSError):
            reset_at = "?"
        logger.info(f"[rate-limit] remaining {remaining}/{limit}, resets at {reset_at}")
