"""Shared fixtures: settings pointed at tmp_path and an adapter wired to httpx.MockTransport."""

import httpx
import pytest
from loguru import logger

from mcp_finder.config import Settings
from mcp_finder.datasources.github_adapter import GitHubAdapter
from mcp_finder.services.cache import FileSystemCache


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        GITHUB_TOKEN=None,
        CACHE_DIR=str(tmp_path / "fetch-cache"),
        CACHE_TTL_SECONDS=1000,
        DENYLIST_PATH=str(tmp_path / "data" / "non-servers.csv"),
        SERVERS_DIR=str(tmp_path / "servers"),
        SEARCH_TOPIC="mcp-server",
        REPO_LIMIT=3,
        SEARCH_LANGUAGE=None,
        CONTENT_SOURCE="contents",
    )


@pytest.fixture
def make_adapter(settings):
    """Build a GitHubAdapter whose requests are answered by ``handler``.

    Responses are cached under the settings' cache_dir unless ``cache`` is passed.
    """
    def _make(handler, cache=None, adapter_settings=None):
        use = adapter_settings or settings
        cache = cache or FileSystemCache(use.cache_dir, use.cache_ttl_seconds)
        adapter = GitHubAdapter(use, transport=httpx.MockTransport(handler), cache=cache)
        return adapter

    return _make


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
