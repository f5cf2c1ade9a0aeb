import base64
import hashlib
import json
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx
from loguru import logger

from ..config import get_settings

# headers that change what the server returns for the same URL
KEY_HEADERS = ("accept", "authorization")
# the body is stored decoded, so framing headers from the origin no longer apply
DROP_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


class FileSystemCache:
    """JSON blobs on disk, one file per key, expired after ``ttl_seconds``."""

    def __init__(self, directory: Optional[str] = None, ttl_seconds: Optional[int] = None):
        settings = get_settings()
        self.directory = Path(directory if directory is not None else settings.cache_dir)
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds

    @staticmethod
    def key_for(method: str, url: str, headers: Mapping[str, str]) -> str:
        relevant = sorted(
            (name.lower(), value) for name, value in headers.items() if name.lower() in KEY_HEADERS
        )
        raw = json.dumps([method.upper(), url, relevant], separators=(",", ":"))
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
            stored_at = float(entry["stored_at"])
            value = entry["value"]
            if not isinstance(value, dict):
                raise TypeError(f"value is {type(value).__name__}, not an object")
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(f"[cache] unreadable entry {path.name}: {exc}")
            return None
        if time.time() - stored_at > self.ttl_seconds:
            path.unlink(missing_ok=True)
            return None
        return value

    def set(self, key: str, value: Dict[str, Any]) -> bool:
        entry = {"stored_at": time.time(), "value": value}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._path(key).write_text(json.dumps(entry), encoding="utf-8")
        except OSError as exc:
            logger.warning(f"[cache] could not write entry {key}: {exc}")
            return False
        return True


def _replay(cached: Dict[str, Any], request: httpx.Request) -> httpx.Response:
    status = cached["status"]
    if not isinstance(status, int) or isinstance(status, bool):
        raise TypeError(f"status is {status!r}")
    return httpx.Response(
        status_code=status,
        headers=[(str(name), str(value)) for name, value in cached["headers"]],
        content=base64.b64decode(cached["body"], validate=True),
        request=request,
    )


class CachingTransport(httpx.AsyncBaseTransport):
    """Serve GET requests from a ``FileSystemCache`` before going to the network.

    Every response is cached, whatever its status. Errors raised by the inner
    transport are not caught. Entries that cannot be replayed are refetched, and
    a failed cache write still returns the live response.
    """

    def __init__(self, cache: FileSystemCache, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cache = cache
        self.transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.method != "GET":
            return await self.transport.handle_async_request(request)

        key = self.cache.key_for(request.method, str(request.url), request.headers)
        cached = self.cache.get(key)
        if cached is not None:
            try:
                response = _replay(cached, request)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(f"[cache] malformed entry for {request.url}, refetching: {exc}")
            else:
                logger.debug(f"[cache] hit {request.url}")
                return response

        response = await self.transport.handle_async_request(request)
        body = await response.aread()
        headers = [
            (name, value) for name, value in response.headers.items() if name.lower() not in DROP_HEADERS
        ]
        self.cache.set(
            key,
            {
                "status": response.status_code,
                "headers": headers,
                "body": base64.b64encode(body).decode("ascii"),
            },
        )
        return httpx.Response(
            status_code=response.status_code,
            headers=headers,
            content=body,
            request=request,
        )

    async def aclose(self) -> None:
        await self.transport.aclose()
