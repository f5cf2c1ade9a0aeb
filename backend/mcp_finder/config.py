from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    github_token: Optional[str] = Field(default=None, alias="GITHUB_TOKEN")
    github_base_url: HttpUrl = Field(
        default="https://api.github.com", alias="GITHUB_BASE_URL"
    )
    github_proxy: Optional[str] = Field(default=None, alias="GITHUB_PROXY")
    ungh_base_url: HttpUrl = Field(default="https://ungh.cc", alias="UNGH_BASE_URL")
    # "contents" = GitHub contents API (base64), "ungh" = files-by-ref mirror (raw text)
    content_source: Literal["contents", "ungh"] = Field(
        default="contents", alias="CONTENT_SOURCE"
    )
    search_topic: str = Field(default="mcp", alias="SEARCH_TOPIC")
    search_language: Optional[str] = Field(default=None, alias="SEARCH_LANGUAGE")
    repo_limit: int = Field(default=200, alias="REPO_LIMIT")
    manifest_path: str = Field(default="package.json", alias="MANIFEST_PATH")
    cache_dir: str = Field(default="fetch-cache", alias="CACHE_DIR")
    cache_ttl_seconds: int = Field(default=1000, alias="CACHE_TTL_SECONDS")
    denylist_path: str = Field(default="data/non-servers.csv", alias="DENYLIST_PATH")
    servers_dir: str = Field(default="src/content/servers", alias="SERVERS_DIR")
    http_timeout: float = Field(default=20, alias="HTTP_TIMEOUT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # ignore unrelated env vars to avoid validation errors
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
