import base64
import binascii
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

T = TypeVar("T")


@dataclass
class Valid(Generic[T]):
    value: T


@dataclass
class Invalid:
    errors: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "; ".join(self.errors)


ValidationResult = Union[Valid[T], Invalid]


def format_errors(exc: ValidationError) -> List[str]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        out.append(f"{loc}: {err['msg']}")
    return out


# --- GitHub search API ---


class SearchPage(BaseModel):
    total_count: StrictInt
    incomplete_results: StrictBool
    # items are validated one by one so a single bad record does not sink the page
    items: List[Any]


class ItemOwner(BaseModel):
    login: StrictStr = Field(min_length=1)


class SearchItem(BaseModel):
    id: StrictInt
    name: StrictStr
    description: Optional[StrictStr]
    owner: ItemOwner
    html_url: StrictStr
    default_branch: StrictStr


class RepositorySummary(BaseModel):
    """The slice of a search item this tool cares about."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    owner: str
    description: Optional[str]
    html_url: str
    default_branch: str

    @property
    def repo_path(self) -> str:
        return f"{self.owner}/{self.name}"


def validate_search_page(raw: Any) -> ValidationResult[SearchPage]:
    try:
        return Valid(SearchPage.model_validate(raw))
    except ValidationError as exc:
        return Invalid(format_errors(exc))


def project_repository(raw: Any) -> ValidationResult[RepositorySummary]:
    try:
        item = SearchItem.model_validate(raw)
    except ValidationError as exc:
        return Invalid(format_errors(exc))
    return Valid(
        RepositorySummary(
            id=item.id,
            name=item.name,
            owner=item.owner.login,
            description=item.description,
            html_url=item.html_url,
            default_branch=item.default_branch,
        )
    )


# --- file content responses ---


class ContentFile(BaseModel):
    encoding: Literal["base64"]
    content: StrictStr = Field(min_length=1)


class UnghFileMeta(BaseModel):
    url: StrictStr


class UnghFileBody(BaseModel):
    contents: StrictStr


class UnghFile(BaseModel):
    meta: UnghFileMeta
    file: UnghFileBody


def validate_content_file(raw: Any) -> ValidationResult[str]:
    """Validate a contents-API payload and return the decoded UTF-8 text."""
    try:
        payload = ContentFile.model_validate(raw)
    except ValidationError as exc:
        return Invalid(format_errors(exc))
    # GitHub wraps the base64 payload at 60 columns
    compact = "".join(payload.content.split())
    try:
        decoded = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        return Invalid([f"content: not valid base64 ({exc})"])
    try:
        return Valid(decoded.decode("utf-8"))
    except UnicodeDecodeError as exc:
        return Invalid([f"content: not valid UTF-8 ({exc.reason})"])


def validate_ungh_file(raw: Any) -> ValidationResult[str]:
    try:
        payload = UnghFile.model_validate(raw)
    except ValidationError as exc:
        return Invalid(format_errors(exc))
    return Valid(payload.file.contents)


# --- package.json ---


class ManifestSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bin: Optional[Union[StrictStr, Dict[str, StrictStr]]] = None
    dependencies: Optional[Dict[str, StrictStr]] = None
    dev_dependencies: Optional[Dict[str, StrictStr]] = Field(
        default=None, alias="devDependencies"
    )


@dataclass(frozen=True)
class Classification:
    is_server: bool
    has_bin: bool
    has_sdk_dependency: bool


# --- denylist ---


class RejectionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_path: str = Field(alias="repoPath")
    last_checked: datetime = Field(alias="lastChecked")

    @field_validator("repo_path")
    @classmethod
    def _owner_and_name(cls, value: str) -> str:
        parts = value.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError("repoPath must be in the format owner/name")
        return value


def validate_rejection_record(raw: Any) -> ValidationResult[RejectionRecord]:
    try:
        return Valid(RejectionRecord.model_validate(raw))
    except ValidationError as exc:
        return Invalid(format_errors(exc))


# --- published site content ---

VerificationTag = Literal[
    "passes-mcp-shield",
    "has-auth",
    "official",
    "openid-connect",
    "oauth-2.0",
    "oauth-2.1",
]


class ServerEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    description: str
    repo_url: HttpUrl = Field(alias="repoUrl")
    verifications: List[VerificationTag] = []
    # YAML front matter turns bare dates into date objects
    last_updated: Union[datetime, date, str] = Field(alias="lastUpdated")
    og_image: str = Field(default="", alias="ogImage")

    @field_validator("og_image")
    @classmethod
    def _site_relative(cls, value: str) -> str:
        if value and not value.startswith("/"):
            raise ValueError("ogImage must be empty or a site-relative path")
        return value
