import json

from pydantic import ValidationError

from ..schemas import (
    Classification,
    Invalid,
    ManifestSummary,
    Valid,
    ValidationResult,
    format_errors,
)

SDK_PACKAGE = "@modelcontextprotocol/sdk"


def parse_manifest(text: str) -> ValidationResult[ManifestSummary]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return Invalid([f"not valid JSON: {exc}"])
    if not isinstance(data, dict):
        return Invalid([f"expected a JSON object, got {type(data).__name__}"])
    try:
        return Valid(ManifestSummary.model_validate(data))
    except ValidationError as exc:
        return Invalid(format_errors(exc))


def classify(manifest: ManifestSummary) -> Classification:
    """A package is a server candidate when it ships a ``bin`` and depends on the MCP SDK."""
    has_bin = bool(manifest.bin)
    has_sdk = SDK_PACKAGE in (manifest.dependencies or {}) or SDK_PACKAGE in (
        manifest.dev_dependencies or {}
    )
    return Classification(is_server=has_bin and has_sdk, has_bin=has_bin, has_sdk_dependency=has_sdk)
