from pathlib import Path
from typing import List

import yaml
from loguru import logger
from pydantic import ValidationError

from ..schemas import ServerEntry


def split_front_matter(text: str) -> str:
    """Return the YAML block between the leading ``---`` fences, or an empty string."""
    lines = text.splitlines()
    if not lines or lines[0].strip() != "---":
        return ""
    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            return "\n".join(lines[1:index])
    return ""


def get_server_entries(directory: str) -> List[ServerEntry]:
    """Read the already published servers from the site's markdown collection."""
    root = Path(directory)
    if not root.is_dir():
        logger.info(f"[collections] {root} does not exist, no published servers")
        return []

    entries: List[ServerEntry] = []
    for path in sorted(root.glob("**/*.md")):
        try:
            data = yaml.safe_load(split_front_matter(path.read_text(encoding="utf-8")))
            entries.append(ServerEntry.model_validate(data or {}))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            logger.warning(f"[collections] cannot read {path}: {exc}")
        except ValidationError as exc:
            logger.warning(f"[collections] {path} has invalid front matter: {exc.error_count()} errors")
    return entries
