import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Set

from loguru import logger

from ..config import get_settings
from ..schemas import Invalid, validate_rejection_record

FIELDS = ["repoPath", "lastChecked"]


class DenylistStore:
    """Append-only CSV of repositories already checked and found not to be servers.

    Paths are written as given but compared case-insensitively, like GitHub does.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path if path is not None else get_settings().denylist_path)
        self.paths: Set[str] = set()

    def load(self) -> Set[str]:
        self.paths = set()
        if not self.path.exists():
            return set(self.paths)
        try:
            with self.path.open(newline="", encoding="utf-8") as fh:
                for line_no, row in enumerate(csv.DictReader(fh), start=2):
                    checked = validate_rejection_record(row)
                    if isinstance(checked, Invalid):
                        logger.warning(f"[denylist] {self.path}:{line_no} ignored: {checked}")
                        continue
                    self.paths.add(checked.value.repo_path.lower())
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            logger.error(f"[denylist] could not read {self.path}, starting empty: {exc}")
            self.paths = set()
        logger.info(f"[denylist] {len(self.paths)} repositories loaded from {self.path}")
        return set(self.paths)

    def has(self, repo_path: str) -> bool:
        return repo_path.lower() in self.paths

    def record(self, repo_path: str) -> bool:
        """Append ``repo_path`` with the current time. Returns False if the path is rejected."""
        now = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        checked = validate_rejection_record({"repoPath": repo_path, "lastChecked": now})
        if isinstance(checked, Invalid):
            logger.error(f"[denylist] refusing to record {repo_path!r}: {checked}")
            return False

        self.path.parent.mkdir(parents=True, exist_ok=True)
        new_file = not self.path.exists() or self.path.stat().st_size == 0
        with self.path.open("a", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=FIELDS)
            if new_file:
                writer.writeheader()
            writer.writerow({"repoPath": repo_path, "lastChecked": now})
        self.paths.add(repo_path.lower())
        return True
