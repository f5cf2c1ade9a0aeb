from datetime import datetime

import pytest

from mcp_finder.schemas import Invalid, Valid, validate_rejection_record
from mcp_finder.services.denylist import DenylistStore


class TestRejectionRecord:
    def test_valid(self):
        checked = validate_rejection_record({"repoPath": "acme/widget", "lastChecked": "2025-03-01T12:00:00Z"})
        assert isinstance(checked, Valid)
        assert checked.value.repo_path == "acme/widget"
        assert isinstance(checked.value.last_checked, datetime)

    @pytest.mark.parametrize("path", ["acmewidget", "/widget", "acme/", "", "a/b/c"])
    def test_bad_paths(self, path):
        checked = validate_rejection_record({"repoPath": path, "lastChecked": "2025-03-01T12:00:00Z"})
        assert isinstance(checked, Invalid)

    def test_bad_timestamp(self):
        checked = validate_rejection_record({"repoPath": "a/b", "lastChecked": "yesterday"})
        assert isinstance(checked, Invalid)


class TestDenylistStore:
    def test_missing_file_loads_empty(self, tmp_path):
        store = DenylistStore(str(tmp_path / "nope.csv"))
        assert store.load() == set()
        assert not store.has("acme/widget")

    def test_round_trip(self, tmp_path):
        path = tmp_path / "data" / "non-servers.csv"
        assert DenylistStore(str(path)).record("acme/widget")

        reloaded = DenylistStore(str(path))
        assert reloaded.load() == {"acme/widget"}
        assert reloaded.has("acme/widget")

    def test_creates_directory_and_header_once(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "non-servers.csv"
        store = DenylistStore(str(path))
        store.record("a/one")
        store.record("b/two")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "repoPath,lastChecked"
        assert len(lines) == 3
        assert lines[1].startswith("a/one,")
        assert lines[2].startswith("b/two,")
        assert lines[1].endswith("Z")

    def test_record_updates_membership(self, tmp_path):
        store = DenylistStore(str(tmp_path / "d.csv"))
        store.load()
        store.record("acme/widget")
        assert store.has("acme/widget")

    def test_duplicate_rows_are_idempotent(self, tmp_path):
        path = tmp_path / "d.csv"
        store = DenylistStore(str(path))
        store.record("acme/widget")
        store.record("acme/widget")
        assert DenylistStore(str(path)).load() == {"acme/widget"}

    def test_malformed_path_never_written(self, tmp_path):
        path = tmp_path / "d.csv"
        store = DenylistStore(str(path))
        assert store.record("no-separator") is False
        assert not path.exists()
        assert not store.has("no-separator")

    def test_invalid_rows_skipped_on_load(self, tmp_path):
        path = tmp_path / "d.csv"
        path.write_text(
            "repoPath,lastChecked\n"
            "acme/widget,2025-01-01T00:00:00Z\n"
            "broken,2025-01-01T00:00:00Z\n"
            "other/thing,not-a-date\n"
            "good/one,2025-02-02T10:00:00Z\n",
            encoding="utf-8",
        )
        assert DenylistStore(str(path)).load() == {"acme/widget", "good/one"}

    def test_unreadable_store_is_empty(self, tmp_path):
        path = tmp_path / "d.csv"
        path.write_bytes(b"repoPath,lastChecked\n\xff\xfe\xfa,bad\n")
        assert DenylistStore(str(path)).load() == set()

    def test_membership_ignores_case(self, tmp_path):
        path = tmp_path / "d.csv"
        DenylistStore(str(path)).record("Acme/Widget")

        reloaded = DenylistStore(str(path))
        assert reloaded.load() == {"acme/widget"}
        assert reloaded.has("acme/widget")
        assert reloaded.has("ACME/WIDGET")
        assert path.read_text(encoding="utf-8").splitlines()[1].startswith("Acme/Widget,")
