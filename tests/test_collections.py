from mcp_finder.services.collections import get_server_entries, split_front_matter

ENTRY = """---
title: Widget Server
description: Serves widgets over MCP
repoUrl: https://github.com/acme/widget
verifications:
  - official
lastUpdated: 2025-01-15
ogImage: /images/widget.png
---

# Widget Server

Body text.
"""


def test_split_front_matter():
    assert split_front_matter(ENTRY).startswith("title: Widget Server")
    assert split_front_matter("no fences here") == ""
    assert split_front_matter("---\nunterminated: true\n") == ""


def test_reads_entries_recursively(tmp_path):
    (tmp_path / "nested").mkdir()
    (tmp_path / "widget.md").write_text(ENTRY, encoding="utf-8")
    (tmp_path / "nested" / "gadget.md").write_text(
        ENTRY.replace("acme/widget", "acme/gadget").replace("Widget", "Gadget"), encoding="utf-8"
    )
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    entries = get_server_entries(str(tmp_path))

    assert sorted(e.title for e in entries) == ["Gadget Server", "Widget Server"]
    assert entries[0].verifications == ["official"]


def test_invalid_entries_are_skipped(tmp_path):
    (tmp_path / "good.md").write_text(ENTRY, encoding="utf-8")
    (tmp_path / "bad-url.md").write_text(ENTRY.replace("https://github.com/acme/widget", "not a url"), encoding="utf-8")
    (tmp_path / "bad-tag.md").write_text(ENTRY.replace("official", "trust-me"), encoding="utf-8")
    (tmp_path / "bad-yaml.md").write_text("---\ntitle: [unclosed\n---\n", encoding="utf-8")
    (tmp_path / "empty.md").write_text("", encoding="utf-8")

    entries = get_server_entries(str(tmp_path))

    assert [str(e.repo_url) for e in entries] == ["https://github.com/acme/widget"]


def test_missing_directory(tmp_path):
    assert get_server_entries(str(tmp_path / "absent")) == []
