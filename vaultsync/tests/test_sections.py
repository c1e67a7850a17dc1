from __future__ import annotations

from pathlib import Path

import pytest
from lsprotocol import types as lsp
from pygls.workspace import Workspace

from vaultsync.lsp.buffers import WorkspaceBufferHost
from vaultsync.markdown.parser import heading_level, nest_headings
from vaultsync.markdown.sections import (
    SectionEditor,
    locate_section,
    replace_leading_block,
    replace_section,
)
from vaultsync.store.buffers import range_from_offsets
from vaultsync.store.vault import FileStore

PATH = "Journal/2024-01-15.md"

SECTION_CASES = [
    # (existing text, heading, new content)
    ("", "# Meetings", "# Meetings\n- a\n"),
    ("# Today\n\nText.\n", "# Meetings", "# Meetings\n- a\n"),
    ("# Today\n\nNo trailing newline", "# Meetings", "# Meetings\n- a\n"),
    ("# Meetings\n- old\n", "# Meetings", "# Meetings\n- new\n"),
    ("# Meetings\n- old\n# Tasks\n- keep\n", "# Meetings", "# Meetings\n- new\n"),
    ("# Meetings\n- old\n## Sub\nstill inside\n# Tasks\n", "# Meetings", "# Meetings\n- new\n"),
    ("## Meetings\nold\n### Deeper\nx\n## Other\ny\n", "## Meetings", "## Meetings\nnew\n"),
    ("# Intro\n## Meetings\nold\n# After\n", "## Meetings", "## Meetings\nnew"),
    ("# Meetings extra\n# Meetings\nold\n", "# Meetings", "# Meetings\nnew\n"),
    ("## Meetings\n# Meetings\nold\n", "# Meetings", "# Meetings\nnew\n"),
    ("# Emoji 🎉\n\n# Meetings\n- 😀 old\n# Tail 🚀\nend\n", "# Meetings", "# Meetings\n- 😀 new\n"),
    ("# Windows\r\n\r\n# Meetings\r\n- old\r\n# Next\r\n", "# Meetings", "# Meetings\n- new\n"),
    ("---\ntitle: x\n---\n# Meetings\nold\n", "# Meetings", "# Meetings\nnew\n"),
    ("# Meetings\n###\nnot a heading\n# \n", "# Meetings", "# Meetings\nreplaced\n"),
]


def _workspace(root: Path, path: str, text: str) -> tuple[Workspace, str]:
    workspace = Workspace(root.as_uri())
    uri = (root / path).as_uri()
    workspace.put_text_document(
        lsp.TextDocumentItem(uri=uri, language_id="markdown", version=1, text=text)
    )
    return workspace, uri


def _cold_result(root: Path, text: str, edit) -> str:
    store = FileStore(root / "cold")
    store.write(PATH, text)
    edit(SectionEditor(store))
    return store.read(PATH)


def _live_result(root: Path, text: str, edit) -> str:
    live_root = root / "live"
    store = FileStore(live_root)
    # The persisted copy is stale; only the buffer may be edited.
    store.write(PATH, "stale on disk\n")
    workspace, uri = _workspace(live_root, PATH, text)
    edit(SectionEditor(store, WorkspaceBufferHost(workspace, live_root)))
    assert store.read(PATH) == "stale on disk\n"
    return workspace.text_documents[uri].source


# -----------------------------------------------------------------------------
# Heading detection
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("line", "level"),
    [
        ("# Title", 1),
        ("###### Six", 6),
        ("####### Seven", None),
        ("###", None),
        ("## ", None),
        ("##Title", None),
        (" # Indented", None),
        ("## Title\n", 2),
    ],
)
def test_heading_level(line: str, level: int | None) -> None:
    assert heading_level(line) == level


def test_locate_requires_exact_level_and_text() -> None:
    text = "## Meetings\nx\n# Meetings\ny\n"
    assert locate_section(text, "# Meetings") == (14, len(text))
    assert locate_section(text, "# Other") is None
    with pytest.raises(ValueError):
        locate_section(text, "Meetings")


# -----------------------------------------------------------------------------
# Replace / append
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(("text", "heading", "content"), SECTION_CASES)
def test_bytes_outside_section_unchanged(text: str, heading: str, content: str) -> None:
    span = locate_section(text, heading)
    result = replace_section(text, heading, content)
    if span is None:
        assert result.startswith(text)
        assert result.endswith(content)
    else:
        start, end = span
        assert result.startswith(text[:start])
        assert result.endswith(text[end:])


def test_append_separates_with_blank_line() -> None:
    assert replace_section("# A\ntext\n", "# B", "# B\nx\n") == "# A\ntext\n\n# B\nx\n"
    assert replace_section("# A\ntext", "# B", "# B\nx\n") == "# A\ntext\n\n# B\nx\n"
    assert replace_section("", "# B", "# B\nx\n") == "# B\nx\n"


def test_replace_keeps_following_heading_separated() -> None:
    text = "# Meetings\n- old\n# Tasks\n- keep\n"
    assert replace_section(text, "# Meetings", "# Meetings\n- new\n") == (
        "# Meetings\n- new\n\n# Tasks\n- keep\n"
    )


def test_replace_is_stable_on_repeat() -> None:
    text = "# Meetings\n- old\n# Tasks\n- keep\n"
    once = replace_section(text, "# Meetings", "# Meetings\n- new\n")
    assert replace_section(once, "# Meetings", "# Meetings\n- new\n") == once


def test_leading_block_replaced_or_prepended() -> None:
    block = "---\nsource_id: x\nkind: note\n---\n"
    assert replace_leading_block("---\nsource_id: x\n---\nbody\n", block) == block + "body\n"
    assert replace_leading_block("body\n", block) == block + "\nbody\n"
    assert replace_leading_block("", block) == block


def test_editor_skips_unchanged_write_unless_forced(store: FileStore) -> None:
    store.write(PATH, "# Meetings\n- a\n")
    editor = SectionEditor(store)
    assert editor.replace_section(PATH, "# Meetings", "# Meetings\n- a\n") is False
    assert editor.replace_section(PATH, "# Meetings", "# Meetings\n- a\n", force_overwrite=True) is True
    assert store.read(PATH) == "# Meetings\n- a\n"


# -----------------------------------------------------------------------------
# Live buffer vs persisted file
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(("text", "heading", "content"), SECTION_CASES)
def test_live_and_cold_section_edits_match(tmp_path: Path, text: str, heading: str, content: str) -> None:
    def edit(editor: SectionEditor) -> None:
        editor.replace_section(PATH, heading, content)

    expected = replace_section(text, heading, content)
    assert _cold_result(tmp_path, text, edit) == expected
    assert _live_result(tmp_path, text, edit) == expected


@pytest.mark.parametrize(
    "text",
    ["", "body only\n", "---\nsource_id: a\n---\n\nbody 🎉\n", "---\nunterminated\n"],
)
def test_live_and_cold_leading_block_edits_match(tmp_path: Path, text: str) -> None:
    block = "---\nsource_id: a\nkind: note\n---\n"

    def edit(editor: SectionEditor) -> None:
        editor.replace_leading_block(PATH, block)

    assert _cold_result(tmp_path, text, edit) == _live_result(tmp_path, text, edit)


def test_live_edits_forwarded_to_callback(tmp_path: Path) -> None:
    workspace, uri = _workspace(tmp_path, PATH, "# Today\n")
    sent = []
    host = WorkspaceBufferHost(workspace, tmp_path, on_edit=lambda u, r, t: sent.append((u, r, t)))
    editor = SectionEditor(FileStore(tmp_path), host)

    assert editor.replace_section(PATH, "# Meetings", "# Meetings\n- a\n")
    assert len(sent) == 1
    assert sent[0][0] == uri
    assert sent[0][1].start == lsp.Position(line=1, character=0)
    # The open document waits for the client's didChange; reads see the edit.
    assert workspace.text_documents[uri].source == "# Today\n"
    assert host.read_live(uri) == "# Today\n\n# Meetings\n- a\n"


def test_range_counts_utf16_units() -> None:
    text = "a😀b\nline"
    r = range_from_offsets(text, 2, len(text))
    assert (r.start_line, r.start_character) == (0, 3)
    assert (r.end_line, r.end_character) == (1, 4)


def test_nest_headings() -> None:
    assert nest_headings("# A\ntext\n## B\n", 3) == "### A\ntext\n#### B\n"
    assert nest_headings("### A\n", 3) == "### A\n"
    assert nest_headings("# A\n###### F\n", 3) == "### A\n###### F\n"
