from __future__ import annotations

from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from codedigest.config import DIGEST_SEPARATOR, TREE_TRUNCATED_MARKER, ErrorEntry, FileRecord, Statistics, WalkConfig
from codedigest.output_construction import (
    assemble_digest,
    build_document,
    build_summary,
    digest_directory,
    render_directory_tree,
)
from codedigest.patterns import SelectionRule


def make_tree(root: Path) -> None:
    (root / "a.txt").write_text("hello", encoding="utf-8")
    (root / "b.png").write_bytes(b"\x00" * 100)
    (root / "sub").mkdir()
    (root / "sub" / "c.js").write_text("x=1", encoding="utf-8")


@pytest.mark.unit
def test_render_directory_tree_draws_entries(tmp_path: Path) -> None:
    make_tree(tmp_path)

    lines = render_directory_tree(tmp_path).splitlines()

    assert len(lines) == 4
    assert {ln[4:] for ln in lines if not ln.startswith(("│", " "))} == {"a.txt", "b.png", "sub/"}
    assert all(ln.startswith(("├── ", "└── ")) for ln in lines if not ln.startswith(("│", " ")))
    nested = [ln for ln in lines if ln.endswith("c.js")]
    assert nested[0] in {"│   └── c.js", "    └── c.js"}
    assert lines[-1].startswith(("└── ", "    └── "))


@pytest.mark.unit
def test_render_directory_tree_prunes_to_selection(tmp_path: Path) -> None:
    make_tree(tmp_path)

    full = render_directory_tree(tmp_path, ["*.png"])
    pruned = render_directory_tree(tmp_path, ["*.png"], prune_to_selection=True)

    assert "b.png" in full
    assert "b.png" not in pruned
    assert "c.js" in pruned


@pytest.mark.unit
def test_render_directory_tree_prunes_with_include_gate(tmp_path: Path) -> None:
    make_tree(tmp_path)

    pruned = render_directory_tree(tmp_path, [], ["*.js"], prune_to_selection=True)

    assert "a.txt" not in pruned
    assert "sub/" in pruned
    assert "c.js" in pruned


@pytest.mark.unit
def test_render_directory_tree_respects_max_depth(tmp_path: Path) -> None:
    make_tree(tmp_path)

    tree = render_directory_tree(tmp_path, max_depth=0)

    assert "sub/" in tree
    assert "c.js" not in tree


@pytest.mark.unit
def test_render_directory_tree_truncates_large_output(tmp_path: Path) -> None:
    for i in range(50):
        (tmp_path / f"file_{i:02d}.txt").write_text("", encoding="utf-8")

    tree = render_directory_tree(tmp_path, max_chars=100)

    assert tree.endswith("\n" + TREE_TRUNCATED_MARKER)
    assert 0 < tree.count("file_") < 50


@pytest.mark.unit
def test_assemble_digest_layout() -> None:
    records = [
        FileRecord(rel="a.txt", content="hello", size=5),
        FileRecord(rel="sub/c.js", content="x=1", size=3),
    ]
    sep = DIGEST_SEPARATOR + "\n"

    digest = assemble_digest(records)

    assert digest == f"{sep}File: a.txt\n{sep}hello\n{sep}File: sub/c.js\n{sep}x=1\n"
    assert len(DIGEST_SEPARATOR) == 48


@pytest.mark.unit
def test_assemble_digest_empty() -> None:
    assert not assemble_digest([])


@pytest.mark.unit
def test_build_summary_reports_every_field() -> None:
    stats = Statistics(
        file_count=2,
        total_size=2048,
        excluded_files=1,
        matched_ignore_patterns=("*.png",),
        errors=(ErrorEntry(timestamp="2024-01-01T00:00:00+00:00", message="boom"),),
    )

    summary = build_summary(stats, ".", "digest.txt")

    assert "Files added to digest:       2" in summary
    assert "Total size:                  2 KB" in summary
    assert "Size limit reached:          No" in summary
    assert "\n  *.png" in summary
    assert "Include patterns:   None" in summary
    assert " Errors (1) " in summary
    assert "2024-01-01T00:00:00+00:00: boom" in summary
    assert "\033[" not in summary


@pytest.mark.unit
def test_build_summary_colors_on_request() -> None:
    summary = build_summary(Statistics(), ".", "digest.txt", color=True)

    assert "\033[" in summary
    assert "No errors occurred" in summary


@pytest.mark.unit
def test_build_document_sections() -> None:
    doc = build_document("└── a.txt\n", "DIGEST", "SUMMARY")

    assert doc.startswith("Directory Structure\n==================\n└── a.txt\n")
    assert "File Contents\n=============\nDIGEST" in doc
    assert doc.endswith("SUMMARY")


@pytest.mark.unit
def test_digest_directory_bundles_files_tree_and_stats(tmp_path: Path) -> None:
    make_tree(tmp_path)

    result = digest_directory(tmp_path, WalkConfig(omit_excluded=True))

    assert sorted(f.rel for f in result.files) == ["a.txt", "sub/c.js"]
    assert "b.png" not in result.tree
    assert result.stats.file_count == 2
    assert result.stats.omit_excluded is True


@pytest.mark.unit
def test_pruned_tree_drops_excluded_directory_with_re_included_file(tmp_path: Path) -> None:
    (tmp_path / "logs").mkdir()
    (tmp_path / "logs" / "keep.txt").write_text("kept?", encoding="utf-8")

    tree = render_directory_tree(tmp_path, ["logs", "!logs/keep.txt"], prune_to_selection=True)

    assert not tree


@pytest.mark.unit
def test_render_directory_tree_logs_failed_selection(tmp_path: Path, mocker: MockerFixture) -> None:
    make_tree(tmp_path)
    mocker.patch.object(SelectionRule, "is_excluded", side_effect=OSError("gone"))
    mock_logger = mocker.patch("codedigest.output_construction.logger")

    tree = render_directory_tree(tmp_path, ["*.png"], prune_to_selection=True)

    assert not tree
    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.args == ("tree_render_failed",)
