from pathlib import Path

import pytest

from codedigest import cli


@pytest.fixture(autouse=True)
def _no_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("codedigest.settings.ENV_FILE", "")


def make_project(root: Path) -> None:
    (root / "README.md").write_text("# demo\n", encoding="utf-8")
    (root / "logo.png").write_bytes(b"\x89PNG\x00\x00")
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "dep.js").write_text("module.exports = 1;\n", encoding="utf-8")


@pytest.mark.end2end
def test_end_to_end_digest(tmp_path: Path) -> None:
    make_project(tmp_path)
    output = tmp_path / "digest.txt"

    exit_code = cli.main(["--path", str(tmp_path), "--output", str(output), "--ultra-quiet"])

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert text.startswith("Directory Structure\n")
    assert "File Contents\n=============\n" in text
    assert "File: README.md\n" in text
    assert "File: src/app.py\n" in text
    assert "print('hi')" in text
    assert "File: node_modules/dep.js" not in text
    assert "File: logo.png" not in text
    assert "node_modules/" in text  # still listed in the tree
    assert "Files added to digest:       2" in text


@pytest.mark.end2end
def test_end_to_end_second_run_skips_previous_digest(tmp_path: Path) -> None:
    make_project(tmp_path)
    output = tmp_path / "digest.txt"

    assert cli.main(["-p", str(tmp_path), "-o", str(output), "-uq"]) == 0
    assert cli.main(["-p", str(tmp_path), "-o", str(output), "-uq"]) == 0

    text = output.read_text(encoding="utf-8")
    assert "File: digest.txt" not in text
    assert "Files added to digest:       2" in text


@pytest.mark.end2end
def test_end_to_end_omit_excluded_and_nested_output(tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    make_project(project)
    output = tmp_path / "reports" / "nested" / "digest.txt"

    exit_code = cli.main(
        ["-p", str(project), "-o", str(output), "--omit-excluded", "-I", "*.py", "-uq"],
    )

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    tree = text.split("File Contents")[0]
    assert "node_modules" not in tree
    assert "README.md" not in tree
    assert "app.py" in tree
    assert "File: src/app.py" in text
    assert "Omit excluded from tree: Yes" in text


@pytest.mark.end2end
def test_end_to_end_missing_pattern_file_fails(tmp_path: Path) -> None:
    exit_code = cli.main(["-p", str(tmp_path), "-g", str(tmp_path / "nope.ignore"), "-uq"])

    assert exit_code == 1
