import pytest
from pytest_mock import MockerFixture

from codedigest.patterns import SelectionRule, compile_pattern, is_excluded, matches, normalize_rel


@pytest.mark.unit
def test_normalize_rel_uses_forward_slashes() -> None:
    assert normalize_rel(".\\src\\app.py") == "src/app.py"
    assert normalize_rel("./a/b/") == "a/b"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("src/app.py", "*.py", True),
        ("app.py", "*.py", True),
        ("src/app.pyc", "*.py", False),
        ("a/b/c.txt", "a/**/c.txt", True),
        ("a/c.txt", "a/**/c.txt", True),
        ("b/c.txt", "a/**/c.txt", False),
        ("src/deep/mod.rs.bk", "**/*.rs.bk", True),
        ("src/app.py", "src/*", True),
        ("src/pkg/app.py", "src/*", False),
        ("a?.txt", "a?.txt", True),
        ("ab.txt", "a?.txt", False),
        ("digest.txt", "/digest.txt", True),
        ("sub/digest.txt", "/digest.txt", False),
    ],
)
def test_matches_globs(path: str, pattern: str, expected: bool) -> None:
    assert matches(path, pattern) is expected


@pytest.mark.unit
def test_matches_case_sensitivity_is_opt_in() -> None:
    assert matches("README.MD", "*.md") is False
    assert matches("README.MD", "*.md", case_insensitive=True) is True


@pytest.mark.unit
def test_hidden_segments_need_opt_in_or_a_hidden_pattern() -> None:
    assert matches(".github/ci.yml", "*.yml") is False
    assert matches(".github/ci.yml", "*.yml", match_hidden=True) is True
    assert matches(".env", ".env") is True
    assert matches(".github/ci.yml", ".github/*.yml") is True


@pytest.mark.unit
def test_directory_only_patterns_skip_files() -> None:
    assert matches("build", "build/", is_dir=True) is True
    assert matches("build", "build/") is False


@pytest.mark.unit
@pytest.mark.parametrize("pattern", ["", "   ", None, 42])
def test_invalid_patterns_never_match(pattern: object) -> None:
    assert matches("a.txt", pattern) is False  # type: ignore[arg-type]


@pytest.mark.unit
def test_compile_pattern_is_cached() -> None:
    assert compile_pattern("*.py") is compile_pattern("*.py")


@pytest.mark.unit
def test_negation_re_includes_a_file() -> None:
    ignore = ["*.log", "!keep.log"]

    assert is_excluded("keep.log", ignore) is False
    assert is_excluded("other.log", ignore) is True


@pytest.mark.unit
def test_last_matching_ignore_pattern_wins() -> None:
    ignore = ["*.txt", "!*.txt", "a.txt"]

    assert is_excluded("a.txt", ignore) is True
    assert is_excluded("b.txt", ignore) is False
    assert is_excluded("c.md", ignore) is False


@pytest.mark.unit
def test_include_gate_excludes_unmatched_files() -> None:
    assert is_excluded("README.md", [], ["*.js"]) is True
    assert is_excluded("src/app.js", [], ["*.js"]) is False


@pytest.mark.unit
def test_include_gate_runs_before_ignore_patterns() -> None:
    ignore = ["!README.md"]

    assert is_excluded("README.md", ignore, ["*.js"]) is True
    assert is_excluded("app.min.js", ["*.min.js"], ["*.js"]) is True


@pytest.mark.unit
def test_include_gate_does_not_apply_to_directories() -> None:
    assert is_excluded("src", [], ["*.py"], is_dir=True) is False


@pytest.mark.unit
def test_only_non_negated_matches_are_recorded() -> None:
    matched: set[str] = set()

    is_excluded("keep.log", ["*.log", "!keep.log"], matched=matched)
    is_excluded("notes.tmp", ["*.tmp"], matched=matched)

    assert matched == {"*.log", "*.tmp"}


@pytest.mark.unit
def test_selection_rule_is_case_insensitive_and_dot_aware() -> None:
    rule = SelectionRule(["*.PNG", ".git"])

    assert rule.is_excluded("img/Logo.png") is True
    assert rule.is_excluded(".git", is_dir=True) is True
    assert rule.is_excluded(".github/ci.yml") is False


@pytest.mark.unit
def test_selection_rule_skips_invalid_patterns() -> None:
    rule = SelectionRule(["", "!", "*.log"])

    assert rule.is_excluded("app.log") is True
    assert rule.is_excluded("app.py") is False


@pytest.mark.unit
def test_invalid_pattern_warns_on_every_call(mocker: MockerFixture) -> None:
    mock_logger = mocker.patch("codedigest.patterns.logger")

    matches("a.txt", "")
    matches("a.txt", "")
    SelectionRule(["!", "*.log"], ["/"])

    events = [c.args[0] for c in mock_logger.warning.call_args_list]
    assert events == ["invalid_pattern"] * 4
