import pytest

from wyog.errors import GitError
from wyog.ignore import IgnoreRule, Ignores, parse_rule, parse_rules, pattern_matches


@pytest.mark.parametrize("line", ["", "   ", "# comment", "#"])
def test_parse_rule_skips(line):
    assert parse_rule(line) is None


def test_parse_rule_kinds():
    assert parse_rule("!keep.log") == IgnoreRule("keep.log", False)
    assert parse_rule("\\#hash") == IgnoreRule("#hash", True)
    assert parse_rule("  *.o  ") == IgnoreRule("*.o", True)


def test_parse_rules_filters():
    rules = parse_rules(["# header", "*.o", "", "!main.o"])
    assert rules == [IgnoreRule("*.o", True), IgnoreRule("main.o", False)]


@pytest.mark.parametrize(
    "pattern, path, expected",
    [
        ("*.o", "a/b/c.o", True),
        ("*.o", "c.txt", False),
        ("/build", "build/x", True),
        ("/build", "src/build", False),
        ("build", "src/build/x.o", True),
        ("build/", "build/out.o", True),
        ("build/", "build", False),
        ("doc/*.txt", "doc/a.txt", True),
        ("doc/*.txt", "doc/sub/a.txt", False),
        ("**/foo", "a/b/foo", True),
        ("**/foo", "foo", True),
        ("a/**/b", "a/x/y/b", True),
        ("a/**/b", "a/b", True),
        ("logs/**", "logs/a/b", True),
        ("?.c", "x.c", True),
        ("?.c", "xy.c", False),
        ("[ab].c", "a.c", True),
        ("[ab].c", "c.c", False),
        ("[!ab].c", "c.c", True),
        ("", "anything", False),
    ],
)
def test_pattern_matches(pattern, path, expected):
    assert pattern_matches(pattern, path) is expected


def test_absolute_rules_last_match_wins():
    ignores = Ignores(absolute=[IgnoreRule("*.log", True), IgnoreRule("keep.log", False)])
    assert ignores.check_ignore("a.log") is True
    assert ignores.check_ignore("keep.log") is False
    assert ignores.check_ignore("x.txt") is False


def test_scoped_rules_take_precedence():
    ignores = Ignores(
        absolute=[IgnoreRule("*.txt", False)],
        scoped={"sub": [IgnoreRule("*.txt", True)]},
    )
    assert ignores.check_ignore("sub/a.txt") is True
    assert ignores.check_ignore("a.txt") is False


def test_root_scope_applies_to_nested_paths():
    ignores = Ignores(scoped={".": [IgnoreRule("*.tmp", True)]})
    assert ignores.check_ignore("x/y.tmp") is True
    assert ignores.check_ignore("x/y.txt") is False


def test_nearest_scope_wins():
    ignores = Ignores(
        scoped={
            ".": [IgnoreRule("*.tmp", True)],
            "x": [IgnoreRule("*.tmp", False)],
        }
    )
    assert ignores.check_ignore("x/y.tmp") is False
    assert ignores.check_ignore("z/y.tmp") is True


def test_absolute_path_raises():
    with pytest.raises(GitError):
        Ignores().check_ignore("/etc/passwd")