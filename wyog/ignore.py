"""Ignore rules and their evaluation against repository paths."""

from __future__ import annotations

import functools
import os
import posixpath
import re
from dataclasses import dataclass, field
from typing import Iterable

from wyog.errors import GitError


@dataclass(frozen=True)
class IgnoreRule:
    """A pattern and whether a match ignores (True) or re-includes (False)."""

    pattern: str
    exclude: bool


def parse_rule(raw: str) -> IgnoreRule | None:
    """Parse one ignore-file line; blank lines and comments give None."""
    raw = raw.strip()
    if not raw or raw.startswith("#"):
        return None
    if raw.startswith("!"):
        return IgnoreRule(raw[1:], False)
    if raw.startswith("\\"):
        return IgnoreRule(raw[1:], True)
    return IgnoreRule(raw, True)


def parse_rules(lines: Iterable[str]) -> list[IgnoreRule]:
    """Parse every line, dropping those that carry no rule."""
    return [rule for rule in map(parse_rule, lines) if rule is not None]


def _class_end(body: str, start: int) -> int:
    j = start + 1
    if j < len(body) and body[j] in "!^":
        j += 1
    if j < len(body) and body[j] == "]":
        j += 1
    return body.find("]", j)


def _class_regex(content: str) -> str:
    negate = content[:1] in ("!", "^")
    if negate:
        content = content[1:]
    content = content.replace("\\", "\\\\").replace("[", "\\[")
    return "[" + ("^" if negate else "") + content + "]"


@functools.lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str] | None:
    dir_only = pattern.endswith("/")
    body = pattern.rstrip("/")
    anchored = "/" in body
    body = body.lstrip("/")
    if not body:
        return None

    parts: list[str] = []
    i = 0
    n = len(body)
    while i < n:
        c = body[i]
        at_component_start = i == 0 or body[i - 1] == "/"
        if c == "*" and body.startswith("**", i) and at_component_start:
            after = i + 2
            if after == n:
                parts.append(".*")
                i = after
                continue
            if body[after] == "/":
                parts.append("(?:.*/)?")
                i = after + 1
                continue
        if c == "*":
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "[":
            close = _class_end(body, i)
            if close >= 0:
                parts.append(_class_regex(body[i + 1:close]))
                i = close + 1
                continue
            parts.append(re.escape(c))
        elif c == "\\" and i + 1 < n:
            parts.append(re.escape(body[i + 1]))
            i += 2
            continue
        else:
            parts.append(re.escape(c))
        i += 1

    prefix = "^" if anchored else "^(?:.*/)?"
    suffix = "/.*$" if dir_only else "(?:/.*)?$"
    return re.compile(prefix + "".join(parts) + suffix, re.DOTALL)


def pattern_matches(pattern: str, path: str) -> bool:
    """Whether a gitignore-style pattern matches a path or one of its parents."""
    regex = _compile(pattern)
    if regex is None:
        return False
    return regex.match(path.replace(os.sep, "/")) is not None


def _parent(path: str) -> str:
    return posixpath.normpath(posixpath.dirname(path))


def _check(rules: Iterable[IgnoreRule], path: str) -> bool | None:
    result = None
    for rule in rules:
        if pattern_matches(rule.pattern, path):
            result = rule.exclude
    return result


@dataclass
class Ignores:
    """Global rules plus rules scoped to directories ("." is the root)."""

    absolute: list[IgnoreRule] = field(default_factory=list)
    scoped: dict[str, list[IgnoreRule]] = field(default_factory=dict)

    def check_ignore(self, path: str) -> bool:
        """Whether a path relative to the worktree root is ignored."""
        if os.path.isabs(path):
            raise GitError(
                "This function requires path to be relative to the repo's root"
            )
        path = path.replace(os.sep, "/")

        parent = _parent(path)
        while True:
            rules = self.scoped.get(parent)
            if rules:
                result = _check(rules, path)
                if result is not None:
                    return result
            grandparent = _parent(parent)
            if grandparent == parent:
                break
            parent = grandparent

        result = _check(self.absolute, path)
        return bool(result)