"""Tree object entries and their binary encoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from wyog.errors import GitError

_SHA_BYTES = 20


@dataclass(frozen=True)
class TreeLeaf:
    """One entry of a tree: a six-digit octal mode, a name and an object id."""

    mode: str
    path: str
    sha: str


def parse_tree(raw: bytes) -> list[TreeLeaf]:
    """Decode the body of a tree object into its leaves."""
    leaves: list[TreeLeaf] = []
    pos = 0
    while pos < len(raw):
        space = raw.find(b" ", pos)
        if space - pos not in (5, 6):
            raise GitError("invalid mode definition")
        mode = raw[pos:space].decode("latin-1").rjust(6, "0")

        null = raw.find(b"\x00", space)
        if null < 0:
            raise GitError("tree entry path is not terminated")
        path = raw[space + 1:null].decode("utf-8", "surrogateescape")

        sha = raw[null + 1:null + 1 + _SHA_BYTES]
        if len(sha) != _SHA_BYTES:
            raise GitError("tree entry object id is truncated")

        leaves.append(TreeLeaf(mode=mode, path=path, sha=sha.hex()))
        pos = null + 1 + _SHA_BYTES
    return leaves


def leaf_sort_key(leaf: TreeLeaf) -> str:
    """Ordering key for tree entries; regular-file modes get a trailing slash."""
    return leaf.path + "/" if leaf.mode.startswith("10") else leaf.path


def serialize_tree(items: Iterable[TreeLeaf]) -> bytes:
    """Encode tree leaves, in sorted order, into the body of a tree object."""
    out = bytearray()
    for leaf in sorted(items, key=leaf_sort_key):
        try:
            sha = bytes.fromhex(leaf.sha)
        except ValueError as exc:
            raise GitError(f"invalid object id {leaf.sha!r}") from exc
        if len(sha) != _SHA_BYTES:
            raise GitError(f"invalid object id {leaf.sha!r}")
        out += leaf.mode.encode("latin-1")
        out += b" "
        out += leaf.path.encode("utf-8", "surrogateescape")
        out += b"\x00"
        out += sha
    return bytes(out)