"""Git objects and the loose-object store."""

from __future__ import annotations

import hashlib
import os
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, ClassVar

from wyog.errors import GitError
from wyog.kvlm import Kvlm, parse_kvlm
from wyog.tree import TreeLeaf, parse_tree, serialize_tree

if TYPE_CHECKING:
    from wyog.repository import Repository


class GitObject(ABC):
    """Base of every object kind; ``fmt`` is the type name in the header."""

    fmt: ClassVar[str]

    @abstractmethod
    def serialize(self) -> bytes:
        """Return the object body, without its header."""


@dataclass
class Commit(GitObject):
    """A commit: headers such as tree, parent and author, then a message."""

    fmt: ClassVar[str] = "commit"
    kvlm: Kvlm = field(default_factory=Kvlm)

    def serialize(self) -> bytes:
        return self.kvlm.serialize()


@dataclass
class Tag(Commit):
    """An annotated tag; stored in the same text format as a commit."""

    fmt: ClassVar[str] = "tag"


@dataclass
class Tree(GitObject):
    """A directory listing."""

    fmt: ClassVar[str] = "tree"
    items: list[TreeLeaf] = field(default_factory=list)

    def serialize(self) -> bytes:
        return serialize_tree(self.items)


@dataclass
class Blob(GitObject):
    """Raw file contents."""

    fmt: ClassVar[str] = "blob"
    data: bytes = b""

    def serialize(self) -> bytes:
        return self.data


_PARSERS: dict[str, Callable[[bytes], GitObject]] = {
    "commit": lambda data: Commit(parse_kvlm(data)),
    "tree": lambda data: Tree(parse_tree(data)),
    "tag": lambda data: Tag(parse_kvlm(data)),
    "blob": lambda data: Blob(data),
}


def parse_object(fmt: str, data: bytes) -> GitObject:
    """Build an object of the named type from its body."""
    try:
        parser = _PARSERS[fmt]
    except KeyError:
        raise GitError(f"unknown type {fmt}") from None
    return parser(data)


def read_object(repo: Repository, sha: str) -> GitObject:
    """Read and decode a loose object from the repository."""
    if len(sha) < 3:
        raise GitError(f"cannot open object: {sha}")
    path = repo.repo_file("objects", sha[:2], sha[2:])
    if path is None:
        raise GitError(f"cannot open object: {sha}")
    try:
        with open(path, "rb") as fh:
            compressed = fh.read()
    except OSError as exc:
        raise GitError(f"Cannot read object {sha}") from exc
    try:
        raw = zlib.decompress(compressed)
    except zlib.error as exc:
        raise GitError(f"Cannot read object: {sha}") from exc

    space = raw.find(b" ")
    null = raw.find(b"\x00")
    if space < 0 or null < space:
        raise GitError(f"malformed object {sha}: bad header")
    fmt = raw[:space].decode("latin-1")
    try:
        size = int(raw[space + 1:null])
    except ValueError:
        size = -1
    if size != len(raw) - null - 1:
        raise GitError(f"malformed object {sha}: bad length")

    if fmt not in _PARSERS:
        raise GitError(f"unknown type {fmt} for object {sha}")
    return parse_object(fmt, raw[null + 1:])


def write_object(obj: GitObject, repo: Repository | None = None) -> str:
    """Hash an object and, when a repository is given, store it there."""
    data = obj.serialize()
    raw = obj.fmt.encode("ascii") + b" " + str(len(data)).encode("ascii") + b"\x00" + data
    sha = hashlib.sha1(raw).hexdigest()

    if repo is not None:
        path = repo.repo_file("objects", sha[:2], sha[2:], mkdir=True)
        if path is None:
            raise GitError("cannot create sha file")
        if not os.path.exists(path):
            try:
                with open(path, "wb") as fh:
                    fh.write(zlib.compress(raw))
            except OSError as exc:
                raise GitError("cannot write compressed file") from exc
    return sha


def find_object(
    repo: Repository, name: str, fmt: str | None = None, follow: bool = True
) -> str | None:
    """Resolve a name to an object id, optionally of a given type.

    With ``follow``, tags are followed to their target and commits to their
    tree when a tree is wanted. Returns None when no object of the wanted
    type is reached.
    """
    shas = repo.resolve(name)
    if not shas:
        raise GitError(f"no such reference {name}")
    if len(shas) > 1:
        listing = "\n - ".join(shas)
        raise GitError(f"ambiguous refernce {name}: candidates are:\n - {listing}")

    sha = shas[0]
    if not fmt:
        return sha

    while True:
        obj = read_object(repo, sha)
        if obj.fmt == fmt:
            return sha
        if not follow:
            return None

        if isinstance(obj, Tag):
            target = obj.kvlm.first("object")
            if target is None:
                raise GitError("no object found")
            sha = target
            continue
        if isinstance(obj, Commit) and fmt == "tree":
            target = obj.kvlm.first("tree")
            if target is None:
                raise GitError("no object found")
            sha = target
            continue
        return None


def tree_to_dict(repo: Repository, ref: str, prefix: str = "") -> dict[str, str]:
    """Flatten a tree into a mapping of file path to blob id."""
    tree_sha = find_object(repo, ref, "tree")
    if tree_sha is None:
        raise GitError(f"{ref} does not name a tree")
    tree = read_object(repo, tree_sha)
    if not isinstance(tree, Tree):
        raise GitError(f"{tree_sha} is not a tree")

    result: dict[str, str] = {}
    for leaf in tree.items:
        full_path = os.path.join(prefix, leaf.path)
        if leaf.mode.startswith("04"):
            result.update(tree_to_dict(repo, leaf.sha, full_path))
        else:
            result[full_path] = leaf.sha
    return result