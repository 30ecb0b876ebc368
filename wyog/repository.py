"""A repository on disk: its paths, references, index and ignore rules."""

from __future__ import annotations

import configparser
import os
import posixpath
import re
from dataclasses import dataclass
from typing import Iterable, Union

from wyog.errors import GitError
from wyog.ignore import Ignores, parse_rules
from wyog.index import Index, IndexEntry, parse_index, serialize_index
from wyog.objects import Blob, Tree, read_object, write_object
from wyog.refs import ref_resolve
from wyog.tree import TreeLeaf

_HASH_RE = re.compile(r"[0-9A-Fa-f]{4,40}")
_REF_NAMESPACES = ("refs/tags/", "refs/heads/", "refs/remotes/")


@dataclass(frozen=True)
class _DirEntry:
    basename: str
    sha: str


def _dirname(path: str) -> str:
    return os.path.dirname(path)


def _read_lines(path: str) -> list[str]:
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as fh:
        return _split_lines(fh.read())


def _split_lines(text: str) -> list[str]:
    return text.replace("\r\n", "\n").split("\n")


class Repository:
    """A worktree and the ``.git`` directory inside it."""

    def __init__(self, path: str, force: bool = False) -> None:
        self.worktree = path
        self.gitdir = os.path.join(path, ".git")
        self.config: configparser.ConfigParser | None = None

        if force:
            return

        if not os.path.isdir(self.gitdir):
            raise GitError(f"Not a Git repository {self.gitdir}")

        config_path = self.path("config")
        if not os.path.exists(config_path):
            raise GitError("Configuration file missing")

        parser = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            with open(config_path, encoding="utf-8") as fh:
                parser.read_file(fh, source=config_path)
        except (OSError, configparser.Error) as exc:
            raise GitError("Invalid configuration file") from exc

        version = parser.get("core", "repositoryformatversion", fallback=None)
        if version is None:
            raise GitError("No core section in config")
        if version != "0":
            raise GitError(f"Unsupported repositoryformatversion: {version}")
        self.config = parser

    def path(self, *args: str) -> str:
        """Join path parts under the git directory."""
        return os.path.join(self.gitdir, *args)

    def repo_dir(self, *args: str, mkdir: bool = False) -> str | None:
        """Path of a directory in the git directory, created if ``mkdir``.

        Returns None when it is absent and not to be created.
        """
        path = self.path(*args)
        if os.path.exists(path):
            if os.path.isdir(path):
                return path
            raise GitError(f"Not a directory {path}")
        if mkdir:
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as exc:
                raise GitError("Error creating directories") from exc
            return path
        return None

    def repo_file(self, *args: str, mkdir: bool = False) -> str | None:
        """Path of a file in the git directory; its parents made if ``mkdir``.

        Returns None when the parent directory is absent.
        """
        if self.repo_dir(*args[:-1], mkdir=mkdir) is None:
            return None
        return self.path(*args)

    def resolve(self, name: str) -> list[str]:
        """Every object id that a name could refer to."""
        name = name.strip()
        if not name:
            raise GitError("name must be supplied")

        if name == "HEAD":
            head_path = self.repo_file("HEAD")
            head = ref_resolve(self, head_path) if head_path is not None else None
            return [head] if head is not None else []

        candidates: list[str] = []
        if _HASH_RE.fullmatch(name):
            lowered = name.lower()
            prefix, rest = lowered[:2], lowered[2:]
            directory = self.repo_dir("objects", prefix)
            if directory is not None:
                candidates.extend(
                    prefix + entry
                    for entry in sorted(os.listdir(directory))
                    if entry.startswith(rest)
                )

        for namespace in _REF_NAMESPACES:
            ref_path = self.repo_file(namespace + name)
            if ref_path is None:
                continue
            sha = ref_resolve(self, ref_path)
            if sha is not None:
                candidates.append(sha)
        return candidates

    def read_index(self) -> Index:
        """Load the index; an absent index file gives an empty one."""
        index_path = self.repo_file("index")
        if index_path is None:
            raise GitError("could not find index path")
        if not os.path.exists(index_path):
            return Index()
        try:
            with open(index_path, "rb") as fh:
                raw = fh.read()
        except OSError as exc:
            raise GitError("error reading index file") from exc
        return parse_index(raw)

    def write_index(self, index: Index) -> None:
        """Replace the index file with the given index."""
        index_path = self.repo_file("index")
        if index_path is None:
            raise GitError("could not find index path")
        data = serialize_index(index)
        try:
            with open(index_path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise GitError("error writing to index") from exc

    def tree_from_index(self, index: Index) -> str:
        """Write tree objects for the index and return the root tree's id."""
        contents: dict[str, list[Union[IndexEntry, _DirEntry]]] = {"": []}
        for entry in index.entries:
            dir_name = _dirname(entry.name)
            key = dir_name
            while key:
                contents.setdefault(key, [])
                key = _dirname(key)
            contents.setdefault(dir_name, []).append(entry)

        sha = ""
        for path in sorted(contents, key=len, reverse=True):
            leaves = [self._leaf(item) for item in contents[path]]
            sha = write_object(Tree(leaves), self)

            base = os.path.basename(path)
            if not base:
                continue
            contents[_dirname(path)].append(_DirEntry(base, sha))
        return sha

    @staticmethod
    def _leaf(item: Union[IndexEntry, _DirEntry]) -> TreeLeaf:
        if isinstance(item, _DirEntry):
            return TreeLeaf(mode="040000", path=item.basename, sha=item.sha)
        mode = f"{item.mode_type:02o}{item.mode_perms:04o}"
        return TreeLeaf(mode=mode, path=os.path.basename(item.name), sha=item.sha)

    def read_gitignore(self) -> Ignores:
        """Collect ignore rules from info/exclude, the global file and index."""
        ignores = Ignores()

        exclude = os.path.join(self.gitdir, "info", "exclude")
        if os.path.isfile(exclude):
            ignores.absolute.extend(self._rules_from(exclude, ".git/info/exclude"))

        xdg_home = os.environ.get("XDG_CONFIG_HOME")
        if xdg_home is not None:
            config_home = os.path.abspath(xdg_home)
        else:
            config_home = os.path.expanduser("~/.config")
        global_file = os.path.join(config_home, "git", "ignore")
        if os.path.isfile(global_file):
            ignores.absolute.extend(self._rules_from(global_file, "global config"))

        for entry in self.read_index().entries:
            if os.path.basename(entry.name) != ".gitignore":
                continue
            scope = posixpath.normpath(_dirname(entry.name).replace(os.sep, "/"))
            obj = read_object(self, entry.sha)
            if not isinstance(obj, Blob):
                raise GitError(f"{entry.sha} is not a blob type")
            text = obj.data.decode("utf-8", "surrogateescape")
            ignores.scoped[scope] = parse_rules(_split_lines(text))
        return ignores

    @staticmethod
    def _rules_from(path: str, label: str):
        try:
            return parse_rules(_read_lines(path))
        except OSError as exc:
            raise GitError(f"error reading {label}") from exc

    def rm(
        self, paths: Iterable[str], delete: bool = False, skip_missing: bool = False
    ) -> None:
        """Drop paths from the index, and from the worktree if ``delete``."""
        index = self.read_index()
        worktree_prefix = self.worktree + os.sep

        wanted: set[str] = set()
        for path in paths:
            abs_path = os.path.abspath(path)
            if not abs_path.startswith(worktree_prefix):
                raise GitError(f"cannot remove paths outside of worktree: {path}")
            wanted.add(abs_path)

        kept: list[IndexEntry] = []
        removed: list[str] = []
        for entry in index.entries:
            full_path = os.path.join(self.worktree, entry.name)
            if full_path in wanted:
                removed.append(full_path)
                wanted.discard(full_path)
            else:
                kept.append(entry)

        if wanted and not skip_missing:
            raise GitError(f"cannot remove paths not in the index: {sorted(wanted)}")

        if delete:
            for path in removed:
                try:
                    os.remove(path)
                except OSError:
                    pass

        index.entries = kept
        self.write_index(index)

    def active_branch(self) -> str:
        """Name of the checked-out branch, or "" when HEAD is detached."""
        head_path = self.repo_file("HEAD")
        if head_path is None:
            raise GitError("cannot open HEAD")
        try:
            with open(head_path, "rb") as fh:
                head = fh.read()
        except OSError as exc:
            raise GitError("cannot open HEAD") from exc

        marker = b"ref: refs/heads/"
        if head.startswith(marker):
            branch = head[len(marker):].replace(b"\r", b"").replace(b"\n", b"")
            return branch.decode("utf-8", "surrogateescape")
        return ""


def find_repo(path: str = ".") -> str | None:
    """Closest directory at or above ``path`` that holds a ``.git`` directory."""
    current = os.path.abspath(path)
    while True:
        if os.path.isdir(os.path.join(current, ".git")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def find_repo_required(path: str = ".") -> str:
    """Like find_repo, but raise when no repository is found."""
    found = find_repo(path)
    if found is None:
        raise GitError("not a git repository (or any of the parent directories)")
    return found