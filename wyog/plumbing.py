"""Low-level commands: hashing, reading and listing objects, refs, tags, checkout."""

from __future__ import annotations

import configparser
import contextlib
import os
from typing import Mapping

from wyog.errors import GitError
from wyog.kvlm import Kvlm
from wyog.objects import (
    Blob,
    Commit,
    Tag,
    Tree,
    find_object,
    parse_object,
    read_object,
    write_object,
)
from wyog.repository import Repository

OBJECT_TYPES = ("blob", "commit", "tag", "tree")

_LEAF_TYPES = {"4": "tree", "04": "tree", "10": "blob", "12": "blob", "16": "commit"}

_TAGGER = "wyog <wyog@example.com>"
_TAG_MESSAGE = b"A tag generated by wyag, which won't let you customize the message!\n"
_DESCRIPTION = "Unnamed repository; edit this file 'description' to name the repository.\n"
_HEAD = "ref: refs/heads/main\n"


def object_hash(data: bytes, fmt: str = "blob", repo: Repository | None = None) -> str:
    """Hash data as an object of the given type, storing it when a repo is given."""
    if fmt not in OBJECT_TYPES:
        raise GitError("invalid type")
    return write_object(parse_object(fmt, data), repo)


def _is_commit(obj: object) -> bool:
    return isinstance(obj, Commit) and not isinstance(obj, Tag)


def cat_file(repo: Repository, obj: str, fmt: str | None = None) -> bytes:
    """Return the body of the object a name resolves to."""
    sha = find_object(repo, obj, fmt)
    if not sha:
        raise GitError(f"no {fmt} object found for {obj}")
    return read_object(repo, sha).serialize()


def ls_tree(
    repo: Repository, ref: str, recursive: bool = False, prefix: str = ""
) -> list[str]:
    """Describe the entries of a tree, one line each."""
    sha = find_object(repo, ref, "tree")
    if not sha:
        raise GitError(f"{ref} does not name a tree")
    tree = read_object(repo, sha)
    if not isinstance(tree, Tree):
        raise GitError("incorrect object type")

    lines: list[str] = []
    for item in tree.items:
        code = item.mode[:1] if len(item.mode) == 5 else item.mode[:2]
        type_name = _LEAF_TYPES.get(code)
        if type_name is None:
            raise GitError(f"invalid tree leaf mode {item.mode}")
        path = os.path.join(prefix, item.path)
        if recursive and type_name == "tree":
            lines.extend(ls_tree(repo, item.sha, recursive, path))
        else:
            lines.append(f"{item.mode:>6} {type_name} {item.sha}\t{path}")
    return lines


def rev_parse(repo: Repository, name: str, fmt: str | None = None) -> str:
    """Resolve a name to an object id; "" when it reaches nothing of that type."""
    if fmt and fmt not in OBJECT_TYPES:
        raise GitError("type must be one of [blob, commit, tag, tree]")
    try:
        sha = find_object(repo, name, fmt or None)
    except GitError:
        return ""
    return sha or ""


def show_ref(
    refs: Mapping[str, object], with_hash: bool = True, prefix: str = "refs"
) -> list[str]:
    """Flatten a nested reference mapping into display lines."""
    if refs:
        prefix += "/"
    lines: list[str] = []
    for name, value in refs.items():
        if isinstance(value, str):
            lines.append(f"{value} {prefix}{name}" if with_hash else f"{prefix}{name}")
        elif isinstance(value, Mapping):
            lines.extend(show_ref(value, with_hash, prefix + name))
        else:
            raise GitError("invalid type")
    return lines


def ref_create(repo: Repository, ref_name: str, sha: str) -> None:
    """Point refs/<ref_name> at an object id."""
    path = repo.repo_file("refs", ref_name)
    if path is None:
        raise GitError(f"cannot create reference {ref_name}")
    try:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(sha + "\n")
    except OSError as exc:
        raise GitError("could not save file") from exc


def tag_create(
    repo: Repository, name: str, ref: str = "HEAD", annotate: bool = False
) -> str:
    """Create a tag on an object; annotated tags get a tag object. Returns its id."""
    sha = find_object(repo, ref)
    if not sha:
        raise GitError(f"no such reference {ref}")
    if annotate:
        kvlm = Kvlm(message=_TAG_MESSAGE)
        kvlm.add("object", sha)
        kvlm.add("type", "commit")
        kvlm.add("tag", name)
        kvlm.add("tagger", _TAGGER)
        sha = write_object(Tag(kvlm), repo)
    ref_create(repo, "tags/" + name, sha)
    return sha


def tree_checkout(repo: Repository, tree: Tree, path: str) -> None:
    """Write the contents of a tree below a directory."""
    for item in tree.items:
        obj = read_object(repo, item.sha)
        dest = os.path.join(path, item.path)
        if isinstance(obj, Tree):
            with contextlib.suppress(OSError):
                os.mkdir(dest)
            tree_checkout(repo, obj, dest)
        elif isinstance(obj, Blob):
            try:
                with open(dest, "wb") as fh:
                    fh.write(obj.serialize())
            except OSError as exc:
                raise GitError(f"cannot write file {dest}") from exc
        else:
            raise GitError("incorrect repository.type")


def checkout(repo: Repository, commit: str, path: str) -> None:
    """Materialise a commit or tree into a new or empty directory."""
    sha = find_object(repo, commit)
    if not sha:
        raise GitError(f"no such reference {commit}")
    obj = read_object(repo, sha)
    if _is_commit(obj):
        tree_sha = obj.kvlm.first("tree")
        if tree_sha is None:
            raise GitError("cannot find tree object")
        obj = read_object(repo, tree_sha)
    if not isinstance(obj, Tree):
        raise GitError(f"{commit} is not a commit or a tree")

    if os.path.exists(path):
        if not os.path.isdir(path):
            raise GitError(f"Not a directory {path}")
        if os.listdir(path):
            raise GitError(f"Not empty {path}")
    else:
        try:
            os.makedirs(path)
        except OSError as exc:
            raise GitError("error creating directories") from exc

    tree_checkout(repo, obj, os.path.abspath(path))


def _escape(message: str) -> str:
    return message.replace("\\", "\\\\").replace('"', '\\"')


def _log_commit(repo: Repository, sha: str, seen: set[str], lines: list[str]) -> None:
    if sha in seen:
        return
    seen.add(sha)

    obj = read_object(repo, sha)
    if not _is_commit(obj):
        raise GitError(f"{sha} is not a commit")

    message = _escape(obj.kvlm.message.decode("utf-8", "replace").strip())
    lines.append(f'  c_{sha} [label="{sha[:7]}: {message}"]')

    for parent in obj.kvlm.headers.get("parent", []):
        lines.append(f"  c_{sha} -> c_{parent};")
        with contextlib.suppress(GitError):
            _log_commit(repo, parent, seen, lines)


def log_graphviz(repo: Repository, sha: str = "HEAD") -> str:
    """Render the history reachable from a commit as a Graphviz digraph."""
    start = find_object(repo, sha, "commit")
    if not start:
        raise GitError(f"{sha} is not a commit")
    lines = ["digraph wyoglog{", "  node[shape=rect]"]
    _log_commit(repo, start, set(), lines)
    lines.append("}")
    return "\n".join(lines) + "\n"


def default_config() -> configparser.ConfigParser:
    """The configuration written into a new repository."""
    parser = configparser.ConfigParser(interpolation=None)
    parser["core"] = {
        "repositoryformatversion": "0",
        "filemode": "false",
        "bare": "false",
    }
    return parser


def _write_text(path: str | None, text: str, what: str) -> None:
    if path is None:
        raise GitError(f"Could not create {what} file")
    try:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        raise GitError(f"Could not create {what} file") from exc


def repo_create(path: str = ".") -> Repository:
    """Initialise a new, empty repository at a path and open it."""
    path = os.path.abspath(path)
    repo = Repository(path, force=True)

    if os.path.exists(repo.worktree):
        if not os.path.isdir(repo.worktree):
            raise GitError(f"{path} is not a directory!")
        if os.path.isdir(repo.gitdir) and os.listdir(repo.gitdir):
            raise GitError(f"{path} is not empty!")
    else:
        try:
            os.makedirs(repo.worktree)
        except OSError as exc:
            raise GitError("Cannot create worktree") from exc

    for parts in (("branches",), ("objects",), ("refs", "tags"), ("refs", "heads")):
        repo.repo_dir(*parts, mkdir=True)

    _write_text(repo.repo_file("description"), _DESCRIPTION, "description")
    _write_text(repo.repo_file("HEAD"), _HEAD, "HEAD")

    config_path = repo.repo_file("config")
    if config_path is None:
        raise GitError("could not create config file")
    try:
        with open(config_path, "w", encoding="utf-8") as fh:
            default_config().write(fh)
    except OSError as exc:
        raise GitError("Could not write config file") from exc

    return Repository(path)