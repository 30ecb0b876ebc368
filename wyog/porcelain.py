"""User-facing commands: staging, committing, status and index listings."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Iterable, Iterator

from wyog.config import read_config
from wyog.errors import GitError
from wyog.index import Index, IndexEntry
from wyog.kvlm import Kvlm
from wyog.objects import Commit, find_object, tree_to_dict, write_object
from wyog.plumbing import object_hash
from wyog.repository import Repository

_ENTRY_TYPES = {0b1000: "regular file", 0b1010: "symlink", 0b1110: "git link"}
_NS = 10**9


def add(repo: Repository, paths: Iterable[str]) -> Index:
    """Stage files, replacing any entries they already have. Returns the new index."""
    paths = list(paths)
    repo.rm(paths, delete=False, skip_missing=True)

    clean: dict[str, str] = {}
    for path in paths:
        abs_path = os.path.abspath(path)
        clean[abs_path] = os.path.relpath(abs_path, repo.worktree)

    index = repo.read_index()
    for abs_path, rel_path in clean.items():
        if os.path.isdir(abs_path):
            raise GitError(f"not a file: {rel_path}")
        try:
            with open(abs_path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            raise GitError(f"cannot open file: {abs_path}") from exc
        sha = object_hash(data, "blob", repo)
        try:
            st = os.stat(abs_path)
        except OSError as exc:
            raise GitError(f"cannot stat file: {abs_path}") from exc

        index.entries.append(
            IndexEntry(
                name=rel_path,
                sha=sha,
                ctime_ns=st.st_ctime_ns,
                mtime_ns=st.st_mtime_ns,
                dev=st.st_dev,
                ino=st.st_ino,
                mode_type=0b1000,
                mode_perms=0o644,
                uid=st.st_uid,
                gid=st.st_gid,
                fsize=st.st_size,
            )
        )

    index.entries.sort(key=lambda entry: entry.name)
    repo.write_index(index)
    return index


def create_commit(
    repo: Repository,
    timestamp: datetime,
    tree: str,
    parent: str,
    author: str,
    message: str,
) -> str:
    """Write a commit object and return its id."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    kvlm = Kvlm()
    kvlm.add("tree", tree)
    if parent:
        kvlm.add("parent", parent)

    signature = f"{author} {int(timestamp.timestamp())} {timestamp.strftime('%z')}"
    kvlm.add("author", signature)
    kvlm.add("committer", signature)
    kvlm.message = message.replace("\n", "").encode("utf-8")
    return write_object(Commit(kvlm), repo)


def commit(repo: Repository, message: str, author: str | None = None) -> str:
    """Commit the index on top of HEAD and advance the current branch."""
    if author is None:
        author = read_config().user()

    heads = repo.resolve("HEAD")
    parent = find_object(repo, "HEAD") or "" if heads else ""

    tree = repo.tree_from_index(repo.read_index())
    sha = create_commit(repo, datetime.now().astimezone(), tree, parent, author, message)

    branch = repo.active_branch()
    target = repo.repo_file("refs", "heads", branch) if branch else repo.repo_file("HEAD")
    if target is None:
        raise GitError("cannot update HEAD")
    try:
        with open(target, "w", encoding="utf-8", newline="") as fh:
            fh.write(sha + "\n")
    except OSError as exc:
        raise GitError(f"cannot write {target}") from exc
    return sha


def status_branch(repo: Repository) -> str:
    """The line naming the current branch, or the detached HEAD commit."""
    try:
        branch = repo.active_branch()
    except GitError:
        return ""
    if branch:
        return f"On branch {branch}\n"
    head = find_object(repo, "HEAD")
    return f"HEAD detatched at {head}\n"


def _head_tree(repo: Repository) -> dict[str, str]:
    if not repo.resolve("HEAD"):
        return {}
    return tree_to_dict(repo, "HEAD")


def status_head_index(repo: Repository, index: Index) -> str:
    """Differences between the HEAD commit and the index."""
    head = _head_tree(repo)
    out: list[str] = []
    for entry in index.entries:
        if entry.name in head:
            if head.pop(entry.name) != entry.sha:
                out.append(f"  modified:  {entry.name}\n")
        else:
            out.append(f"  new file:  {entry.name}\n")
    out.extend(f"  deleted:   {name}\n" for name in sorted(head))

    if not out:
        return ""
    return "\nChanges to be committed:\n" + "".join(out)


def _walk_files(root: str, skip: str) -> Iterator[str]:
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if entry.path == skip:
            continue
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(entry.path, skip)
        else:
            yield entry.path


def status_index_worktree(repo: Repository, index: Index) -> str:
    """Differences between the index and the worktree, then untracked files."""
    ignores = repo.read_gitignore()
    all_files = [
        os.path.relpath(path, repo.worktree)
        for path in _walk_files(repo.worktree, repo.gitdir)
    ]

    not_staged: list[str] = []
    tracked: set[str] = set()
    for entry in index.entries:
        full_path = os.path.join(repo.worktree, entry.name)
        try:
            st = os.stat(full_path)
        except OSError:
            not_staged.append(f"  deleted:   {entry.name}\n")
        else:
            if st.st_mtime_ns != entry.mtime_ns:
                try:
                    with open(full_path, "rb") as fh:
                        data = fh.read()
                except OSError as exc:
                    raise GitError("cannot open file") from exc
                if object_hash(data, "blob") != entry.sha:
                    not_staged.append(f"  modified:  {entry.name}\n")
        tracked.add(entry.name)

    out = ""
    if not_staged:
        out += "\nChanges not staged for commit:\n" + "".join(not_staged)

    untracked = [
        name
        for name in all_files
        if name not in tracked and not ignores.check_ignore(name)
    ]
    if untracked:
        out += "\nUntracked files:\n" + "".join(f"  {name}\n" for name in untracked)
    return out


def _rfc3339_nano(ns: int) -> str:
    seconds, fraction = divmod(ns, _NS)
    moment = datetime.fromtimestamp(seconds, timezone.utc).astimezone()
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if fraction:
        text += "." + f"{fraction:09d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _user_name(uid: int) -> str:
    try:
        import pwd

        return pwd.getpwuid(uid).pw_name
    except (ImportError, KeyError) as exc:
        raise GitError("cannot lookup user") from exc


def _group_name(gid: int) -> str:
    try:
        import grp

        return grp.getgrgid(gid).gr_name
    except (ImportError, KeyError) as exc:
        raise GitError("cannot lookup group") from exc


def ls_files(repo: Repository, verbose: bool = False) -> str:
    """List staged files, with every recorded detail when ``verbose``."""
    index = repo.read_index()
    lines = [
        f"Index file format v{index.version}, containing {len(index.entries)} entries."
    ]
    for entry in index.entries:
        lines.append(entry.name)
        if not verbose:
            continue
        entry_type = _ENTRY_TYPES.get(entry.mode_type)
        if entry_type is None:
            raise GitError("invalid entry type")
        lines.append(f"  {entry_type} with perms: {entry.mode_perms:04o}")
        lines.append(f"  on blob: {entry.sha}")
        lines.append(
            f"  created: {_rfc3339_nano(entry.ctime_ns)}, "
            f"modified: {_rfc3339_nano(entry.mtime_ns)}"
        )
        lines.append(f"  device: {entry.dev}, inode: {entry.ino}")
        user = _user_name(entry.uid)
        group = _group_name(entry.gid)
        lines.append(f"  user: {user} ({entry.uid})  group: {group} ({entry.gid})")
        lines.append(
            f"  flags: stage={entry.stage} assume_valid={str(entry.assume_valid).lower()}"
        )
    return "\n".join(lines) + "\n"


def check_ignore(repo: Repository, paths: Iterable[str]) -> list[str]:
    """The given paths that the repository's ignore rules exclude."""
    ignores = repo.read_gitignore()
    return [path for path in paths if ignores.check_ignore(path)]