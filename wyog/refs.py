"""References: files under the git directory naming objects or other refs."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Union

from wyog.errors import GitError

if TYPE_CHECKING:
    from wyog.repository import Repository

RefTree = dict[str, Union[str, "RefTree"]]


def ref_resolve(repo: Repository, ref: str) -> str | None:
    """Follow a reference file to an object id; None if it does not exist."""
    if not os.path.isfile(ref):
        return None
    try:
        with open(ref, encoding="utf-8", newline="") as fh:
            data = fh.read()
    except OSError as exc:
        raise GitError(f"cannot open file {ref}") from exc
    data = data[:-1]

    if data.startswith("ref: "):
        target = repo.repo_file(data[5:])
        if target is None:
            return None
        return ref_resolve(repo, target)
    return data


def ref_list(repo: Repository, path: str | None = None) -> RefTree:
    """Map every reference below ``path`` (default: refs) to its object id.

    Directories become nested dictionaries; entries are in name order.
    """
    if path is None:
        path = repo.repo_dir("refs")
        if path is None:
            raise GitError("cannot read directory refs")
    try:
        names = sorted(os.listdir(path))
    except OSError as exc:
        raise GitError(f"cannot read directory {path}") from exc

    result: RefTree = {}
    for name in names:
        candidate = os.path.join(path, name)
        if os.path.isdir(candidate):
            result[name] = ref_list(repo, candidate)
        else:
            sha = ref_resolve(repo, candidate)
            if sha is None:
                raise GitError(f"cannot resolve reference {candidate}")
            result[name] = sha
    return result