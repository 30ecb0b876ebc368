import os
import zlib

import pytest

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
    tree_to_dict,
    write_object,
)
from wyog.repository import Repository
from wyog.tree import TreeLeaf, leaf_sort_key, parse_tree


def make_repo(root):
    git = root / ".git"
    for sub in ("objects", "refs/heads", "refs/tags", "branches"):
        (git / sub).mkdir(parents=True)
    (git / "config").write_text("[core]\nrepositoryformatversion = 0\n")
    (git / "HEAD").write_text("ref: refs/heads/main\n")
    return Repository(str(root))


@pytest.fixture
def repo(tmp_path):
    return make_repo(tmp_path)


def test_blob_sha_matches_git():
    assert write_object(Blob(b"hello world\n")) == "3b18e512dba79e4c8300dd08aeb37f8e728b8dad"


def test_empty_blob_and_tree_shas():
    assert write_object(Blob(b"")) == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
    assert write_object(Tree()) == "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def test_write_then_read_blob(repo):
    sha = write_object(Blob(b"data"), repo)
    assert os.path.isfile(os.path.join(repo.gitdir, "objects", sha[:2], sha[2:]))
    assert read_object(repo, sha) == Blob(b"data")


def test_write_without_repo_stores_nothing(repo):
    sha = write_object(Blob(b"data"))
    assert not os.path.exists(os.path.join(repo.gitdir, "objects", sha[:2]))
    assert sha == write_object(Blob(b"data"), repo)


def test_commit_roundtrip(repo):
    kvlm = Kvlm(
        headers={"tree": ["a" * 40], "author": ["A <a@example.com> 0 +0000"]},
        message=b"msg\n",
    )
    sha = write_object(Commit(kvlm), repo)
    obj = read_object(repo, sha)
    assert isinstance(obj, Commit)
    assert obj.kvlm == kvlm


def test_tag_differs_from_commit(repo):
    kvlm = Kvlm(headers={"object": ["a" * 40]}, message=b"m\n")
    tag_sha = write_object(Tag(kvlm), repo)
    assert tag_sha != write_object(Commit(kvlm), repo)
    obj = read_object(repo, tag_sha)
    assert isinstance(obj, Tag)
    assert obj.fmt == "tag"


def test_tree_serialize_roundtrip():
    items = [
        TreeLeaf("100644", "b", "1" * 40),
        TreeLeaf("040000", "a", "2" * 40),
        TreeLeaf("100644", "a.txt", "3" * 40),
    ]
    assert parse_tree(Tree(items).serialize()) == sorted(items, key=leaf_sort_key)


def test_parse_object_unknown_type():
    with pytest.raises(GitError, match="unknown type"):
        parse_object("nonsense", b"")


def test_parse_object_blob():
    assert parse_object("blob", b"xyz") == Blob(b"xyz")


def test_read_object_bad_length(repo):
    directory = os.path.join(repo.gitdir, "objects", "ab")
    os.makedirs(directory)
    with open(os.path.join(directory, "c" * 38), "wb") as fh:
        fh.write(zlib.compress(b"blob 5\x00abc"))
    with pytest.raises(GitError, match="bad length"):
        read_object(repo, "ab" + "c" * 38)


def test_read_object_missing(repo):
    with pytest.raises(GitError):
        read_object(repo, "ab" + "c" * 38)


def _history(repo):
    blob = write_object(Blob(b"x"), repo)
    tree = write_object(Tree([TreeLeaf("100644", "x", blob)]), repo)
    commit = write_object(Commit(Kvlm(headers={"tree": [tree]}, message=b"c\n")), repo)
    tag = write_object(Tag(Kvlm(headers={"object": [commit]}, message=b"t\n")), repo)
    return tree, commit, tag


def test_find_object_follows_tag_and_commit(repo):
    tree, commit, tag = _history(repo)
    assert find_object(repo, tag, "commit") == commit
    assert find_object(repo, tag, "tree") == tree


def test_find_object_without_follow(repo):
    _, commit, _ = _history(repo)
    assert find_object(repo, commit, "tree", False) is None


def test_find_object_short_prefix(repo):
    _, commit, _ = _history(repo)
    assert find_object(repo, commit[:8]) == commit


def test_find_object_missing(repo):
    with pytest.raises(GitError, match="no such reference"):
        find_object(repo, "nothing")


def test_find_object_ambiguous(repo):
    directory = os.path.join(repo.gitdir, "objects", "ab")
    os.makedirs(directory)
    for suffix in ("cd1", "cd2"):
        open(os.path.join(directory, suffix), "wb").close()
    with pytest.raises(GitError, match="ambiguous"):
        find_object(repo, "abcd")


def test_tree_to_dict(repo):
    blob_a = write_object(Blob(b"a"), repo)
    blob_b = write_object(Blob(b"b"), repo)
    sub = write_object(Tree([TreeLeaf("100644", "b", blob_b)]), repo)
    root = write_object(
        Tree([TreeLeaf("100644", "a", blob_a), TreeLeaf("040000", "sub", sub)]), repo
    )
    commit = write_object(Commit(Kvlm(headers={"tree": [root]}, message=b"m\n")), repo)
    assert tree_to_dict(repo, commit, "") == {
        "a": blob_a,
        os.path.join("sub", "b"): blob_b,
    }