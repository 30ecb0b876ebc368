import os

import pytest

from wyog.cli import main

HELLO_SHA = "ce013625030ba8dba906f756967f9e9ca394464a"


@pytest.fixture
def work(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / "git").mkdir(parents=True)
    (home / "git" / "config").write_text(
        "[user]\nname = Alice\nemail = alice@example.com\n", encoding="utf-8"
    )
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    directory = tmp_path / "work"
    directory.mkdir()
    monkeypatch.chdir(directory)
    return directory


def _commit_file(capsys):
    with open("a.txt", "w", encoding="utf-8") as fh:
        fh.write("hello\n")
    assert main(["add", "a.txt"]) == 0
    assert main(["commit", "-m", "first"]) == 0
    capsys.readouterr()
    with open(os.path.join(".git", "refs", "heads", "main"), encoding="utf-8") as fh:
        return fh.read().strip()


def test_init_creates_layout(work):
    assert main(["init"]) == 0
    assert (work / ".git" / "objects").is_dir()
    assert (work / ".git" / "HEAD").read_text() == "ref: refs/heads/main\n"


def test_hash_object_prints_sha(work, capsys):
    (work / "f.txt").write_bytes(b"hello\n")
    assert main(["hash-object", "f.txt"]) == 0
    assert capsys.readouterr().out == HELLO_SHA + "\n"


def test_hash_object_write_then_cat_file(work, capsys):
    main(["init"])
    (work / "f.txt").write_bytes(b"some data")
    assert main(["hash-object", "-w", "f.txt"]) == 0
    sha = capsys.readouterr().out.strip()
    assert main(["cat-file", "blob", sha]) == 0
    assert capsys.readouterr().out == "some data"


def test_hash_object_missing_file(work, capsys):
    assert main(["hash-object", "missing.txt"]) == 1
    assert "missing.txt not found" in capsys.readouterr().err


def test_cat_file_rejects_type(work):
    with pytest.raises(SystemExit):
        main(["cat-file", "bogus", "HEAD"])


def test_outside_repository_fails(work, capsys):
    assert main(["status"]) == 1
    assert "not a git repository" in capsys.readouterr().err


def test_commit_and_rev_parse(work, capsys):
    main(["init"])
    sha = _commit_file(capsys)
    assert main(["rev-parse", "HEAD"]) == 0
    assert capsys.readouterr().out.strip() == sha


def test_log_graph(work, capsys):
    main(["init"])
    sha = _commit_file(capsys)
    assert main(["log"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("digraph wyoglog{\n")
    assert f'c_{sha} [label="{sha[:7]}: first"]' in out
    assert out.endswith("}\n")


def test_status_and_show_ref(work, capsys):
    main(["init"])
    sha = _commit_file(capsys)
    assert main(["status"]) == 0
    assert capsys.readouterr().out.startswith("On branch main\n")
    assert main(["show-ref"]) == 0
    assert f"{sha} refs/heads/main" in capsys.readouterr().out.splitlines()


def test_tag_create_and_list(work, capsys):
    main(["init"])
    _commit_file(capsys)
    assert main(["tag", "v1"]) == 0
    assert main(["tag"]) == 0
    assert "v1" in capsys.readouterr().out


def test_ls_files_and_rm(work, capsys):
    main(["init"])
    _commit_file(capsys)
    assert main(["ls-files"]) == 0
    assert capsys.readouterr().out.splitlines()[1] == "a.txt"
    assert main(["rm", "a.txt"]) == 0
    assert not (work / "a.txt").exists()
    main(["ls-files"])
    assert capsys.readouterr().out.splitlines() == [
        "Index file format v2, containing 0 entries."
    ]


def test_checkout(work, capsys):
    main(["init"])
    _commit_file(capsys)
    assert main(["checkout", "HEAD", "out"]) == 0
    assert (work / "out" / "a.txt").read_text() == "hello\n"


def test_version(work, capsys):
    with pytest.raises(SystemExit) as info:
        main(["--version"])
    assert info.value.code == 0
    assert "0.0.1" in capsys.readouterr().out