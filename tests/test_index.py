import pytest

from wyog.errors import GitError
from wyog.index import Index, IndexEntry, parse_index, serialize_index

SHA_A = "aa" * 20
SHA_B = "0123456789abcdef0123456789abcdef01234567"


def make_entries():
    return [
        IndexEntry(
            name="README.md",
            sha=SHA_A,
            ctime_ns=1_700_000_000_123_456_789,
            mtime_ns=1_700_000_001_000_000_001,
            dev=2049,
            ino=1234,
            uid=1000,
            gid=1000,
            fsize=42,
        ),
        IndexEntry(
            name="src/main.go",
            sha=SHA_B,
            mode_type=0b1010,
            mode_perms=0o755,
            assume_valid=True,
            stage=2,
        ),
    ]


def test_round_trip():
    index = Index(entries=make_entries())
    assert parse_index(serialize_index(index)) == index


def test_header_bytes():
    raw = serialize_index(Index(entries=make_entries()))
    assert raw[:8] == b"DIRC\x00\x00\x00\x02"
    assert int.from_bytes(raw[8:12], "big") == 2


def test_entries_are_padded_to_eight_bytes():
    for entry in make_entries():
        raw = serialize_index(Index(entries=[entry]))
        assert (len(raw) - 12) % 8 == 0


def test_empty_index():
    raw = serialize_index(Index())
    assert len(raw) == 12
    assert parse_index(raw) == Index()


def test_long_name_round_trip():
    index = Index(entries=[IndexEntry(name="d/" + "x" * 5000, sha=SHA_A)])
    assert parse_index(serialize_index(index)) == index


def test_bad_signature_raises():
    raw = b"XXXX" + serialize_index(Index())[4:]
    with pytest.raises(GitError):
        parse_index(raw)


def test_bad_version_raises():
    with pytest.raises(GitError):
        parse_index(serialize_index(Index(version=3)))


def test_bad_mode_type_raises():
    raw = serialize_index(Index(entries=[IndexEntry(name="a", sha=SHA_A, mode_type=1)]))
    with pytest.raises(GitError):
        parse_index(raw)


def test_truncated_entry_raises():
    raw = serialize_index(Index(entries=make_entries()))
    with pytest.raises(GitError):
        parse_index(raw[:40])


def test_short_header_raises():
    with pytest.raises(GitError):
        parse_index(b"DIRC")


def test_invalid_sha_raises():
    with pytest.raises(GitError):
        serialize_index(Index(entries=[IndexEntry(name="a", sha="abc")]))