"""The staging area file (index format version 2)."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from wyog.errors import GitError

_HEADER = struct.Struct(">4sii")
_ENTRY = struct.Struct(">IIIIIIHHIII20sH")
_SIGNATURE = b"DIRC"
_VALID_MODE_TYPES = frozenset({0b1000, 0b1010, 0b1110})
_NAME_MASK = 0xFFF
_NS = 10**9


@dataclass
class IndexEntry:
    """One staged file; times are nanoseconds since the epoch."""

    name: str
    sha: str
    ctime_ns: int = 0
    mtime_ns: int = 0
    dev: int = 0
    ino: int = 0
    mode_type: int = 0b1000
    mode_perms: int = 0o644
    uid: int = 0
    gid: int = 0
    fsize: int = 0
    assume_valid: bool = False
    stage: int = 0


@dataclass
class Index:
    """A versioned list of index entries."""

    version: int = 2
    entries: list[IndexEntry] = field(default_factory=list)


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


def parse_index(raw: bytes) -> Index:
    """Decode the contents of an index file."""
    try:
        signature, version, count = _HEADER.unpack_from(raw)
    except struct.error as exc:
        raise GitError("cannot read index file header") from exc
    if signature != _SIGNATURE:
        raise GitError("incorrect header signature")
    if version != 2:
        raise GitError("wyog only supports index file version 2")

    content = raw[_HEADER.size:]
    idx = 0
    entries: list[IndexEntry] = []
    for _ in range(count):
        try:
            (
                ctime_s, ctime_n, mtime_s, mtime_n, dev, ino, unused,
                mode, uid, gid, fsize, sha, flags,
            ) = _ENTRY.unpack_from(content, idx)
        except struct.error as exc:
            raise GitError("cannot read index entry") from exc

        if unused != 0:
            raise GitError("incorrect index entry format")
        mode_type = mode >> 12
        if mode_type not in _VALID_MODE_TYPES:
            raise GitError("incorrect mode type")
        if flags & 0x4000:
            raise GitError("version 2 does not support extended")

        name_length = flags & _NAME_MASK
        idx += _ENTRY.size
        if name_length < _NAME_MASK:
            end = idx + name_length
            if end >= len(content) or content[end] != 0:
                raise GitError("index entry name is incorrect format")
        else:
            end = content.find(b"\x00", idx + _NAME_MASK)
            if end < 0:
                raise GitError("index entry name is incorrect format")
        name = content[idx:end].decode("utf-8", "surrogateescape")
        idx = -(-(end + 1) // 8) * 8

        entries.append(
            IndexEntry(
                name=name,
                sha=sha.hex(),
                ctime_ns=ctime_s * _NS + ctime_n,
                mtime_ns=mtime_s * _NS + mtime_n,
                dev=dev,
                ino=ino,
                mode_type=mode_type,
                mode_perms=mode & 0o777,
                uid=uid,
                gid=gid,
                fsize=fsize,
                assume_valid=bool(flags & 0x8000),
                stage=(flags >> 12) & 0b11,
            )
        )
    return Index(version=2, entries=entries)


def serialize_index(index: Index) -> bytes:
    """Encode an index into the bytes of an index file."""
    out = bytearray(_HEADER.pack(_SIGNATURE, index.version, len(index.entries)))
    for entry in index.entries:
        try:
            sha = bytes.fromhex(entry.sha)
        except ValueError as exc:
            raise GitError(f"invalid object id {entry.sha!r}") from exc
        if len(sha) != 20:
            raise GitError(f"invalid object id {entry.sha!r}")

        name = entry.name.encode("utf-8", "surrogateescape")
        flags = (
            (0x8000 if entry.assume_valid else 0)
            | ((entry.stage & 0b11) << 12)
            | min(len(name), _NAME_MASK)
        )
        ctime_s, ctime_n = divmod(entry.ctime_ns, _NS)
        mtime_s, mtime_n = divmod(entry.mtime_ns, _NS)
        record = _ENTRY.pack(
            _u32(ctime_s), ctime_n, _u32(mtime_s), mtime_n,
            _u32(entry.dev), _u32(entry.ino), 0,
            ((entry.mode_type << 12) | entry.mode_perms) & 0xFFFF,
            _u32(entry.uid), _u32(entry.gid), _u32(entry.fsize),
            sha, flags,
        )
        record += name + b"\x00"
        record += b"\x00" * (-len(record) % 8)
        out += record
    return bytes(out)