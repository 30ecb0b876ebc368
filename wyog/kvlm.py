"""Key-value list with message: the text format of commits and tags."""

from __future__ import annotations

from dataclasses import dataclass, field

from wyog.errors import GitError

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _decode(data: bytes) -> str:
    return data.decode(_ENCODING, _ERRORS)


def _encode(text: str) -> bytes:
    return text.encode(_ENCODING, _ERRORS)


@dataclass
class Kvlm:
    """Ordered headers, each holding one or more values, followed by a message."""

    headers: dict[str, list[str]] = field(default_factory=dict)
    message: bytes = b""

    def add(self, key: str, value: str) -> None:
        """Append a value to a header, creating the header if needed."""
        self.headers.setdefault(key, []).append(value)

    def first(self, key: str) -> str | None:
        """Return the first value of a header, or None when it is absent."""
        values = self.headers.get(key)
        return values[0] if values else None

    def serialize(self) -> bytes:
        """Render the headers and message in their on-disk form."""
        out = bytearray()
        for key, values in self.headers.items():
            for value in values:
                out += _encode(key)
                out += b" "
                out += _encode(value.replace("\n", "\n "))
                out += b"\n"
        out += b"\n"
        out += self.message
        return bytes(out)


def parse_kvlm(raw: bytes) -> Kvlm:
    """Parse a commit or tag body into a Kvlm."""
    kvlm = Kvlm()
    start = 0
    while True:
        space = raw.find(b" ", start)
        newline = raw.find(b"\n", start)

        if space < 0 or newline < space:
            if newline != start:
                raise GitError(f"malformed key-value list at offset {start}")
            kvlm.message = raw[start + 1:]
            return kvlm

        key = raw[start:space]

        end = start
        while True:
            end = raw.find(b"\n", end + 1)
            if end < 0 or end + 1 >= len(raw):
                raise GitError(f"unterminated value for key {_decode(key)!r}")
            if raw[end + 1] != ord(" "):
                break

        value = raw[space + 1:end].replace(b"\n ", b"\n")
        kvlm.add(_decode(key), _decode(value))
        start = end + 1