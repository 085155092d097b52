"""Contents — the complete byte payload of a stored file."""

from __future__ import annotations

from .exceptions import DecodeError


class Contents:
    """Owned, immutable byte buffer returned by ``read``.

    Compares equal to other ``Contents`` and to raw ``bytes`` with the
    same payload.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._data = bytes(data)

    @classmethod
    def from_text(cls, text: str, encoding: str = "utf-8") -> Contents:
        return cls(text.encode(encoding))

    @property
    def data(self) -> bytes:
        return self._data

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the payload, raising DecodeError on invalid data."""
        try:
            return self._data.decode(encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Contents are not valid {encoding}: {e}") from e

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Contents):
            return self._data == other._data
        if isinstance(other, (bytes, bytearray)):
            return self._data == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"Contents({len(self._data)} bytes)"
