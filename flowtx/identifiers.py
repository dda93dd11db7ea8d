"""Fixed-size account addresses and entity identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


def _parse_hex(text: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"invalid hex string: {text!r}") from exc


@dataclass(frozen=True)
class Address:
    """An 8-byte account address."""

    value: bytes = bytes(8)

    LENGTH: ClassVar[int] = 8

    def __post_init__(self) -> None:
        value = bytes(self.value)
        if len(value) != self.LENGTH:
            raise ValueError(
                f"address must be {self.LENGTH} bytes, got {len(value)}"
            )
        object.__setattr__(self, "value", value)

    @classmethod
    def from_hex(cls, text: str) -> Address:
        """Parse a hex address, with or without a ``0x`` prefix."""
        if text.startswith("0x"):
            text = text[2:]
        if len(text) % 2:
            text = "0" + text
        return cls.from_bytes(_parse_hex(text))

    @classmethod
    def from_bytes(cls, data: bytes) -> Address:
        """Build an address from the rightmost bytes of ``data``, left-padded with zeros."""
        tail = bytes(data)[-cls.LENGTH:] if data else b""
        return cls(tail.rjust(cls.LENGTH, b"\x00"))

    def hex(self) -> str:
        return self.value.hex()

    def __bytes__(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class Identifier:
    """A 32-byte entity identifier, such as a block or transaction ID."""

    value: bytes = bytes(32)

    LENGTH: ClassVar[int] = 32

    def __post_init__(self) -> None:
        value = bytes(self.value)
        if len(value) != self.LENGTH:
            raise ValueError(
                f"identifier must be {self.LENGTH} bytes, got {len(value)}"
            )
        object.__setattr__(self, "value", value)

    @classmethod
    def from_hex(cls, text: str) -> Identifier:
        return cls.from_bytes(_parse_hex(text))

    @classmethod
    def from_bytes(cls, data: bytes) -> Identifier:
        """Build an identifier from the leading bytes of ``data``, right-padded with zeros."""
        return cls(bytes(data)[: cls.LENGTH].ljust(cls.LENGTH, b"\x00"))

    @classmethod
    def from_hash(cls, digest: bytes) -> Identifier:
        return cls.from_bytes(digest)

    def hex(self) -> str:
        return self.value.hex()

    def __bytes__(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return self.hex()


EMPTY_ADDRESS = Address()
EMPTY_ID = Identifier()