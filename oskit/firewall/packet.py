"""Fixed-size packets, their hash and the source-address filter."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

__all__ = [
    "PKT_SZ",
    "HEADER",
    "PAYLOAD_SIZE",
    "Action",
    "Packet",
    "packet_hash",
    "process_packet",
    "format_result",
]

PKT_SZ = 256
HEADER = struct.Struct("<IIQ")
PAYLOAD_SIZE = PKT_SZ - HEADER.size

_HASH_ITER = 50
_HASH_SEED = 5381
_U64_MASK = (1 << 64) - 1

_ALLOWED_SOURCES = (
    (0xF1000000, 0xF1FFFFFF),
    (0x1F1F1F1F, 0x1F1F1F1F),
    (0x80000000, 0xFFFFFFFF),
)


class Action(enum.IntEnum):
    """Verdict for a packet."""

    DROP = 0
    PASS = 1

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Packet:
    """A packet: header fields followed by the payload.

    A shorter payload is padded with zero bytes to the fixed packet size.
    """

    source: int
    dest: int
    timestamp: int
    payload: bytes = bytes(PAYLOAD_SIZE)

    def __post_init__(self) -> None:
        payload = bytes(self.payload)
        if len(payload) > PAYLOAD_SIZE:
            raise ValueError(f"payload longer than {PAYLOAD_SIZE} bytes")
        object.__setattr__(self, "payload", payload.ljust(PAYLOAD_SIZE, b"\0"))
        try:
            HEADER.pack(self.source, self.dest, self.timestamp)
        except struct.error as exc:
            raise ValueError(f"header field out of range: {exc}") from None

    @classmethod
    def from_bytes(cls, data: bytes) -> Packet:
        """Decode exactly one packet."""
        if len(data) != PKT_SZ:
            raise ValueError(f"packet truncated: {len(data)} of {PKT_SZ} bytes")
        source, dest, timestamp = HEADER.unpack_from(data)
        return cls(source, dest, timestamp, bytes(data[HEADER.size :]))

    def to_bytes(self) -> bytes:
        """Encode the packet in its wire form."""
        return HEADER.pack(self.source, self.dest, self.timestamp) + self.payload


def packet_hash(packet: Packet) -> int:
    """Return the 64-bit multiplicative hash of the packet bytes."""
    signed = [b - 256 if b >= 128 else b for b in packet.to_bytes()]
    digest = _HASH_SEED
    for _ in range(_HASH_ITER):
        for byte in signed:
            digest = (digest * 33 + byte) & _U64_MASK
    return digest


def process_packet(packet: Packet) -> Action:
    """Pass packets whose source lies in an allowed range."""
    if any(start <= packet.source <= end for start, end in _ALLOWED_SOURCES):
        return Action.PASS
    return Action.DROP


def format_result(action: int, digest: int, timestamp: int) -> str:
    """Format one output line: verdict, hex hash and timestamp."""
    verdict = "PASS" if action == Action.PASS else "DROP"
    return f"{verdict} {digest & _U64_MASK:016x} {timestamp}\n"