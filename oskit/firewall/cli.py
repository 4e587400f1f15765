"""Command-line entry points: the threaded filter and its serial reference."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence

from .packet import PKT_SZ, Packet, format_result, packet_hash, process_packet
from .pipeline import create_consumers, publish_data
from .ring_buffer import RingBuffer

__all__ = ["RING_SIZE", "MAX_CONSUMERS", "firewall_main", "serial_main"]

RING_SIZE = PKT_SZ * 1000
MAX_CONSUMERS = 32

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(text: str) -> int:
    """Leading decimal integer of ``text``; 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _error(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def firewall_main(argv: Sequence[str] | None = None) -> int:
    """Filter packets with a pool of consumer threads; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 3:
        return _error(
            "Usage firewall <input-file> <output-file> <num-consumers:1-32>"
        )

    ring = RingBuffer(RING_SIZE)
    num_consumers = _parse_int(args[2])
    if not 1 <= num_consumers <= MAX_CONSUMERS:
        return _error(
            f"num-consumers [{num_consumers}] must be in the interval [1-32]"
        )

    try:
        group = create_consumers(num_consumers, ring, args[1])
    except OSError as exc:
        return _error(f"open: {exc}")

    failure: Exception | None = None
    try:
        publish_data(ring, args[0])
    except (OSError, ValueError) as exc:
        failure = exc
    finally:
        group.join()

    if failure is not None:
        return _error(f"firewall: {failure}")
    return 0


def serial_main(argv: Sequence[str] | None = None) -> int:
    """Filter packets one at a time; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        return _error("Usage serial <input-file> <output-file>")

    try:
        with open(args[0], "rb") as source, open(
            args[1], "w", encoding="ascii", newline=""
        ) as target:
            while chunk := source.read(PKT_SZ):
                if len(chunk) != PKT_SZ:
                    return _error("packet truncated")
                packet = Packet.from_bytes(chunk)
                target.write(
                    format_result(
                        process_packet(packet), packet_hash(packet), packet.timestamp
                    )
                )
    except OSError as exc:
        return _error(f"open: {exc}")
    return 0


if __name__ == "__main__":
    sys.exit(firewall_main())