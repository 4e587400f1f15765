"""Threaded packet filtering: one producer feeding a group of consumers.

The producer copies fixed-size packets from a file into a shared
:class:`~oskit.firewall.ring_buffer.RingBuffer`.  Each consumer takes one
packet per round and records its verdict.  Once every consumer reaches the
round barrier, the round's results are sorted by timestamp and written to the
output file.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import TextIO

from .packet import PKT_SZ, Action, Packet, format_result, packet_hash, process_packet
from .ring_buffer import RingBuffer, RingBufferError

__all__ = ["ConsumerGroup", "publish_data", "create_consumers"]


@dataclass(frozen=True)
class _Result:
    action: Action
    digest: int
    timestamp: int


def publish_data(ring: RingBuffer, path: str | os.PathLike[str]) -> None:
    """Feed every packet of the file at ``path`` into ``ring``, then stop it.

    Raises :class:`ValueError` if the file ends with a partial packet.  The
    ring is stopped in every case, so waiting consumers always finish.
    """
    if ring.capacity < PKT_SZ:
        raise ValueError(f"ring capacity must be at least {PKT_SZ} bytes")
    try:
        with open(path, "rb") as stream:
            size = os.fstat(stream.fileno()).st_size
            with ring.lock:
                ring.num_packets = size // PKT_SZ
            while chunk := stream.read(PKT_SZ):
                if len(chunk) != PKT_SZ:
                    raise ValueError("packet truncated")
                with ring.not_full:
                    while ring.free_space < PKT_SZ:
                        ring.not_full.wait()
                    ring.enqueue(chunk)
                    ring.not_empty.notify()
    finally:
        ring.stop()


class ConsumerGroup:
    """Consumer threads that share a ring buffer and an output file."""

    def __init__(
        self, num_consumers: int, ring: RingBuffer, out_path: str | os.PathLike[str]
    ) -> None:
        if num_consumers < 1:
            raise ValueError("at least one consumer is required")
        self.ring = ring
        self.num_consumers = num_consumers
        self._out: TextIO = open(out_path, "w", encoding="ascii", newline="")
        self._slots: list[_Result | None] = [None] * num_consumers
        self._done = False
        self._barrier = threading.Barrier(num_consumers, action=self._flush)
        self._threads = [
            threading.Thread(
                target=self._run, args=(index,), name=f"consumer-{index}", daemon=True
            )
            for index in range(num_consumers)
        ]

    def _start(self) -> None:
        for thread in self._threads:
            thread.start()

    def _take(self) -> bytes | None:
        ring = self.ring
        with ring.not_empty:
            while not len(ring) and not ring.done:
                ring.not_empty.wait()
            if ring.done and not len(ring):
                return None
            try:
                data = ring.dequeue(PKT_SZ)
            except RingBufferError:
                return None
            ring.not_full.notify()
            return data

    def _run(self, index: int) -> None:
        while True:
            data = self._take()
            if data is None:
                self._slots[index] = None
            else:
                packet = Packet.from_bytes(data)
                self._slots[index] = _Result(
                    process_packet(packet), packet_hash(packet), packet.timestamp
                )
            self._barrier.wait()
            if self._done:
                break

    def _flush(self) -> None:
        """Runs once per round, while every consumer waits at the barrier."""
        results = sorted(
            (slot for slot in self._slots if slot is not None),
            key=lambda result: result.timestamp,
        )
        with self.ring.lock:
            count = min(self.ring.num_packets, self.num_consumers)
            self.ring.num_packets -= count
        if count < self.num_consumers or not results:
            self._done = True
        for result in results[:count]:
            self._out.write(
                format_result(result.action, result.digest, result.timestamp)
            )

    def join(self) -> None:
        """Wait for every consumer to finish and close the output file."""
        for thread in self._threads:
            if thread.is_alive() or thread.ident is not None:
                thread.join()
        if not self._out.closed:
            self._out.close()


def create_consumers(
    num_consumers: int, ring: RingBuffer, out_path: str | os.PathLike[str]
) -> ConsumerGroup:
    """Open (truncating) ``out_path`` and start ``num_consumers`` consumers."""
    group = ConsumerGroup(num_consumers, ring, out_path)
    group._start()
    return group