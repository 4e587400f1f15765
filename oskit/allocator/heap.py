"""A best-fit heap allocator working on a simulated address space.

Small requests are served from a break-extended region that starts with a
128 KiB preallocation and is managed as a doubly linked list of blocks, each
preceded by a 32-byte header.  Requests above the mapping threshold, and
zeroed requests of a page or more, get a region of their own.  Addresses are
plain integers; :meth:`Heap.read` and :meth:`Heap.write` access the bytes
behind them.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field

__all__ = [
    "ALIGNMENT",
    "META_SIZE",
    "PAGE_SIZE",
    "MMAP_THRESHOLD",
    "HEAP_BASE",
    "MMAP_BASE",
    "BlockStatus",
    "Block",
    "Heap",
    "align",
]

ALIGNMENT = 8
META_SIZE = 32
PAGE_SIZE = 4 * 1024
MMAP_THRESHOLD = 128 * 1024
HEAP_BASE = 0x0000_5555_5555_0000
MMAP_BASE = 0x0000_7F00_0000_0000

_MIN_SPLIT = META_SIZE + 1


def align(size: int) -> int:
    """Round ``size`` up to the allocation alignment."""
    if size < 0:
        raise ValueError("size must not be negative")
    return (size + ALIGNMENT - 1) & ~(ALIGNMENT - 1)


class BlockStatus(enum.IntEnum):
    """State of a block in the heap list."""

    FREE = 0
    ALLOC = 1
    MAPPED = 2


@dataclass(eq=False)
class Block:
    """Header of one block; ``address`` is where the header starts."""

    address: int
    size: int
    status: BlockStatus
    prev: Block | None = field(default=None, repr=False)
    next: Block | None = field(default=None, repr=False)

    @property
    def payload(self) -> int:
        """Address handed out to the caller."""
        return self.address + META_SIZE


class Heap:
    """An independent allocator with its own simulated memory."""

    def __init__(self) -> None:
        self._start: Block | None = None
        self._end: Block | None = None
        self._preallocated = False
        self._brk = bytearray()
        self._maps: dict[int, bytearray] = {}
        self._next_map = MMAP_BASE
        self._blocks: dict[int, Block] = {}

    # -- simulated system services -------------------------------------

    def _sbrk(self, increment: int) -> int:
        old_break = HEAP_BASE + len(self._brk)
        self._brk.extend(bytes(increment))
        return old_break

    def _mmap(self, length: int) -> int:
        address = self._next_map
        self._next_map += -(-length // PAGE_SIZE) * PAGE_SIZE
        self._maps[address] = bytearray(length)
        return address

    def _munmap(self, address: int) -> None:
        del self._maps[address]

    def _region(self, address: int, size: int) -> tuple[bytearray, int]:
        offset = address - HEAP_BASE
        if 0 <= offset and offset + size <= len(self._brk):
            return self._brk, offset
        for start, data in self._maps.items():
            offset = address - start
            if 0 <= offset and offset + size <= len(data):
                return data, offset
        raise ValueError(f"range {address:#x}+{size} is not mapped")

    # -- block list helpers --------------------------------------------

    def _register(self, block: Block) -> Block:
        self._blocks[block.payload] = block
        return block

    def _forget(self, block: Block) -> None:
        self._blocks.pop(block.payload, None)

    def _lookup(self, address: int) -> Block:
        try:
            return self._blocks[address]
        except KeyError:
            raise ValueError(f"{address:#x} was not returned by this heap") from None

    def _append(self, block: Block) -> None:
        block.next = None
        if self._end is None:
            block.prev = None
            self._start = block
        else:
            block.prev = self._end
            self._end.next = block
        self._end = block

    def _mmap_alloc(self, length: int) -> Block:
        address = self._mmap(length)
        return self._register(Block(address, length - META_SIZE, BlockStatus.MAPPED))

    def _fragment(self, node: Block, remaining: int, req: int) -> None:
        piece = Block(
            node.address + req,
            remaining - META_SIZE,
            BlockStatus.FREE,
            prev=node,
            next=node.next,
        )
        node.next = piece
        if piece.next is not None:
            piece.next.prev = piece
        node.size = req - META_SIZE
        if node is self._end:
            self._end = piece
        self._register(piece)

    def _absorb_next(self, block: Block) -> None:
        following = block.next
        assert following is not None
        block.size += META_SIZE + following.size
        block.next = following.next
        if following.next is not None:
            following.next.prev = block
        if following is self._end:
            self._end = block
        self._forget(following)

    def _find_fit(self, requested: int) -> Block | None:
        best: Block | None = None
        minimal = None
        for node in self.blocks():
            if node.status is BlockStatus.FREE and META_SIZE + node.size >= requested:
                remaining = META_SIZE + node.size - requested
                if minimal is None or remaining < minimal:
                    minimal = remaining
                    best = node
                    if remaining == 0:
                        break
        if best is not None and minimal is not None and minimal >= _MIN_SPLIT:
            self._fragment(best, minimal, requested)
        return best

    def _last_heap_block(self) -> Block | None:
        block = self._end
        while block is not None and block.status is BlockStatus.MAPPED:
            block = block.prev
        return block

    def _initialise(self, requested: int) -> Block:
        if requested <= MMAP_THRESHOLD and not self._preallocated:
            address = self._sbrk(MMAP_THRESHOLD)
            remaining = MMAP_THRESHOLD - requested
            self._preallocated = True
            block = self._register(
                Block(address, requested - META_SIZE, BlockStatus.ALLOC)
            )
            self._append(block)
            if remaining >= _MIN_SPLIT:
                self._fragment(block, remaining, requested)
            return block
        block = self._mmap_alloc(requested)
        self._append(block)
        return block

    def _copy(self, destination: int, source: int, size: int) -> None:
        if size:
            self.write(destination, self.read(source, size))

    # -- public interface ------------------------------------------------

    def blocks(self) -> Iterator[Block]:
        """Iterate over the blocks in list order."""
        block = self._start
        while block is not None:
            following = block.next
            yield block
            block = following

    def read(self, address: int, size: int) -> bytes:
        """Return ``size`` bytes starting at ``address``."""
        if size < 0:
            raise ValueError("size must not be negative")
        data, offset = self._region(address, size)
        return bytes(data[offset : offset + size])

    def write(self, address: int, data: bytes) -> None:
        """Store ``data`` starting at ``address``."""
        buffer, offset = self._region(address, len(data))
        buffer[offset : offset + len(data)] = data

    def malloc(self, size: int) -> int | None:
        """Allocate ``size`` bytes; ``None`` for a zero-sized request."""
        if size < 0:
            raise ValueError("size must not be negative")
        if not size:
            return None
        requested = META_SIZE + align(size)

        if not self._preallocated:
            return self._initialise(requested).payload

        block = self._find_fit(requested)
        if block is not None:
            block.status = BlockStatus.ALLOC
            return block.payload

        if requested > MMAP_THRESHOLD:
            block = self._mmap_alloc(requested)
            self._append(block)
            return block.payload

        last = self._last_heap_block()
        if last is not None and last.status is BlockStatus.FREE:
            self._sbrk(align(size) - last.size)
            last.size = align(size)
            last.status = BlockStatus.ALLOC
            return last.payload

        address = self._sbrk(requested)
        block = self._register(Block(address, align(size), BlockStatus.ALLOC))
        self._append(block)
        return block.payload

    def free(self, address: int | None) -> None:
        """Release the block at ``address``; ``None`` is ignored."""
        if address is None:
            return
        block = self._lookup(address)
        following, previous = block.next, block.prev

        if block.status is BlockStatus.MAPPED:
            if previous is not None:
                previous.next = following
            else:
                self._start = following
            if following is not None:
                following.prev = previous
            else:
                self._end = previous
            self._munmap(block.address)
            self._forget(block)
            if self._end is None or self._start is None:
                self._preallocated = False
            if (
                following is not None
                and previous is not None
                and previous.status is BlockStatus.FREE
                and following.status is BlockStatus.FREE
            ):
                self._absorb_next(previous)
            return

        block.status = BlockStatus.FREE
        if following is not None and following.status is BlockStatus.FREE:
            self._absorb_next(block)
        if previous is not None and previous.status is BlockStatus.FREE:
            self._absorb_next(previous)

    def calloc(self, nmemb: int, size: int) -> int | None:
        """Allocate ``nmemb * size`` zeroed bytes."""
        if nmemb < 0 or size < 0:
            raise ValueError("counts must not be negative")
        if not nmemb or not size:
            return None
        total = align(nmemb * size)

        if total + META_SIZE >= PAGE_SIZE:
            block = self._mmap_alloc(total + META_SIZE)
            self._append(block)
            return block.payload

        address = self.malloc(total)
        if address is not None:
            self.write(address, bytes(total))
        return address

    def realloc(self, address: int | None, size: int) -> int | None:
        """Resize the block at ``address`` to ``size`` bytes."""
        if size < 0:
            raise ValueError("size must not be negative")
        requested = align(size)

        if address is None:
            return self.malloc(size)
        if not requested:
            self.free(address)
            return None

        block = self._lookup(address)
        previous_size = block.size

        if block.status is BlockStatus.FREE:
            return None

        if block.status is BlockStatus.MAPPED and block.size != requested:
            moved = self.malloc(size)
            assert moved is not None
            self._copy(moved, address, min(previous_size, requested))
            self.free(address)
            return moved
        if block.size == requested:
            return address

        if requested < block.size:
            remaining = block.size - requested
            if remaining >= _MIN_SPLIT:
                self._fragment(block, remaining, requested + META_SIZE)
            block.status = BlockStatus.ALLOC
            return address

        if requested - block.size <= MMAP_THRESHOLD:
            if self._last_heap_block() is block:
                self._sbrk(requested - block.size)
                block.size = requested
                return address

        following = block.next
        if following is not None and following.status is BlockStatus.FREE:
            self._absorb_next(block)
            if block.size >= requested:
                remaining = block.size - requested
                if remaining >= _MIN_SPLIT:
                    self._fragment(block, remaining, requested + META_SIZE)
                return address

        moved = self.malloc(size)
        assert moved is not None
        self._copy(moved, address, min(previous_size, size))
        self.free(address)
        return moved