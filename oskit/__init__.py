"""Operating-system building blocks: allocator, printf, packet filter and shell executor."""

__version__ = "0.1.0"