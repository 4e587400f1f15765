# oskit

Operating-system building blocks that can be read, run and tested from
Python. There are no third-party dependencies; Python 3.10 or later is
required. The shell executor uses `os.fork`, so it needs a POSIX system.

## Installing

```
pip install .
```

## Packages

### `oskit.cformat` – a compact printf family

`oskit.cformat.formatter` provides `printf`, `vprintf`, `sprintf`,
`snprintf`, `vsnprintf` and `fctprintf`. They support the flags
`0 - + space #`, a width and a precision (either may be `*`), the length
modifiers `hh h l ll t j z` and the conversions
`d i u x X o b f F e E g G c s p %`. Integer arguments are reduced to the
width of the C type the length modifier selects.

- `sprintf(fmt, *args)` returns the formatted text.
- `snprintf(count, fmt, *args)` and `vsnprintf(count, fmt, args)` return a
  pair: the text that fits in a buffer of `count` characters (including the
  terminator) and the length the full output would have had.
- `printf` / `vprintf` write to standard output and return the length.
- `fctprintf(out, fmt, *args)` passes each character to `out`.
- Too few arguments raise `ValueError`.

`oskit.cformat.numbers` holds the single-conversion helpers
`format_integer`, `format_fixed` and `format_exponent`, and the `Flags` set.
Like the fixed 32-character conversion buffers they imitate, they drop digits
that do not fit.

### `oskit.allocator` – a simulated heap

`oskit.allocator.heap.Heap` is a best-fit allocator over a simulated address
space. Small requests come from a break-extended region that starts with a
128 KiB preallocation; each block has a 32-byte header, sizes are aligned to
8 bytes (`align`), free blocks are split and coalesced. Requests above the
128 KiB threshold, and `calloc` requests of a page or more, get a mapped
region of their own.

- `malloc(size)`, `calloc(nmemb, size)`, `realloc(address, size)` return
  integer addresses; a zero-sized request returns `None`.
- `free(address)` releases a block; `None` is ignored, an unknown address
  raises `ValueError`.
- `read(address, size)` and `write(address, data)` access the bytes.
- `blocks()` iterates over the `Block` headers (`address`, `size`,
  `status` as a `BlockStatus`, `payload`).

### `oskit.firewall` – a packet filter

- `oskit.firewall.packet`: `Packet` (256 bytes: 32-bit source and
  destination, 64-bit timestamp, payload), `Packet.from_bytes`,
  `Packet.to_bytes`, `packet_hash`, `process_packet` (returns an `Action`,
  `PASS` or `DROP`, by source-address range) and `format_result`.
- `oskit.firewall.ring_buffer`: `RingBuffer`, a bounded byte FIFO with a
  shared lock and `not_empty` / `not_full` conditions; `enqueue`, `dequeue`
  and `stop`. Transfers that do not fit raise `RingBufferError`.
- `oskit.firewall.pipeline`: `publish_data(ring, path)` feeds the packets of
  a file into the ring (a partial final packet raises `ValueError`);
  `create_consumers(num_consumers, ring, out_path)` starts a
  `ConsumerGroup` of threads that write one result line per packet, each
  round sorted by timestamp; `ConsumerGroup.join()` waits for them and closes
  the output file.

### `oskit.shell` – command trees and their execution

- `oskit.shell.model`: `Word` (with `iter_parts` and `iter_words`),
  `SimpleCommand`, `Command`, `Operator` and `IOFlags`.
- `oskit.shell.words`: `get_word` joins the parts of a word, expanding
  variable parts from the environment; `get_argv` builds the argument list.
- `oskit.shell.display`: `format_command` returns an indented dump of a tree.
- `oskit.shell.executor`: `parse_command(command, level=0, father=None)`
  runs a tree and returns its exit status, or `SHELL_EXIT` for `exit` /
  `quit`. It handles `cd` (keeping `PWD` and `OLDPWD`), `NAME=value`
  assignments, external programs with `<`, `>`, `>>`, `2>`, `2>>` and
  `&>` redirections, and the operators `;`, `&&`, `||`, `|` and `&`.
  Piped and parallel branches run in forked copies of the shell.

## Command-line tools

Filter a packet file with a pool of consumer threads:

```
oskit-firewall <input-file> <output-file> <num-consumers:1-32>
```

Filter the same file one packet at a time:

```
oskit-serial <input-file> <output-file>
```

Each output line holds the verdict, the packet hash as 16 hexadecimal digits
and the packet timestamp, in the form `PASS <hash> <timestamp>`. Both tools
produce the same lines in the same order for the same input.

## Library use

```python
from oskit.cformat.formatter import sprintf
from oskit.allocator.heap import Heap
from oskit.firewall.packet import Packet, packet_hash, process_packet, format_result

text = sprintf("%-8s|%05d|%.2f", "id", 42, 3.14159)

heap = Heap()
address = heap.malloc(100)
heap.write(address, b"hello")
data = heap.read(address, 5)
heap.free(address)

packet = Packet(source=0xF1000001, dest=1, timestamp=7)
line = format_result(process_packet(packet), packet_hash(packet), packet.timestamp)
```

## What is not included

The shell has no command-line parser and no interactive prompt: command
trees are built directly from the `oskit.shell.model` classes and run with
`parse_command`. There is no shell command to install.

## Running the tests

```
pip install .[test]
pytest
```