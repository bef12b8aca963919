"""Byte-at-a-time EBML stream parser matching the generated C parser."""

from __future__ import annotations

import argparse
import enum
import sys
from collections.abc import Iterable

from ebmlgen.codegen import (
    DEFAULT_LIBRARY_NAME,
    DEFAULT_SCHEMA_FILE,
    capitalize,
)
from ebmlgen.codegen import state_name as _state_name
from ebmlgen.schema import SchemaError, load_schema

DEFAULT_PREFIX = capitalize(DEFAULT_LIBRARY_NAME)


class _Phase(enum.IntEnum):
    START = 0
    ID = 1
    SIZE = 2
    DATA = 3


def _check_byte(byte: int) -> None:
    if not 0 <= byte <= 0xFF:
        raise ValueError(f"not a byte: {byte}")


def vint_length(byte: int) -> int:
    """Length in bytes of the variable-size integer starting with byte."""
    _check_byte(byte)
    if byte == 0:
        raise ValueError("zero byte in vint_length")
    length = 1
    mark = 0x80
    while not mark & byte:
        length += 1
        mark >>= 1
    return length


class StreamParser:
    """Tracks the state of an EBML stream as bytes arrive one by one."""

    def __init__(self, element_count: int, prefix: str = DEFAULT_PREFIX) -> None:
        if element_count < 1:
            raise ValueError("a parser needs at least one element")
        self.element_count = element_count
        self.prefix = prefix
        self.element = 0
        self.phase = _Phase.START
        self.bytes_left = 0
        self.finished = False

    def feed(self, byte: int) -> None:
        """Advance the parser by one byte."""
        if self.finished:
            raise RuntimeError("byte fed after end of stream")
        _check_byte(byte)
        if self.phase is _Phase.START:
            self.bytes_left = vint_length(byte) - 1
            self.phase = _Phase.ID
        elif self.phase is _Phase.ID:
            if self.bytes_left == 0:
                self.bytes_left = vint_length(byte) - 1
                self.phase = _Phase.SIZE
            else:
                self.bytes_left -= 1
        elif self.phase is _Phase.SIZE:
            if self.bytes_left == 0:
                raise NotImplementedError(f"0 bytes left for {self.state_name()}")
            self.bytes_left -= 1
        else:
            raise NotImplementedError(self.state_name())

    def feed_all(self, data: Iterable[int]) -> None:
        """Feed every byte of data in order."""
        for byte in data:
            self.feed(byte)

    def eof(self) -> None:
        """Signal the end of the stream; further bytes are refused."""
        self.finished = True

    def state_name(self) -> str:
        """Name of the current state."""
        return _state_name(self.prefix, self.element, int(self.phase))

    def describe(self) -> str:
        """Human-readable report of the parser state."""
        return "\n".join(
            (
                "[INFO] Parser",
                f"[INFO]   state = {self.state_name()}",
                f"[INFO]   bytes_left = {self.bytes_left}",
            )
        )


def main(argv: list[str] | None = None) -> int:
    """Run the stream parser over a file, reporting each step."""
    arg_parser = argparse.ArgumentParser(
        prog="ebmlgen-parse", description="Trace the EBML stream parser over a file."
    )
    arg_parser.add_argument("filename", nargs="?", help="file to parse")
    arg_parser.add_argument("--schema", default=DEFAULT_SCHEMA_FILE, help="schema XML file")
    args = arg_parser.parse_args(argv)

    if args.filename is None:
        print(f"Usage: {arg_parser.prog} <filename>")
        return 0

    try:
        with open(args.filename, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        print(f"[ERROR] Could not open file '{args.filename}': {exc.strerror}")
        return 1

    try:
        elements = load_schema(args.schema)
    except SchemaError as exc:
        print(f"[ERROR] {exc}")
        return 1

    parser = StreamParser(len(elements))
    print(parser.describe())
    try:
        for byte in data:
            print(f"[INFO] read byte 0x{byte:X}")
            parser.feed(byte)
            print(parser.describe())
    except (NotImplementedError, ValueError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    parser.eof()
    return 0


if __name__ == "__main__":
    sys.exit(main())