"""Generate a single-header C stream parser from an EBML element table."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

from ebmlgen.schema import MAX_TEXT_LENGTH, Element, SchemaError, load_schema

DEFAULT_SCHEMA_FILE = "example.xml"
DEFAULT_LIBRARY_NAME = "libexample"
DEFAULT_OUTPUT_DIR = "build"

STATES = ("START", "ID", "SIZE", "DATA")
START_STATE = 0


def _short(text: str) -> str:
    """Reject generated names longer than the generator allows."""
    if len(text) > MAX_TEXT_LENGTH:
        raise ValueError(f"generated text longer than {MAX_TEXT_LENGTH} characters: {text!r}")
    return text


def capitalize(text: str) -> str:
    """Upper-case the ASCII letters of text, leaving everything else alone."""
    return "".join(chr(ord(c) - 32) if "a" <= c <= "z" else c for c in text)


def state_name(prefix: str, element_index: int, state_index: int) -> str:
    """Name of the parser state for one element and one step."""
    if element_index < 0:
        raise ValueError(f"element index must not be negative, got {element_index}")
    if not 0 <= state_index < len(STATES):
        raise ValueError(f"state index must be below {len(STATES)}, got {state_index}")
    return _short(f"{prefix}_E{element_index}_{STATES[state_index]}")


def generate_header(elements: Iterable[Element], library_name: str = DEFAULT_LIBRARY_NAME) -> str:
    """Return the text of the generated C header for the given elements."""
    element_list = list(elements)
    if not element_list:
        raise ValueError("at least one element is required")

    prefix = _short(library_name)
    caps = capitalize(prefix)
    include_guard = capitalize(_short(f"{prefix}_H"))
    implementation_guard = capitalize(_short(f"{prefix}_IMPLEMENTATION"))
    byte_type = _short(f"{prefix}_byte_t")
    parser_type = _short(f"{prefix}_parser_t")
    return_type = _short(f"{prefix}_return_t")
    state_type = _short(f"{prefix}_state")
    init_sig = _short(f"void {prefix}_init({parser_type} *p)")
    parse_sig = _short(f"{return_type} {prefix}_parse({parser_type} *p, {byte_type} b)")
    eof_sig = _short(f"{return_type} {prefix}_eof({parser_type} *p)")
    print_sig = _short(f"void {prefix}_print({parser_type} *p)")

    def state(element_index: int, state_index: int) -> str:
        return state_name(caps, element_index, state_index)

    all_states = [
        state(i, j) for i in range(len(element_list)) for j in range(len(STATES))
    ]

    lines: list[str] = []

    def emit(text: str = "", depth: int = 0) -> None:
        lines.append(" " * (depth * 4) + text)

    emit(f"#ifndef {include_guard}")
    emit(f"#define {include_guard}")
    emit()

    emit(f"typedef unsigned char {byte_type};")
    emit()
    emit("typedef enum {")
    emit(f"{caps}_OK = 0,", 1)
    emit(f"}} {return_type};")
    emit()
    emit("typedef enum {")
    for name in all_states:
        emit(f"{name},", 1)
    emit(f"}} {state_type};")
    emit()
    emit("const char *state_as_string[] = {")
    for name in all_states:
        emit(f'[{name}] = "{name}",', 1)
    emit("};")
    emit()
    emit("typedef struct {")
    emit(f"{state_type} state;", 1)
    emit("size_t bytes_left;", 1)
    emit(f"}} {parser_type};")
    emit()
    for signature in (init_sig, parse_sig, eof_sig, print_sig):
        emit(f"{signature};")
    emit()
    emit(f"#endif // {include_guard}")
    emit()
    emit(f"#ifdef {implementation_guard}")
    emit()

    emit(f"size_t vint_length({byte_type} b) {{")
    emit('if (b == 0) UNIMPLEMENTED("zero byte in vint_length");', 1)
    emit("size_t acc = 1;", 1)
    emit(f"for ({byte_type} mark = 0x80; (mark & b) == 0; mark>>=1) acc++;", 1)
    emit("return acc;", 1)
    emit("}")
    emit()
    emit(f"{init_sig} {{")
    emit()
    emit(f"p->state = {state(0, START_STATE)};", 1)
    emit("p->bytes_left = 0;", 1)
    emit("}")
    emit()
    emit()
    emit(f"{parse_sig} {{")
    emit()
    emit("    switch (p->state) {")
    for i in range(len(element_list)):
        emit(f"        case {state(i, 0)}:")
        emit("            p->bytes_left = vint_length(b) - 1;")
        emit(f"            p->state = {state(i, 1)};")
        emit("            break;")
        emit(f"        case {state(i, 1)}:")
        emit("            if (p->bytes_left == 0) {")
        emit("                p->bytes_left = vint_length(b) - 1;")
        emit(f"                p->state = {state(i, 2)};")
        emit("            } else {")
        emit("                p->bytes_left--;")
        emit("            }")
        emit("            break;")
        emit(f"        case {state(i, 2)}:")
        emit("            if (p->bytes_left == 0) {")
        emit(f'                UNIMPLEMENTED("0 bytes left for {state(i, 2)}");')
        emit("            } else {")
        emit("                p->bytes_left--;")
        emit("            }")
        emit("            break;")
        emit(f"        case {state(i, 3)}:")
        emit(f'            UNIMPLEMENTED("{state(i, 3)}");')
    emit("    }")
    emit(f"    return {caps}_OK;")
    emit("}")
    emit()
    emit(f"{eof_sig} {{")
    emit("    UNUSED(p);")
    emit(f"    return {caps}_OK;")
    emit("}")
    emit()
    emit(f"{print_sig} {{")
    emit('    printf("[INFO] Parser\\n");')
    emit('    printf("[INFO]   state = %s\\n", state_as_string[p->state]);')
    emit('    printf("[INFO]   bytes_left = %zu\\n", p->bytes_left);')
    emit("}")
    emit()
    emit(f"#endif // {implementation_guard}")

    return "\n".join(lines) + "\n"


def write_header(
    elements: Iterable[Element],
    library_name: str = DEFAULT_LIBRARY_NAME,
    directory: str | Path = DEFAULT_OUTPUT_DIR,
) -> Path:
    """Write the generated header into directory and return its path."""
    text = generate_header(elements, library_name)
    target = Path(directory) / f"{library_name}.h"
    target.write_text(text, encoding="utf-8")
    return target


def main(argv: list[str] | None = None) -> int:
    """Read a schema and write the generated parser header."""
    arg_parser = argparse.ArgumentParser(
        prog="ebmlgen", description="Generate a C stream parser header from an EBML schema."
    )
    arg_parser.add_argument("--schema", default=DEFAULT_SCHEMA_FILE, help="schema XML file")
    arg_parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR, help="output directory")
    arg_parser.add_argument("--name", default=DEFAULT_LIBRARY_NAME, help="library name")
    args = arg_parser.parse_args(argv)

    logging.basicConfig(stream=sys.stdout, level=logging.INFO, format="[%(levelname)s] %(message)s")

    try:
        elements = load_schema(args.schema)
    except SchemaError as exc:
        print(f"[ERROR] {exc}")
        return 1

    try:
        write_header(elements, args.name, args.output_dir)
    except OSError as exc:
        target = Path(args.output_dir) / f"{args.name}.h"
        print(f"[ERROR] Could not open file '{target}': {exc.strerror}")
        return 1
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())