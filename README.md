# ebmlgen

`ebmlgen` reads an EBML element schema written in XML. From that schema it
writes a single C header. The header holds a small state machine that reads
an EBML stream one byte at a time. The package also has a Python
`StreamParser` that steps through the same states, so you can trace a stream
without compiling anything.

## Installation

```
pip install .
```

To run the tests, install the test extra with `pip install .[test]`.

## The schema

The schema is an XML file. In it, each `<element>` tag carries these
attributes:

- `name` and `path`
- `id`, written in hexadecimal
- `type`, one of `master`, `uinteger`, `utf-8`, `string`, `date` or `binary`
- `range`, which is optional and may be a plain decimal integer only

The table always starts with the standard EBML header elements: `EBML`,
`EBMLVersion` and `EBMLReadVersion`. When a schema element has the same id as
an element already in the table, it replaces that element, and a
"redefining element" message is logged. The table holds at most 32 elements.

Reading the schema raises `ebmlgen.schema.SchemaError` when:

- the file cannot be opened
- the XML is malformed or holds processing instructions
- a type is unknown
- an id or range is malformed
- the table is full

## Generating a header

```
ebmlgen [--schema example.xml] [--output-dir build] [--name libexample]
```

The defaults read `example.xml` and write `build/libexample.h`. The output
directory must already exist. When something fails, the command prints an
`[ERROR]` line and exits with status 1.

The generated header defines the byte, return, state and parser types, and
the `<name>_init`, `<name>_parse`, `<name>_eof` and `<name>_print` functions.
These functions are compiled only when `<NAME>_IMPLEMENTATION` is defined.
The generated code uses `printf` and the `UNUSED` and `UNIMPLEMENTED` macros,
so the file that includes it must supply all three.

You can do the same from Python:

```python
from ebmlgen.schema import load_schema
from ebmlgen.codegen import generate_header, write_header

elements = load_schema("example.xml")
source = generate_header(elements, "libexample")   # header text
path = write_header(elements, "libexample", "build")  # build/libexample.h
```

## Tracing a stream

```
ebmlgen-parse test.mkv [--schema example.xml]
```

The command loads the schema to size the parser, then reads the file. Before
the first byte, and again after each byte, it prints the parser's state and
the number of bytes left. Before feeding each byte, it prints the byte itself.
Run with no file name, it prints a usage line.

From Python:

```python
from ebmlgen.parser import StreamParser, vint_length

parser = StreamParser(element_count=3)
parser.feed_all(b"\x1a\x45\xdf\xa3")
print(parser.state_name())   # LIBEXAMPLE_E0_ID
print(parser.describe())
vint_length(0x1A)            # 4
```

## What it does not do

The state machine, both in the header and in `StreamParser`, only follows an
element's ID and the length of its size field. It does not:

- decode element data or values
- move on to the next element
- check values against their ranges or types

Two cases raise `NotImplementedError`:

- reaching the data state
- a size with no bytes left

A zero byte where a variable-size integer should start raises `ValueError`.