"""EBML schema model and reader for XML schema files."""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from xml.parsers import expat

logger = logging.getLogger(__name__)

MAX_ELEMENTS = 32
MAX_TEXT_LENGTH = 127
UINT64_MAX = 2**64 - 1

_ATTRIBUTE_KEYS = ("name", "path", "id", "type", "range")


class SchemaError(Exception):
    """Raised when a schema cannot be read or does not fit the model."""


class ElementType(enum.Enum):
    """Data types an EBML element may carry."""

    MASTER = "master"
    UINTEGER = "uinteger"
    UTF_8 = "utf-8"
    STRING = "string"
    DATE = "date"
    BINARY = "binary"


class RangeKind(enum.Enum):
    """Shapes a value range constraint may take."""

    NONE = enum.auto()
    UPPER_BOUND = enum.auto()
    LOWER_BOUND = enum.auto()
    UPLOW_BOUND = enum.auto()
    EXACT = enum.auto()
    EXCLUDED = enum.auto()


@dataclass(frozen=True)
class Range:
    """A constraint on an element's value."""

    kind: RangeKind = RangeKind.NONE
    lo: int = 0
    lo_in: bool = False
    hi: int = 0
    hi_in: bool = False

    def has_upper_bound(self) -> bool:
        """Whether the range limits values from above."""
        return self.kind in (RangeKind.UPPER_BOUND, RangeKind.UPLOW_BOUND, RangeKind.EXACT)

    def upper_bound(self) -> int:
        """The largest value the range admits."""
        if not self.has_upper_bound():
            raise ValueError(f"range of kind {self.kind.name} has no upper bound")
        if self.kind is RangeKind.EXACT:
            if self.hi != self.lo:
                raise ValueError("exact range with differing bounds")
            return self.hi
        if not self.hi_in:
            raise SchemaError("exclusive upper bounds are not supported")
        return self.hi


@dataclass(frozen=True)
class Element:
    """One element definition of an EBML schema."""

    name: str
    path: str
    id: int
    type: ElementType
    range: Range = field(default_factory=Range)


class ElementTable:
    """An ordered, bounded collection of element definitions keyed by id."""

    def __init__(self, elements: Iterable[Element] | None = None) -> None:
        self._elements: list[Element] = []
        for element in elements or ():
            self.append(element)

    def append(self, element: Element) -> None:
        """Add an element at the end, failing when the table is full."""
        if len(self._elements) >= MAX_ELEMENTS:
            raise SchemaError(f"element table is full ({MAX_ELEMENTS} elements)")
        self._elements.append(element)

    def insert(self, element: Element) -> None:
        """Replace the element with the same id, or append a new one."""
        for position, existing in enumerate(self._elements):
            if existing.id == element.id:
                logger.info("redefining element '%s'", existing.name)
                self._elements[position] = element
                return
        self.append(element)

    def __iter__(self) -> Iterator[Element]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __getitem__(self, index: int) -> Element:
        return self._elements[index]

    def __repr__(self) -> str:
        return f"ElementTable({self._elements!r})"


def parse_range(text: str) -> Range:
    """Parse a range attribute; only empty text and plain integers are supported."""
    if text == "":
        return Range(RangeKind.NONE)
    value = 0
    for char in text:
        if not ("0" <= char <= "9"):
            raise SchemaError(f"unsupported character {char!r} in range {text!r}")
        value = value * 10 + (ord(char) - ord("0"))
    if value > UINT64_MAX:
        raise SchemaError(f"range value {text!r} does not fit in 64 bits")
    return Range(RangeKind.EXACT, lo=value, hi=value)


def parse_type(text: str, element_name: str) -> ElementType:
    """Map a type attribute to an ElementType."""
    try:
        return ElementType(text)
    except ValueError:
        raise SchemaError(f"unknown type '{text}' in element '{element_name}'") from None


def _parse_id(text: str) -> int:
    digits = text.strip()
    try:
        value = int(digits, 16)
    except ValueError:
        raise SchemaError(f"could not parse id '{text}'") from None
    if value < 0 or value > UINT64_MAX:
        raise SchemaError(f"id '{text}' is out of range")
    return value


def build_element(attributes: Mapping[str, str]) -> Element:
    """Build an Element from its raw schema attributes."""
    name = attributes.get("name", "")
    return Element(
        name=name,
        path=attributes.get("path", ""),
        id=_parse_id(attributes.get("id", "")),
        type=parse_type(attributes.get("type", ""), name),
        range=parse_range(attributes.get("range", "")),
    )


def default_header() -> list[Element]:
    """The EBML header elements every schema starts from."""
    return [
        Element("EBML", "\\EBML", 0x1A45DFA3, ElementType.MASTER),
        Element(
            "EBMLVersion",
            "\\EBML\\EBMLVersion",
            0x4286,
            ElementType.UINTEGER,
            Range(RangeKind.EXCLUDED, lo=0, hi=0),
        ),
        Element(
            "EBMLReadVersion",
            "\\EBML\\EBMLReadVersion",
            0x42F7,
            ElementType.UINTEGER,
            Range(RangeKind.EXACT, lo=1, hi=1),
        ),
    ]


class _SchemaReader:
    """Collects element definitions from expat events."""

    def __init__(self) -> None:
        self.table = ElementTable(default_header())
        self._current: dict[str, str] | None = None

    def start(self, tag: str, attributes: dict[str, str]) -> None:
        if tag == "element":
            self._current = dict.fromkeys(_ATTRIBUTE_KEYS, "")
        if self._current is None:
            return
        for key, value in attributes.items():
            if key in self._current:
                combined = self._current[key] + value
                if len(combined) > MAX_TEXT_LENGTH:
                    raise SchemaError(
                        f"attribute '{key}' longer than {MAX_TEXT_LENGTH} characters"
                    )
                self._current[key] = combined

    def end(self, tag: str) -> None:
        if self._current is not None:
            self.table.insert(build_element(self._current))
            self._current = None

    def processing_instruction(self, target: str, data: str) -> None:
        raise SchemaError(f"processing instructions are not supported: {target!r}")


def parse_schema(text: str | bytes) -> ElementTable:
    """Read an XML schema and return the default header merged with its elements."""
    reader = _SchemaReader()
    parser = expat.ParserCreate()
    parser.StartElementHandler = reader.start
    parser.EndElementHandler = reader.end
    parser.ProcessingInstructionHandler = reader.processing_instruction
    try:
        parser.Parse(text, True)
    except expat.ExpatError as exc:
        raise SchemaError(f"malformed schema: {exc}") from exc
    return reader.table


def load_schema(path: str | os.PathLike[str]) -> ElementTable:
    """Read and parse the schema file at path."""
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise SchemaError(f"could not open file '{os.fspath(path)}': {exc.strerror}") from exc
    return parse_schema(data)