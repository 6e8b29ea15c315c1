"""Keyed lattice tables in Kaldi's text archive form.

A table is named by a specifier such as ``ark:lats.txt``, ``ark,t:-`` or
``ark:lats.txt.gz``: the part before ``:`` is the table type followed by
comma separated options, the rest is a path where ``-`` means stdin/stdout.
A specifier without a recognised prefix is a plain file, which the tools here
refuse to treat as a table.

Each archive entry is the key on a line of its own, then the lattice body, then
an empty line::

    utt1
    0	1	5	5	0.5
    1	2	3	3	1.25,0.5
    2	0

Arc lines are ``src dst ilabel olabel [weight]`` and final lines are
``state [weight]``; the source of the first line is the start state. A weight
written as ``graph,acoustic`` (Kaldi's lattice weight) is read as the sum of
the two costs.
"""

import gzip
import logging
import sys
from typing import Iterator, List, NamedTuple, Optional, TextIO, Tuple

from ctcblank.lattice import Lattice
from ctcblank._private.exceptions import ArchiveFormatError, UnsupportedSpecifierError

logger = logging.getLogger(__file__)

TABLE_TYPES = ("ark", "scp")
READ_OPTIONS = {"t", "b", "o", "s", "cs", "p", "ns", "nol", "bg"}
WRITE_OPTIONS = {"t", "b", "f", "nf", "p"}


class TableSpecifier(NamedTuple):
    kind: Optional[str]        # "ark", "scp", or None for a plain file
    options: Tuple[str, ...]
    path: str


def _classify(spec: str, allowed: set) -> TableSpecifier:
    prefix, sep, path = spec.partition(":")
    if not sep:
        return TableSpecifier(None, (), spec)
    fields = [f.strip() for f in prefix.split(",")]
    kinds = [f for f in fields if f in TABLE_TYPES]
    if len(kinds) != 1:
        # Something like "C:\lats" or "foo:bar" is a filename, not a table
        return TableSpecifier(None, (), spec)
    options = tuple(f for f in fields if f not in TABLE_TYPES)
    unknown = [o for o in options if o not in allowed]
    if unknown:
        raise UnsupportedSpecifierError(f"Unknown option(s) {','.join(unknown)} in specifier \"{spec}\"")
    return TableSpecifier(kinds[0], options, path)


def classify_rspecifier(spec: str) -> TableSpecifier:
    """Split a read specifier into table type, options and path."""
    return _classify(spec, READ_OPTIONS)


def classify_wspecifier(spec: str) -> TableSpecifier:
    """Split a write specifier into table type, options and path."""
    return _classify(spec, WRITE_OPTIONS)


def _check_supported(spec: TableSpecifier, text: str):
    if spec.kind is None:
        raise UnsupportedSpecifierError(
            f"Not implemented! Both input and output lattices must be tables, got \"{text}\"")
    if spec.kind == "scp":
        raise UnsupportedSpecifierError(f"Script tables are not supported: \"{text}\"")
    if "b" in spec.options:
        raise UnsupportedSpecifierError(f"Binary archives are not supported: \"{text}\"")
    if not spec.path:
        raise UnsupportedSpecifierError(f"Empty path in specifier \"{text}\"")


# ==================
# Text (de)serialization
# ==================

def parse_weight(field: str) -> float:
    """A tropical weight, or a Kaldi graph,acoustic pair read as its total cost."""
    return sum(float(w) for w in field.split(",") if w != "")


def lattice_to_text(lattice: Lattice) -> str:
    """The lattice body in AT&T text form, start state first."""
    return str(lattice)


def lattice_from_text(lines: List[str], key: Optional[str] = None, first_line_number: int = 1) -> Lattice:
    """Parse the body lines of one lattice (no key, no terminating empty line)."""
    lattice = Lattice()
    for line_number, line in enumerate(lines, first_line_number):
        fields = line.split()
        if not fields:
            continue
        if len(fields) not in (1, 2, 4, 5):
            raise ArchiveFormatError(f"Expected 1, 2, 4 or 5 fields, got {len(fields)}", line_number, key)
        is_arc = len(fields) >= 4
        try:
            states = [int(f) for f in fields[:2 if is_arc else 1]]
            labels = [int(f) for f in fields[2:4]] if is_arc else []
            weight = parse_weight(fields[-1]) if len(fields) in (2, 5) else 0.0
        except ValueError as e:
            raise ArchiveFormatError(f"Bad number in \"{line.strip()}\": {e}", line_number, key) from None
        if min(states) < 0:
            raise ArchiveFormatError("Negative state id", line_number, key)
        while len(lattice.states) <= max(states):
            lattice.add_state()
        if lattice.initialstate is None:
            lattice.set_start(states[0])
        if is_arc:
            lattice.add_arc(states[0], states[1], labels[0], labels[1], weight)
        else:
            lattice.set_final(states[0], weight)
    return lattice


# ==================
# Readers and writers
# ==================

def _open_read(path: str) -> Tuple[TextIO, bool]:
    if path == "-":
        return sys.stdin, False
    if path.endswith(".gz"):
        return gzip.open(path, "rt", encoding="utf-8"), True
    return open(path, "rt", encoding="utf-8"), True


def _open_write(path: str) -> Tuple[TextIO, bool]:
    if path == "-":
        return sys.stdout, False
    if path.endswith(".gz"):
        return gzip.open(path, "wt", encoding="utf-8"), True
    return open(path, "wt", encoding="utf-8"), True


class SequentialLatticeReader:
    """Iterate over the (key, Lattice) entries of a text archive, one at a time.

    Usable as a context manager; the file is opened on construction.
    """

    def __init__(self, rspecifier: str):
        self.rspecifier = rspecifier
        self.spec = classify_rspecifier(rspecifier)
        _check_supported(self.spec, rspecifier)
        try:
            self._fh, self._owned = _open_read(self.spec.path)
        except OSError as e:
            raise OSError(f"Error opening table {rspecifier} for reading: {e}") from e
        logger.debug(f"Reading lattices from {self.spec.path}")
        self._line_number = 0

    def __iter__(self) -> Iterator[Tuple[str, Lattice]]:
        key, body, body_start = None, [], 0
        for line in self._fh:
            self._line_number += 1
            line = line.rstrip("\n")
            if key is None:
                if not line.strip():
                    continue
                fields = line.split()
                if len(fields) != 1:
                    raise ArchiveFormatError(f"Expected a key on its own line, got \"{line.strip()}\"",
                                             self._line_number)
                key, body, body_start = fields[0], [], self._line_number + 1
            elif line.strip():
                body.append(line)
            else:
                yield key, lattice_from_text(body, key, body_start)
                key = None
        if key is not None:
            # Tolerate a missing empty line after the final entry
            yield key, lattice_from_text(body, key, body_start)

    def close(self):
        if self._owned:
            self._fh.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class LatticeWriter:
    """Write keyed lattices to a text archive, in the order given."""

    def __init__(self, wspecifier: str):
        self.wspecifier = wspecifier
        self.spec = classify_wspecifier(wspecifier)
        _check_supported(self.spec, wspecifier)
        self.flush_each = "f" in self.spec.options
        try:
            self._fh, self._owned = _open_write(self.spec.path)
        except OSError as e:
            raise OSError(f"Error opening table {wspecifier} for writing: {e}") from e
        logger.debug(f"Writing lattices to {self.spec.path}")

    def write(self, key: str, lattice: Lattice):
        if not key or any(c.isspace() for c in key):
            raise ValueError(f"Invalid table key {key!r}: must be non-empty without whitespace")
        self._fh.write(f"{key}\n{lattice_to_text(lattice)}\n")
        if self.flush_each:
            self._fh.flush()

    __setitem__ = write

    def close(self):
        if self._owned:
            self._fh.close()
        else:
            self._fh.flush()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def read_archive(rspecifier: str) -> List[Tuple[str, Lattice]]:
    """Read every entry of an archive into a list."""
    with SequentialLatticeReader(rspecifier) as reader:
        return list(reader)


def write_archive(wspecifier: str, entries) -> int:
    """Write (key, Lattice) pairs and return how many were written."""
    count = 0
    with LatticeWriter(wspecifier) as writer:
        for key, lattice in entries:
            writer.write(key, lattice)
            count += 1
    return count
