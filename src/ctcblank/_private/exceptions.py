from typing import Optional


class LatticeError(Exception):
    """Base class for all errors raised by ctcblank."""


class InvalidBlankError(LatticeError, ValueError):
    """The blank symbol is not a usable (non-epsilon, positive integer) label."""


class _KeyedLatticeError(LatticeError):
    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        if key is not None:
            message = f"Lattice {key} {message}"
        else:
            message = f"Lattice {message}"
        super().__init__(message)


class NotAcceptorError(_KeyedLatticeError):
    """An arc has different input and output labels."""
    def __init__(self, key: Optional[str] = None):
        super().__init__("is not an acceptor", key)


class CyclicLatticeError(_KeyedLatticeError):
    """A cycle is reachable from the start state."""
    def __init__(self, key: Optional[str] = None):
        super().__init__("is not acyclic", key)


class UnsupportedSpecifierError(LatticeError):
    """A table specifier names something other than a text archive."""


class ArchiveFormatError(LatticeError):
    """Malformed text in a lattice archive."""
    def __init__(self, message: str, line_number: Optional[int] = None, key: Optional[str] = None):
        self.line_number = line_number
        self.key = key
        where = []
        if key is not None:
            where.append(f"entry {key}")
        if line_number is not None:
            where.append(f"line {line_number}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)
