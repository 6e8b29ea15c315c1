"""Removal of CTC blank symbols from the output tape of lattices.

A CTC decoder emits a blank between symbols and may repeat a symbol over
consecutive frames. The collapsed transcript drops the blanks and keeps one
symbol per run of repeats, where a blank ends a run. Here that rule is built as
a small transducer (the filter) over exactly the symbols the lattice uses, and
applied with a single composition:

    output = connect(compose(lattice, filter))

Filter states: 0 is the home state (nothing emitted yet, or last read a
blank), and state k remembers that the last symbol read was the k-th symbol.
"""

import logging
from typing import Dict, Optional, Union

from ctcblank.atomic import EPSILON
from ctcblank.lattice import Lattice
from ctcblank import algorithms
from ctcblank._private.exceptions import CyclicLatticeError, InvalidBlankError, NotAcceptorError

logger = logging.getLogger(__file__)


def parse_blank_symbol(blank: Union[str, int]) -> int:
    """Turn a command line string (or an int) into a blank label, raising
       InvalidBlankError for anything that is not a positive integer."""
    if isinstance(blank, bool):
        raise InvalidBlankError(f"Blank symbol must be an integer, got {blank!r}")
    if isinstance(blank, str):
        try:
            blank = int(blank.strip())
        except ValueError:
            raise InvalidBlankError(f"String \"{blank}\" cannot be converted to an integer") from None
    if not isinstance(blank, int):
        raise InvalidBlankError(f"Blank symbol must be an integer, got {blank!r}")
    if blank == EPSILON:
        raise InvalidBlankError("Symbol 0 is reserved for epsilon!")
    if blank < 0:
        raise InvalidBlankError(f"Blank symbol must be positive, got {blank}")
    return blank


def collect_alphabet(lattice: Lattice, blank: int) -> Dict[int, int]:
    """Map every output label other than blank and epsilon to a filter state,
       numbered from 1 in the order the labels are first seen."""
    symbol2state: Dict[int, int] = {}
    for _, _, t in lattice.all_transitions():
        o = t.olabel
        if o != blank and o != EPSILON and o not in symbol2state:
            symbol2state[o] = len(symbol2state) + 1
    return symbol2state


def build_filter(symbol2state: Dict[int, int], blank: int) -> Lattice:
    """Build the transducer that deletes blanks and repeated symbols.

    Every state is final with weight 0.0 and every arc has weight 0.0, so the
    filter only rewrites output labels. For each symbol s at state k:

        0 --s:s--> k        first symbol of a run is emitted
        k --s:0--> k        repeats are swallowed
        k --blank:0--> 0    a blank ends the run
        k --s2:s2--> k2     a different symbol starts its own run

    plus the self-loop 0 --blank:0--> 0.
    """
    fltr = Lattice()
    for _ in range(len(symbol2state) + 1):
        fltr.add_state(finalweight=0.0)
    fltr.set_start(0)
    fltr.add_arc(0, 0, blank, EPSILON)
    for symbol, state in symbol2state.items():
        fltr.add_arc(0, state, symbol, symbol)
        fltr.add_arc(state, state, symbol, EPSILON)
        fltr.add_arc(state, 0, blank, EPSILON)
        for other, otherstate in symbol2state.items():
            if other != symbol:
                fltr.add_arc(state, otherstate, other, other)
    return fltr


def validate_lattice(lattice: Lattice, key: Optional[str] = None):
    """Raise NotAcceptorError or CyclicLatticeError, in that order, if the
       lattice cannot be filtered."""
    if not lattice.is_acceptor():
        raise NotAcceptorError(key)
    if not lattice.is_acyclic():
        if logger.isEnabledFor(logging.DEBUG):
            loops = [sorted(c) for c in algorithms.scc(lattice)
                     if len(c) > 1 or any(next(iter(c)) in lattice.states[s].all_targets() for s in c)]
            logger.debug(f"Lattice {key}: states on cycles {loops}")
        raise CyclicLatticeError(key)


def remove_ctc_blank(lattice: Lattice, blank: int, key: Optional[str] = None) -> Lattice:
    """Return a new lattice whose output tape has CTC blanks and repeats removed.

    The input tape and all path weights are unchanged; states that are not on
    an accepting path are trimmed from the result. The input lattice must
    be an acyclic acceptor; key is only used to name it in errors and logs.
    """
    blank = parse_blank_symbol(blank)
    validate_lattice(lattice, key)
    symbol2state = collect_alphabet(lattice, blank)
    fltr = build_filter(symbol2state, blank)
    logger.debug(f"Lattice {key}: {len(lattice)} states, {lattice.arccount()} arcs, "
                 f"filter with {len(fltr)} states")
    out = lattice.compose(fltr).connect()
    logger.debug(f"Lattice {key}: result has {len(out)} states, {out.arccount()} arcs")
    return out
