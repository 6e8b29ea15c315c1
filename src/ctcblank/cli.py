#!/usr/bin/env python3
"""Command line tools.

lattice-remove-ctc-blank: remove CTC blank symbols from the output labels of
lattices in a table.

lattice-draw: render the lattices of a table with Graphviz.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from tqdm import tqdm

from ctcblank.ctc import parse_blank_symbol, remove_ctc_blank
from ctcblank.table import LatticeWriter, SequentialLatticeReader
from ctcblank._private.exceptions import CyclicLatticeError, LatticeError, NotAcceptorError

logger = logging.getLogger(__file__)

REMOVE_BLANK_USAGE = """Remove CTC blank symbols from the output labels of lattices.

Usage: lattice-remove-ctc-blank [options] blank-symbol lat-rspecifier lat-wspecifier
 e.g.: lattice-remove-ctc-blank 32 ark:input.ark ark,t:output.ark"""


def _setup_logging(verbose: int, quiet: bool):
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, stream=sys.stderr,
                        format="%(levelname)s (%(filename)s:%(lineno)d) %(message)s")


def _add_logging_args(parser: argparse.ArgumentParser):
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="more logging (-v for INFO, -vv for DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true", help="only log errors")


def remove_blank_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lattice-remove-ctc-blank",
        description=REMOVE_BLANK_USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("args", nargs="*", metavar="arg",
                        help="blank-symbol lat-rspecifier lat-wspecifier")
    parser.add_argument("--skip-invalid", action="store_true",
                        help="skip lattices that are not acyclic acceptors instead of failing")
    parser.add_argument("--progress", action="store_true", help="show a progress bar")
    _add_logging_args(parser)
    return parser


def remove_blank(blank_str: str, rspecifier: str, wspecifier: str,
                 skip_invalid: bool = False, progress: bool = False) -> tuple:
    """Filter every lattice of a table into another table.

    Returns (done, failed). Without skip_invalid the first invalid lattice
    raises, leaving earlier entries written.
    """
    blank = parse_blank_symbol(blank_str)
    done, failed = 0, 0
    with SequentialLatticeReader(rspecifier) as reader, LatticeWriter(wspecifier) as writer:
        for key, lattice in tqdm(reader, desc="lattices", unit="lat", disable=not progress):
            try:
                out = remove_ctc_blank(lattice, blank, key=key)
            except (NotAcceptorError, CyclicLatticeError) as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping: {e}")
                failed += 1
                continue
            writer.write(key, out)
            done += 1
    logger.info(f"Done {done} lattices, failed {failed}")
    return done, failed


def remove_blank_main(argv: Optional[List[str]] = None) -> int:
    parser = remove_blank_parser()
    opts = parser.parse_args(argv)
    _setup_logging(opts.verbose, opts.quiet)
    if len(opts.args) != 3:
        parser.print_usage(sys.stderr)
        return 1
    try:
        remove_blank(*opts.args, skip_invalid=opts.skip_invalid, progress=opts.progress)
    except (LatticeError, OSError, ValueError) as e:
        logger.error(str(e))
        return 1
    return 0


def draw_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lattice-draw",
        description="Render the lattices of a table with Graphviz, one file per key.")
    parser.add_argument("rspecifier", help="lattices to draw, e.g. ark:output.txt")
    parser.add_argument("outdir", help="directory for the rendered files")
    parser.add_argument("--key", default=None, help="only draw the lattice with this key")
    parser.add_argument("--format", default="pdf", help="graphviz output format (pdf, png, svg, ...)")
    parser.add_argument("--symbols", default=None,
                        help="symbol table file with lines \"symbol id\" used to print labels")
    _add_logging_args(parser)
    return parser


def read_symbol_table(path: str) -> dict:
    """Read an OpenFST style symbol table into {id: symbol}."""
    symbols = {}
    with open(path, "rt", encoding="utf-8") as fh:
        for line in fh:
            fields = line.split()
            if len(fields) == 2:
                symbols[int(fields[1])] = fields[0]
    return symbols


def draw(rspecifier: str, outdir: str, key: Optional[str] = None, format: str = "pdf",
         symbols: Optional[dict] = None) -> List[str]:
    """Render lattices to outdir and return the paths written."""
    os.makedirs(outdir, exist_ok=True)
    rendered = []
    with SequentialLatticeReader(rspecifier) as reader:
        for k, lattice in reader:
            if key is not None and k != key:
                continue
            path = lattice.render(view=False, filename=os.path.join(outdir, k), format=format,
                                  symbols=symbols)
            logger.info(f"Rendered {k} to {path}")
            rendered.append(path)
    if key is not None and not rendered:
        raise KeyError(f"No lattice with key {key} in {rspecifier}")
    return rendered


def draw_main(argv: Optional[List[str]] = None) -> int:
    opts = draw_parser().parse_args(argv)
    _setup_logging(opts.verbose, opts.quiet)
    try:
        symbols = read_symbol_table(opts.symbols) if opts.symbols else None
        draw(opts.rspecifier, opts.outdir, key=opts.key, format=opts.format, symbols=symbols)
    except (LatticeError, OSError, KeyError, ValueError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(remove_blank_main())
