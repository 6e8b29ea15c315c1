from ctcblank.lattice import Lattice
from ctcblank.ctc import remove_ctc_blank, collect_alphabet, build_filter, validate_lattice, parse_blank_symbol
from ctcblank.table import SequentialLatticeReader, LatticeWriter, read_archive, write_archive
from ctcblank._private.exceptions import (LatticeError, InvalidBlankError, NotAcceptorError,
                                          CyclicLatticeError, UnsupportedSpecifierError, ArchiveFormatError)

__author__     = "ctcblank developers"
__copyright__  = "Copyright 2026"
__credits__    = ["ctcblank developers"]
__license__    = "Apache"
__version__    = "1.0"
__status__     = "Prototype"
