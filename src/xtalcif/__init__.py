import logging

from .parser import (
    CIFError,
    CIFInputError,
    CIFNoDataError,
    CIFParser,
    CIFParserOptions,
    PARSER_VERSION,
    parse,
    parse_all,
)
from .structure import Atom, Bond, CellParameters, ParseResult, Symmetry
from .xtal import UnitCell, derive_geometry, fractional_to_cartesian


LOGGER = logging.getLogger(__name__)
