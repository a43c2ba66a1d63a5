"""Per-element constants used for bonding and formula weights.

The tables are read from molmass once at import time and exposed read-only.
"""

import logging
import re
from types import MappingProxyType

from molmass.elements import ELEMENTS

logger = logging.getLogger(__name__)

__all__ = [
    "COVALENT_RADII",
    "ATOMIC_WEIGHTS",
    "DEFAULT_COVALENT_RADIUS",
    "DEFAULT_ATOMIC_WEIGHT",
    "DEFAULT_ELEMENT",
    "covalent_radius",
    "atomic_weight",
    "normalize_element",
    "is_known_element",
]

# Used for atom sites without a type symbol or label.
DEFAULT_ELEMENT = "C"

# Å, used for any symbol not in COVALENT_RADII
DEFAULT_COVALENT_RADIUS = 1.0

# g/mol, unknown symbols do not contribute to formula weights
DEFAULT_ATOMIC_WEIGHT = 0.0

# Covalent radii in Å. Elements without a tabulated radius are left out.
COVALENT_RADII = MappingProxyType(
    {element.symbol: element.covrad for element in ELEMENTS if element.covrad}
)

# Relative atomic masses in g/mol
ATOMIC_WEIGHTS = MappingProxyType(
    {element.symbol: element.mass for element in ELEMENTS}
)

_RE_LETTERS = re.compile(r"[A-Za-z]+")


def is_known_element(symbol):
    return symbol in ATOMIC_WEIGHTS


def normalize_element(symbol):
    """Reduce an atom type symbol to its element symbol.

    Oxidation states, charges and site suffixes are dropped, e.g. "Fe3+"
    gives "Fe", "O2-" gives "O" and "Ow" gives "O". Returns None when the
    symbol contains no letters.
    """
    if not symbol:
        return None
    match = _RE_LETTERS.search(symbol)
    if match is None:
        return None
    letters = match.group()
    two = letters[:2].capitalize()
    if len(letters) >= 2 and is_known_element(two):
        return two
    one = letters[0].upper()
    if is_known_element(one):
        return one
    return two


def covalent_radius(symbol):
    try:
        return COVALENT_RADII[symbol]
    except KeyError:
        logger.debug(f"No covalent radius for {symbol}; using {DEFAULT_COVALENT_RADIUS}")
        return DEFAULT_COVALENT_RADIUS


def atomic_weight(symbol):
    try:
        return ATOMIC_WEIGHTS[symbol]
    except KeyError:
        logger.debug(f"No atomic weight for {symbol}; using {DEFAULT_ATOMIC_WEIGHT}")
        return DEFAULT_ATOMIC_WEIGHT
