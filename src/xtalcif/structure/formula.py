"""Chemical formulas, formula weights and crystal density."""

import logging
from collections import Counter, OrderedDict

import pyparsing as pp

from .elements import atomic_weight

logger = logging.getLogger(__name__)

__all__ = ["AVOGADRO", "parse_formula", "formula_weight", "calc_density"]

AVOGADRO = 6.02214076e23

# Å³ -> cm³
_CUBIC_ANGSTROM = 1e-24


class _FormulaParser:

    """
    Parse chemical formula strings such as "C6 H12 O6", "C12H22O11" or
    "Ca (C O3)2" into element counts.
    """

    def __init__(self):
        lpar = pp.Suppress(pp.one_of("( ["))
        rpar = pp.Suppress(pp.one_of(") ]"))
        number = pp.Regex(r"\d+(?:\.\d*)?|\.\d+").set_parse_action(lambda toks: float(toks[0]))
        element = pp.Regex(r"[A-Z][a-z]?")

        formula = pp.Forward()
        atom = (element + pp.Optional(number, default=1.0)).set_parse_action(self._atom)
        group = (lpar + formula + rpar + pp.Optional(number, default=1.0)).set_parse_action(
            self._group
        )
        formula <<= pp.OneOrMore(atom | group).set_parse_action(self._merge)
        self.expression = formula

    @staticmethod
    def _atom(strg, loc, toks):
        return [OrderedDict([(toks[0], toks[1])])]

    @staticmethod
    def _group(strg, loc, toks):
        counts, multiplier = toks[0], toks[1]
        return [OrderedDict((symbol, count * multiplier) for symbol, count in counts.items())]

    @staticmethod
    def _merge(strg, loc, toks):
        merged = OrderedDict()
        for counts in toks:
            for symbol, count in counts.items():
                merged[symbol] = merged.get(symbol, 0.0) + count
        return [merged]

    def __call__(self, text):
        return self.expression.parse_string(text, parse_all=True)[0]


_parser = _FormulaParser()


def parse_formula(text):
    """Parse a chemical formula into element counts.

    Returns:
        OrderedDict: element symbol -> count (float), in order of first
            appearance. Empty when text is not a formula.
    """
    if not text or not text.strip():
        return OrderedDict()
    try:
        return _parser(text.strip())
    except pp.ParseException as e:
        logger.debug(f"Unable to parse formula {text!r}: {e}")
        return OrderedDict()


def formula_weight(counts):
    """Molar mass in g/mol of element -> count pairs."""
    return sum(atomic_weight(symbol) * count for symbol, count in counts.items())


def calc_density(result):
    """Calculated crystal density in g/cm³.

    Uses the formula weight of _chemical_formula_sum (or, without one, of the
    atom sites) and _cell_formula_units_Z (default 1). Returns None when the
    cell volume or the formula weight is unknown.
    """
    lattice = result.lattice
    if lattice is None or not lattice.volume:
        return None

    counts = parse_formula(result.chemical_formula_sum)
    if not counts:
        counts = Counter(atom.element for atom in result.atoms)
    weight = formula_weight(counts)
    if weight <= 0:
        return None

    z = result.formula_units_z or 1
    return weight * z / (AVOGADRO * lattice.volume * _CUBIC_ANGSTROM)
