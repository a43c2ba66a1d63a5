"""Typed value objects produced by a parse.

All of them are namedtuples: created once during a parse call and never
modified afterwards. Use ``_replace`` to derive a changed copy.
"""

import math
from collections import namedtuple

__all__ = ["CELL_FIELDS", "CellParameters", "Symmetry", "Atom", "Bond", "ParseResult"]

CELL_FIELDS = ("a", "b", "c", "alpha", "beta", "gamma")


class CellParameters(
    namedtuple("CellParameters", CELL_FIELDS + ("volume",), defaults=(None,) * 7)
):
    """Unit cell lengths (Å) and angles (degrees).

    Every field may be None when the source file does not provide it; zero
    is a real value, not a missing one. volume is derived and only set when
    all six parameters are present and finite.
    """

    __slots__ = ()

    @property
    def parameters(self):
        return tuple(getattr(self, field) for field in CELL_FIELDS)

    @property
    def missing(self):
        return tuple(field for field in CELL_FIELDS if getattr(self, field) is None)

    def is_complete(self):
        for value in self.parameters:
            if value is None or not math.isfinite(value):
                return False
        return True


class Symmetry(
    namedtuple(
        "Symmetry",
        [
            "space_group_name_hm",
            "space_group_name_hall",
            "cell_setting",
            "equivalent_position_expressions",
            "space_group_number",
            "crystal_system",
        ],
        defaults=(None, None, None, (), None, None),
    )
):
    """Space group labels of a structure. Symmetry operators are kept as
    the text expressions found in the file; they are not applied.
    """

    __slots__ = ()

    def is_empty(self):
        return not any(self)


class Atom(
    namedtuple(
        "Atom",
        [
            "element",
            "label",
            "x",
            "y",
            "z",
            "occupancy",
            "thermal_factor",
            "symmetry_note",
            "extra",
        ],
        defaults=(None,) * 8,
    )
):
    """One atom site. x, y and z are fractional coordinates.

    extra holds the loop columns that were not mapped onto a field, keyed
    by the column label without its leading underscore.
    """

    __slots__ = ()

    def __new__(cls, element, *args, **kwargs):
        self = super().__new__(cls, element, *args, **kwargs)
        if self.extra is None:
            self = self._replace(extra={})
        return self

    @property
    def xyz(self):
        return (self.x, self.y, self.z)

    def has_coordinates(self):
        for value in self.xyz:
            if value is None or not math.isfinite(value):
                return False
        return True


Bond = namedtuple("Bond", ["atom_index_1", "atom_index_2", "length", "order"])
Bond.__doc__ = """A bond between two atoms, given by their position in the atom
sequence of the same ParseResult (atom_index_1 < atom_index_2).
"""


ParseResult = namedtuple(
    "ParseResult",
    [
        "source_block_id",
        "atoms",
        "warnings",
        "lattice",
        "symmetry",
        "bonds",
        "filename",
        "title",
        "chemical_formula_sum",
        "chemical_formula_moiety",
        "chemical_name",
        "crystal_system",
        "formula_units_z",
        "parser_version",
        "parsed_at",
        "raw_keys",
        "raw",
    ],
    defaults=(
        (),
        (),
        None,
        None,
        (),
        None,
        None,
        None,
        None,
        None,
        None,
        None,
        None,
        None,
        (),
        None,
    ),
)
ParseResult.__doc__ = """Everything extracted from one data_ block.

atoms is always a tuple, possibly empty. warnings collects every
recoverable problem met while parsing the block. raw holds the RawBlock
only when the parser was asked to keep it.
"""
