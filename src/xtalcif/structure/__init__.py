from .model import CellParameters, Symmetry, Atom, Bond, ParseResult
from .elements import COVALENT_RADII, ATOMIC_WEIGHTS, covalent_radius, atomic_weight
from .mapper import StructureMapper
from .formula import parse_formula, formula_weight, calc_density
from .summary import (
    element_counts,
    element_summary,
    coordination_summary,
    bond_angle_summary,
    structure_summary,
)
