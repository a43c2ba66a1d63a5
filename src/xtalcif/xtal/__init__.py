from .unitcell import UnitCell
from .geometry import (
    DEFAULT_BOND_TOLERANCE,
    calc_cell_volume,
    fractional_to_cartesian,
    find_bonds,
    derive_geometry,
    crystal_system_from_cell,
    coordination_numbers,
    bond_angles,
)
