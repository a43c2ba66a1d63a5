"""Geometry derived from a parsed structure: cell volume, bonds, bond
angles, coordination numbers and the crystal system implied by the cell.

Nothing in this module raises on bad structural data. Quantities that
cannot be computed are left as None and a warning is returned instead.
"""

import concurrent.futures
import itertools
import logging
import math
from collections import namedtuple

import numpy as np
from scipy.spatial.distance import cdist

from ..structure.elements import covalent_radius
from ..structure.model import Bond
from .unitcell import UnitCell

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BOND_TOLERANCE",
    "BOND_ORDER_RULES",
    "Geometry",
    "calc_cell_volume",
    "fractional_to_cartesian",
    "minimum_image",
    "bond_order",
    "find_bonds",
    "derive_geometry",
    "BondAngle",
    "CRYSTAL_SYSTEM_TOLERANCE",
    "crystal_system_from_cell",
    "coordination_numbers",
    "bond_angles",
]

DEFAULT_BOND_TOLERANCE = 1.2

# (element, element) in sorted order -> ((upper length limit in Å, order), ...),
# tightest limit first
BOND_ORDER_RULES = {
    ("C", "C"): ((1.20, 3), (1.35, 2)),
    ("C", "N"): ((1.15, 3), (1.30, 2)),
    ("C", "O"): ((1.25, 2),),
}

# Upper bound on rows handled per vectorized distance block
_CHUNK_ROWS = 256

Geometry = namedtuple("Geometry", ["volume", "bonds", "warnings"])

# atom_index_2 is the shared atom; atom_index_1 < atom_index_3
BondAngle = namedtuple("BondAngle", ["atom_index_1", "atom_index_2", "atom_index_3", "angle"])

# Å for lengths, degrees for angles
CRYSTAL_SYSTEM_TOLERANCE = 0.01


def calc_cell_volume(cell, decimals=6):
    """Volume of a triclinic cell in Å³.

    Returns None unless all six parameters are present and describe a cell,
    i.e. positive lengths and angles that close (see UnitCell.from_parameters).
    """
    if cell is None or not cell.is_complete():
        return None
    try:
        volume = float(UnitCell.from_parameters(cell).calc_volume())
    except ValueError:
        return None
    if not math.isfinite(volume):
        return None
    return round(volume, decimals)


def fractional_to_cartesian(cell, xyz):
    """Convert fractional coordinates to Cartesian coordinates in Å.

    Args:
        cell (CellParameters): a complete unit cell.
        xyz (array-like): one (3,) coordinate or an (n, 3) array.

    Raises:
        ValueError: if the cell is incomplete or degenerate.
    """
    unit_cell = UnitCell.from_parameters(cell)
    xyz = np.asarray(xyz, float)
    if xyz.ndim == 1:
        return unit_cell.calc_frac_to_orth(xyz)
    return unit_cell.frac_to_orth_rows(xyz)


def minimum_image(diff):
    """Wrap fractional differences into [-0.5, 0.5)."""
    return diff - np.floor(diff + 0.5)


def bond_order(element1, element2, length):
    rules = BOND_ORDER_RULES.get(tuple(sorted((element1, element2))), ())
    for limit, order in rules:
        if length < limit:
            return order
    return 1


def _row_chunks(n, nproc):
    """Contiguous row ranges covering range(n)."""
    nchunks = max(nproc, -(-n // _CHUNK_ROWS))
    bounds = np.linspace(0, n, num=min(nchunks, n) + 1, dtype=int)
    return [(int(start), int(stop)) for start, stop in zip(bounds[:-1], bounds[1:]) if stop > start]


def _pair_distances(coor, start, stop, unit_cell):
    """Distances from rows start:stop to every row of coor."""
    if unit_cell is None:
        return cdist(coor[start:stop], coor)
    diff = minimum_image(coor[start:stop, np.newaxis, :] - coor[np.newaxis, :, :])
    cart = diff @ unit_cell.frac_to_orth.T
    return np.sqrt((cart * cart).sum(axis=-1))


def _bonds_in_rows(coor, radii, start, stop, unit_cell, tolerance):
    dist = _pair_distances(coor, start, stop, unit_cell)
    threshold = tolerance * (radii[start:stop, np.newaxis] + radii[np.newaxis, :])
    rows = np.arange(start, stop)[:, np.newaxis]
    cols = np.arange(coor.shape[0])[np.newaxis, :]
    mask = (dist <= threshold) & (cols > rows)
    ii, jj = np.nonzero(mask)
    return [(start + i, j, dist[i, j]) for i, j in zip(ii.tolist(), jj.tolist())]


def find_bonds(atoms, cell=None, tolerance=DEFAULT_BOND_TOLERANCE, decimals=3, nproc=1):
    """Find covalently bonded atom pairs.

    Two atoms are bonded when their distance is at most tolerance times the
    sum of their covalent radii. With a usable cell the distance follows the
    minimum-image convention, otherwise it is the plain Euclidean distance
    between the stored coordinates.

    Args:
        atoms (sequence of Atom): atom sites with fractional coordinates.
        cell (CellParameters, optional): the lattice.
        tolerance (float): bond tolerance factor.
        decimals (int): rounding of Bond.length.
        nproc (int): number of threads splitting the pair search.

    Returns:
        (tuple of Bond, list of str): bonds sorted by atom index pair, and
            warnings.
    """
    warnings = []
    indices = []
    for idx, atom in enumerate(atoms):
        if atom.has_coordinates():
            indices.append(idx)
        else:
            warnings.append(f"Atom {idx} ({atom.label or atom.element}) has no coordinates; excluded from bonding")
    if len(indices) < 2:
        return (), warnings

    unit_cell = None
    if cell is not None:
        try:
            unit_cell = UnitCell.from_parameters(cell)
        except ValueError as e:
            warnings.append(f"Bond search uses Euclidean distances: {e}")

    coor = np.array([atoms[idx].xyz for idx in indices], float)
    elements = [atoms[idx].element for idx in indices]
    radii = np.array([covalent_radius(element) for element in elements], float)

    chunks = _row_chunks(len(indices), max(1, int(nproc)))
    if nproc > 1 and len(chunks) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=nproc) as executor:
            futures = [
                executor.submit(_bonds_in_rows, coor, radii, start, stop, unit_cell, tolerance)
                for start, stop in chunks
            ]
            pairs = [pair for future in futures for pair in future.result()]
    else:
        pairs = []
        for start, stop in chunks:
            pairs.extend(_bonds_in_rows(coor, radii, start, stop, unit_cell, tolerance))

    bonds = []
    for i, j, distance in pairs:
        if not math.isfinite(distance):
            continue
        atom_index_1, atom_index_2 = indices[i], indices[j]
        if distance == 0.0:
            warnings.append(f"Atoms {atom_index_1} and {atom_index_2} occupy coincident sites")
        order = bond_order(elements[i], elements[j], distance)
        bonds.append(Bond(atom_index_1, atom_index_2, round(float(distance), decimals), order))
    bonds.sort(key=lambda bond: (bond.atom_index_1, bond.atom_index_2))
    logger.debug(f"Found {len(bonds)} bonds among {len(indices)} atoms")
    return tuple(bonds), warnings


def derive_geometry(
    cell,
    atoms,
    tolerance=DEFAULT_BOND_TOLERANCE,
    compute_bonds=True,
    volume_decimals=6,
    bond_length_decimals=3,
    nproc=1,
):
    """Compute the cell volume and the bond list of a structure.

    Returns:
        Geometry: volume (float or None), bonds (tuple of Bond) and
            warnings (tuple of str).
    """
    warnings = []
    volume = None
    if cell is not None:
        volume = calc_cell_volume(cell, decimals=volume_decimals)
        if volume is None:
            if cell.is_complete():
                warnings.append("Cell volume not computed: parameters do not form a cell")
            else:
                warnings.append("Cell volume not computed: incomplete unit cell")

    bonds = ()
    if compute_bonds:
        bonds, bond_warnings = find_bonds(
            atoms,
            cell=cell,
            tolerance=tolerance,
            decimals=bond_length_decimals,
            nproc=nproc,
        )
        warnings.extend(bond_warnings)

    return Geometry(volume, bonds, tuple(warnings))


def crystal_system_from_cell(cell, tolerance=CRYSTAL_SYSTEM_TOLERANCE):
    """Guess the crystal system from the cell metric alone.

    The metric cannot tell a cell's true symmetry, so a pseudo-cubic
    orthorhombic cell is reported as cubic. Returns None for an incomplete
    cell.
    """
    if cell is None or not cell.is_complete():
        return None
    a, b, c, alpha, beta, gamma = cell.parameters

    def same(x, y):
        return abs(x - y) < tolerance

    right = [same(angle, 90.0) for angle in (alpha, beta, gamma)]
    if all(right):
        if same(a, b) and same(b, c):
            return "cubic"
        if same(a, b):
            return "tetragonal"
        return "orthorhombic"
    if right[0] and right[1] and same(gamma, 120.0) and same(a, b):
        return "hexagonal"
    if same(a, b) and same(b, c) and same(alpha, beta) and same(beta, gamma):
        return "rhombohedral"
    if right[0] and right[2]:
        return "monoclinic"
    return "triclinic"


def coordination_numbers(atoms, bonds):
    """Number of bonds at every atom site, as an integer array."""
    ends = [bond.atom_index_1 for bond in bonds] + [bond.atom_index_2 for bond in bonds]
    return np.bincount(np.asarray(ends, dtype=int), minlength=len(atoms))


def _bond_vectors(atoms, center, neighbors, unit_cell):
    """Cartesian vectors from atom center to each neighbor."""
    diff = np.array([atoms[idx].xyz for idx in neighbors], float) - np.asarray(atoms[center].xyz, float)
    if unit_cell is None:
        return diff
    return unit_cell.frac_to_orth_rows(minimum_image(diff))


def bond_angles(atoms, bonds, cell=None, decimals=1):
    """Angles between every two bonds that share an atom.

    Bond vectors follow the same convention as find_bonds: minimum image
    in a usable cell, plain differences otherwise. Pairs involving a
    zero-length bond have no angle and are left out.

    Args:
        atoms (sequence of Atom): the atoms the bonds index into.
        bonds (sequence of Bond): bonds from find_bonds.
        cell (CellParameters, optional): the lattice.
        decimals (int): rounding of the angle in degrees.

    Returns:
        tuple of BondAngle, sorted by shared atom, then outer atoms.
    """
    neighbors = [[] for _ in atoms]
    for bond in bonds:
        neighbors[bond.atom_index_1].append(bond.atom_index_2)
        neighbors[bond.atom_index_2].append(bond.atom_index_1)

    unit_cell = None
    if cell is not None:
        try:
            unit_cell = UnitCell.from_parameters(cell)
        except ValueError as e:
            logger.debug(f"Bond angles use Euclidean vectors: {e}")

    angles = []
    for center, others in enumerate(neighbors):
        if len(others) < 2:
            continue
        others = sorted(others)
        vectors = _bond_vectors(atoms, center, others, unit_cell)
        norms = np.linalg.norm(vectors, axis=1)
        for i, k in itertools.combinations(range(len(others)), 2):
            if norms[i] == 0.0 or norms[k] == 0.0:
                continue
            cos_angle = np.dot(vectors[i], vectors[k]) / (norms[i] * norms[k])
            angle = np.degrees(np.arccos(np.clip(cos_angle, -1.0, 1.0)))
            angles.append(BondAngle(others[i], center, others[k], round(float(angle), decimals)))
    return tuple(angles)
