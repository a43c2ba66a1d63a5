"""Plain summaries of a parsed structure, for storage and display."""

from collections import OrderedDict

import pandas as pd

from ..xtal.geometry import bond_angles, coordination_numbers
from .elements import atomic_weight

__all__ = [
    "element_counts",
    "element_summary",
    "coordination_summary",
    "bond_angle_summary",
    "structure_summary",
    "atoms_frame",
    "bonds_frame",
    "angles_frame",
]


def element_counts(atoms):
    """Number of atom sites per element, in order of first appearance."""
    counts = OrderedDict()
    for atom in atoms:
        counts[atom.element] = counts.get(atom.element, 0) + 1
    return counts


def element_summary(atoms):
    """One row per element: element, count, atomic_weight and mass.

    Returns:
        pandas.DataFrame
    """
    rows = [
        {
            "element": element,
            "count": count,
            "atomic_weight": atomic_weight(element),
            "mass": atomic_weight(element) * count,
        }
        for element, count in element_counts(atoms).items()
    ]
    return pd.DataFrame(rows, columns=["element", "count", "atomic_weight", "mass"])


def structure_summary(result):
    """One-line description of a ParseResult, e.g.

    "Formula: C2O | Space Group: P 1 | 3 atoms | Cell: 10.00×10.00×10.00 Å, 90.0°, 90.0°, 90.0° | Volume: 1000.00 Å³"
    """
    parts = []

    counts = element_counts(result.atoms)
    if counts:
        formula = "".join(
            f"{element}{count if count > 1 else ''}" for element, count in counts.items()
        )
        parts.append(f"Formula: {formula}")

    if result.crystal_system:
        parts.append(f"Crystal: {result.crystal_system}")

    if result.symmetry is not None and result.symmetry.space_group_name_hm:
        parts.append(f"Space Group: {result.symmetry.space_group_name_hm}")

    parts.append(f"{len(result.atoms)} atoms")

    lattice = result.lattice
    if lattice is not None and lattice.is_complete():
        parts.append(
            f"Cell: {lattice.a:.2f}×{lattice.b:.2f}×{lattice.c:.2f} Å, "
            f"{lattice.alpha:.1f}°, {lattice.beta:.1f}°, {lattice.gamma:.1f}°"
        )
        if lattice.volume:
            parts.append(f"Volume: {lattice.volume:.2f} Å³")

    return " | ".join(parts)


def atoms_frame(result):
    """The atom sites of a ParseResult as a DataFrame, one row per atom."""
    coordination = coordination_numbers(result.atoms, result.bonds)
    rows = []
    for idx, atom in enumerate(result.atoms):
        row = OrderedDict(
            index=idx,
            label=atom.label,
            element=atom.element,
            x=atom.x,
            y=atom.y,
            z=atom.z,
            occupancy=atom.occupancy,
            thermal_factor=atom.thermal_factor,
            symmetry_note=atom.symmetry_note,
            coordination=int(coordination[idx]),
        )
        row.update(atom.extra)
        rows.append(row)
    return pd.DataFrame(rows)


def bonds_frame(result):
    columns = ["atom_index_1", "atom_index_2", "label_1", "label_2", "length", "order"]
    rows = [
        (
            bond.atom_index_1,
            bond.atom_index_2,
            result.atoms[bond.atom_index_1].label,
            result.atoms[bond.atom_index_2].label,
            bond.length,
            bond.order,
        )
        for bond in result.bonds
    ]
    return pd.DataFrame(rows, columns=columns)


def angles_frame(result):
    """Bond angles of a ParseResult, one row per pair of bonds sharing an atom."""
    columns = [
        "atom_index_1",
        "atom_index_2",
        "atom_index_3",
        "label_1",
        "label_2",
        "label_3",
        "angle",
    ]
    atoms = result.atoms
    rows = [
        (
            angle.atom_index_1,
            angle.atom_index_2,
            angle.atom_index_3,
            atoms[angle.atom_index_1].label,
            atoms[angle.atom_index_2].label,
            atoms[angle.atom_index_3].label,
            angle.angle,
        )
        for angle in bond_angles(atoms, result.bonds, cell=result.lattice)
    ]
    return pd.DataFrame(rows, columns=columns)


def coordination_summary(result):
    """Coordination numbers by element: sites, mean, min and max.

    Returns:
        pandas.DataFrame with one row per element, in order of first appearance.
    """
    columns = ["element", "sites", "mean", "min", "max"]
    if not result.atoms:
        return pd.DataFrame(columns=columns)
    frame = pd.DataFrame(
        {
            "element": [atom.element for atom in result.atoms],
            "coordination": coordination_numbers(result.atoms, result.bonds),
        }
    )
    stats = frame.groupby("element", sort=False)["coordination"].agg(["count", "mean", "min", "max"])
    stats = stats.reset_index()
    stats.columns = columns
    return stats


def bond_angle_summary(result):
    """Bond angle statistics by element triplet.

    The shared atom is element_2; the outer elements are listed in
    alphabetical order, so O-C-H and H-C-O fall into one row.

    Returns:
        pandas.DataFrame with columns element_1, element_2, element_3,
            count, mean, min and max, sorted by mean angle.
    """
    columns = ["element_1", "element_2", "element_3", "count", "mean", "min", "max"]
    atoms = result.atoms
    rows = []
    for angle in bond_angles(atoms, result.bonds, cell=result.lattice):
        outer = sorted((atoms[angle.atom_index_1].element, atoms[angle.atom_index_3].element))
        rows.append((outer[0], atoms[angle.atom_index_2].element, outer[1], angle.angle))
    if not rows:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame(rows, columns=["element_1", "element_2", "element_3", "angle"])
    stats = frame.groupby(["element_1", "element_2", "element_3"], sort=False)["angle"].agg(
        ["count", "mean", "min", "max"]
    )
    stats["mean"] = stats["mean"].round(1)
    return stats.reset_index().sort_values("mean", kind="stable").reset_index(drop=True)
