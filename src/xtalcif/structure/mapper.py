"""Mapping of raw CIF blocks onto the structure model.

Nothing in a RawBlock is typed. The mapper knows which tags carry the unit
cell, the space group and the atom sites, and converts their values with
parse_numeric. Tag names are looked up through the alias tables below; the
first alias present in a block wins.
"""

import logging
from collections import OrderedDict, namedtuple

from ..cif.numeric import is_missing, parse_numeric, strip_quotes
from .elements import DEFAULT_ELEMENT, normalize_element
from .model import CELL_FIELDS, Atom, CellParameters, Symmetry

logger = logging.getLogger(__name__)

__all__ = [
    "ATOM_SITE_ALIASES",
    "CELL_ALIASES",
    "SYMMETRY_ALIASES",
    "EQUIV_POS_ALIASES",
    "METADATA_ALIASES",
    "NO_ATOMS_WARNING",
    "MappedBlock",
    "StructureMapper",
    "resolve_columns",
    "is_atom_site_loop",
]

NO_ATOMS_WARNING = "No atoms parsed in block"

# Atom field -> accepted loop labels, in order of preference
ATOM_SITE_ALIASES = OrderedDict([
    ("element", ("_atom_site_type_symbol", "_atom_site_type", "_atom_site.type_symbol")),
    ("label", ("_atom_site_label", "_atom_site.label", "_atom_site.id")),
    ("x", ("_atom_site_fract_x", "_atom_site.fract_x", "_atom_site_Cartn_x", "_atom_site.Cartn_x")),
    ("y", ("_atom_site_fract_y", "_atom_site.fract_y", "_atom_site_Cartn_y", "_atom_site.Cartn_y")),
    ("z", ("_atom_site_fract_z", "_atom_site.fract_z", "_atom_site_Cartn_z", "_atom_site.Cartn_z")),
    ("occupancy", ("_atom_site_occupancy", "_atom_site.occupancy")),
    ("thermal_factor", (
        "_atom_site_U_iso_or_equiv",
        "_atom_site_B_iso_or_equiv",
        "_atom_site.U_iso_or_equiv",
        "_atom_site.B_iso_or_equiv",
    )),
    ("symmetry_note", (
        "_atom_site_symmetry_multiplicity",
        "_atom_site_symmetry_ops",
        "_atom_site_site_symmetry",
    )),
])

CELL_ALIASES = OrderedDict([
    ("a", ("_cell_length_a", "_cell.length_a")),
    ("b", ("_cell_length_b", "_cell.length_b")),
    ("c", ("_cell_length_c", "_cell.length_c")),
    ("alpha", ("_cell_angle_alpha", "_cell.angle_alpha")),
    ("beta", ("_cell_angle_beta", "_cell.angle_beta")),
    ("gamma", ("_cell_angle_gamma", "_cell.angle_gamma")),
])

SYMMETRY_ALIASES = OrderedDict([
    ("space_group_name_hm", (
        "_symmetry_space_group_name_H-M",
        "_space_group_name_H-M_alt",
        "_symmetry.space_group_name_H-M",
    )),
    ("space_group_name_hall", (
        "_symmetry_space_group_name_Hall",
        "_space_group_name_Hall",
        "_symmetry.space_group_name_Hall",
    )),
    ("cell_setting", ("_symmetry_cell_setting", "_space_group_crystal_system")),
    ("space_group_number", (
        "_symmetry_Int_Tables_number",
        "_space_group_IT_number",
        "_symmetry.Int_Tables_number",
    )),
    ("crystal_system", ("_space_group_crystal_system", "_symmetry_cell_setting")),
])

EQUIV_POS_ALIASES = (
    "_symmetry_equiv_pos_as_xyz",
    "_space_group_symop_operation_xyz",
    "_symmetry_equiv.pos_as_xyz",
)

METADATA_ALIASES = OrderedDict([
    ("title", ("_publ_section_title", "_title", "_data_name")),
    ("chemical_formula_sum", ("_chemical_formula_sum",)),
    ("chemical_formula_moiety", ("_chemical_formula_moiety",)),
    ("chemical_name", ("_chemical_name_mineral", "_chemical_name_common", "_chemical_name_systematic")),
    ("formula_units_z", ("_cell_formula_units_Z",)),
])


MappedBlock = namedtuple("MappedBlock", ["lattice", "symmetry", "atoms", "metadata", "warnings"])


def resolve_columns(labels, aliases):
    """Bind fields to column positions.

    Args:
        labels (sequence of str): loop labels, in loop order.
        aliases (Mapping[str, sequence of str]): field -> accepted labels.

    Returns:
        dict: field -> column index, for every field with a matching
            label. Matching is case-insensitive.
    """
    positions = {label.lower(): idx for idx, label in reversed(list(enumerate(labels)))}
    columns = {}
    for field, names in aliases.items():
        for name in names:
            idx = positions.get(name.lower())
            if idx is not None:
                columns[field] = idx
                break
    return columns


def is_atom_site_loop(labels):
    found = False
    for label in labels:
        clower = label.lower()
        if clower.startswith(("_atom_site_aniso_", "_atom_site_aniso.")):
            return False
        if clower.startswith(("_atom_site_", "_atom_site.")):
            found = True
    return found


def _text(value):
    if is_missing(value):
        return None
    text = strip_quotes(value.strip()).strip()
    return text or None


def _verbatim(value):
    if is_missing(value):
        return None
    return value


class StructureMapper:

    """Extracts the lattice, symmetry, atom sites and metadata of one block.

    A mapper is built for a single RawBlock; call map() once.
    """

    def __init__(self, block):
        self.block = block
        self.warnings = []

    def warn(self, text):
        logger.debug(f"data_{self.block.name}: {text}")
        self.warnings.append(text)

    def map(self):
        lattice = self._extract_cell()
        symmetry = self._extract_symmetry()
        atoms = self._extract_atom_site()
        metadata = self._extract_metadata(symmetry)
        return MappedBlock(lattice, symmetry, atoms, metadata, tuple(self.warnings))

    def _first(self, names):
        return self.block.first_value(names)

    def _extract_cell(self):
        values = {}
        for field, names in CELL_ALIASES.items():
            raw = self._first(names)
            value = parse_numeric(raw)
            if raw is not None and not is_missing(raw) and value is None:
                self.warn(f"unable to read cell parameter {field} from {raw!r}")
            values[field] = None if value is None else float(value)

        if all(value is None for value in values.values()):
            self.warn("No unit cell parameters found")
            return None

        lattice = CellParameters(**values)
        if lattice.missing:
            self.warn(f"Incomplete unit cell: missing {', '.join(lattice.missing)}")
        return lattice

    def _extract_symmetry(self):
        fields = {}
        for field, names in SYMMETRY_ALIASES.items():
            fields[field] = _text(self._first(names))

        number = parse_numeric(fields["space_group_number"])
        fields["space_group_number"] = None if number is None else int(number)

        expressions = ()
        for name in EQUIV_POS_ALIASES:
            if name in self.block:
                column = self.block.column(name)
                expressions = tuple(text for text in map(_text, column) if text is not None)
                break
        fields["equivalent_position_expressions"] = expressions

        symmetry = Symmetry(**fields)
        if symmetry.is_empty():
            return None
        return symmetry

    def _extract_atom_site(self):
        loop = self.block.find_loop(is_atom_site_loop)
        if loop is None:
            self.warn(NO_ATOMS_WARNING)
            return ()

        columns = resolve_columns(loop.labels, ATOM_SITE_ALIASES)
        mapped = set(columns.values())
        for axis in ("x", "y", "z"):
            idx = columns.get(axis)
            if idx is not None and "cartn" in loop.labels[idx].lower():
                self.warn(f"Atom {axis} coordinates read from {loop.labels[idx]} are used as fractional")

        atoms = []
        for nrow, row in enumerate(loop.rows, start=1):
            atom = self._atom_from_row(nrow, row, loop.labels, columns, mapped)
            if atom is not None:
                atoms.append(atom)

        if not atoms:
            self.warn(NO_ATOMS_WARNING)
        return tuple(atoms)

    def _atom_from_row(self, nrow, row, labels, columns, mapped):
        def get(field):
            idx = columns.get(field)
            if idx is None:
                return None
            return row[idx]

        label = _text(get("label"))
        xyz = [parse_numeric(get(axis)) for axis in ("x", "y", "z")]
        if any(value is None for value in xyz):
            missing = [axis for axis, value in zip("xyz", xyz) if value is None]
            self.warn(
                f"Skipped atom_site row {nrow} ({label or 'unlabelled'}): "
                f"unresolved coordinate {', '.join(missing)}"
            )
            return None

        extra = OrderedDict()
        for idx, (name, value) in enumerate(zip(labels, row)):
            if idx not in mapped:
                extra[name[1:]] = value

        type_symbol = _text(get("element"))
        element = normalize_element(type_symbol)
        if element is None:
            element = self._element_from_label(label)
        elif type_symbol != element:
            extra[labels[columns["element"]][1:]] = type_symbol

        occupancy = parse_numeric(get("occupancy"))
        thermal_factor = parse_numeric(get("thermal_factor"))
        return Atom(
            element=element,
            label=label,
            x=float(xyz[0]),
            y=float(xyz[1]),
            z=float(xyz[2]),
            occupancy=None if occupancy is None else float(occupancy),
            thermal_factor=None if thermal_factor is None else float(thermal_factor),
            symmetry_note=_text(get("symmetry_note")),
            extra=dict(extra),
        )

    @staticmethod
    def _element_from_label(label):
        if label and label[0].isalpha():
            return label[0].upper()
        return DEFAULT_ELEMENT

    def _extract_metadata(self, symmetry):
        metadata = {}
        for field, names in METADATA_ALIASES.items():
            metadata[field] = _verbatim(self._first(names))

        z = parse_numeric(metadata["formula_units_z"])
        metadata["formula_units_z"] = None if z is None else int(z)
        metadata["crystal_system"] = None if symmetry is None else symmetry.crystal_system
        return metadata
