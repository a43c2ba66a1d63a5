import argparse
from datetime import datetime

import pytest

import xtalcif
from xtalcif.cif.blocks import RawBlock
from xtalcif.parser import (
    PARSER_VERSION,
    CIFError,
    CIFInputError,
    CIFNoDataError,
    CIFParser,
    CIFParserOptions,
    parse,
    parse_all,
)
from xtalcif.structure.elements import atomic_weight, covalent_radius
from xtalcif.structure.formula import AVOGADRO, calc_density
from xtalcif.structure.mapper import NO_ATOMS_WARNING
from xtalcif.structure.model import Bond
from xtalcif.structure.summary import (
    angles_frame,
    atoms_frame,
    bond_angle_summary,
    bonds_frame,
    coordination_summary,
    structure_summary,
)

from .base_test_case import UnitBase


# As given, without a cell
BARE_TWO_ATOM_CIF = (
    "data_test\nloop_\n_atom_site_label\n_atom_site_type_symbol\n"
    "_atom_site_fract_x\n_atom_site_fract_y\n_atom_site_fract_z\n"
    "C1 C 0.0 0.0 0.0\nO1 O 0.1 0.1 0.1\n"
)


class TestCIFParser(UnitBase):

    def test_two_atoms_in_cubic_cell(self):
        results = CIFParser().parse_all(self.TWO_ATOM_CIF)
        assert len(results) == 1
        result = results[0]
        assert result.source_block_id == "test"
        assert [atom.label for atom in result.atoms] == ["C1", "O1"]
        assert result.lattice.volume == 1000.0
        assert 1.732 <= 1.2 * (covalent_radius("C") + covalent_radius("O"))
        assert result.bonds == (Bond(0, 1, 1.732, 1),)
        assert result.warnings == ()

    def test_two_atoms_with_tighter_tolerance(self):
        options = CIFParserOptions()
        options.bond_tolerance = 1.1
        assert 1.732 > 1.1 * (covalent_radius("C") + covalent_radius("O"))
        result = CIFParser(options).parse(self.TWO_ATOM_CIF)
        assert result.bonds == ()

    def test_two_atoms_without_cell(self):
        result = parse(BARE_TWO_ATOM_CIF)
        assert len(result.atoms) == 2
        assert result.lattice is None
        assert "No unit cell parameters found" in result.warnings
        # without a cell the stored coordinates are used as they are
        assert result.bonds == (Bond(0, 1, 0.173, 2),)

    def test_synthetic_structure(self):
        result = parse(self.SYNTHETIC_CIF, filename="synthetic.cif")
        assert result.filename == "synthetic.cif"
        assert result.source_block_id == "synthetic"
        assert result.title == "Synthetic test structure\nfor unit tests"
        assert result.chemical_formula_sum == "C2 H O N"
        assert result.chemical_name == "test compound"
        assert result.crystal_system == "triclinic"
        assert result.formula_units_z == 2
        assert result.symmetry.space_group_name_hm == "P 1"
        assert result.lattice.volume == 1000.0
        assert len(result.atoms) == 5
        assert result.bonds == (
            Bond(0, 1, 1.5, 1),
            Bond(0, 2, 1.2, 2),
            Bond(0, 4, 1.0, 1),
        )
        assert result.warnings == ()
        assert result.raw is None
        assert result.raw_keys[:2] == ("_publ_section_title", "_chemical_formula_sum")
        assert "_atom_site_aniso_U_11" in result.raw_keys

    def test_density(self):
        result = parse(self.SYNTHETIC_CIF)
        weight = 2 * atomic_weight("C") + atomic_weight("H") + atomic_weight("O") + atomic_weight("N")
        expected = weight * 2 / (AVOGADRO * 1000.0 * 1e-24)
        assert calc_density(result) == pytest.approx(expected)

    def test_density_from_atoms(self):
        result = parse(self.TWO_ATOM_CIF)
        expected = (atomic_weight("C") + atomic_weight("O")) / (AVOGADRO * 1000.0 * 1e-24)
        assert calc_density(result) == pytest.approx(expected)
        assert calc_density(parse(BARE_TWO_ATOM_CIF)) is None

    def test_summary(self):
        result = parse(self.SYNTHETIC_CIF)
        assert structure_summary(result) == (
            "Formula: C2ONH | Crystal: triclinic | Space Group: P 1 | 5 atoms | "
            "Cell: 10.00×10.00×10.00 Å, 90.0°, 90.0°, 90.0° | Volume: 1000.00 Å³"
        )
        assert structure_summary(parse("data_x\n_title empty\n")) == "0 atoms"

    def test_frames(self):
        result = parse(self.SYNTHETIC_CIF)
        atoms = atoms_frame(result)
        assert list(atoms["label"]) == ["C1", "C2", "O1", "N1", "H1"]
        assert list(atoms["atom_site_calc_flag"]) == ["d", "d", "d", "d", "calc"]
        bonds = bonds_frame(result)
        assert list(bonds["label_2"]) == ["C2", "O1", "H1"]
        assert list(bonds["order"]) == [1, 2, 1]
        assert list(atoms["coordination"]) == [3, 1, 1, 0, 1]

    def test_angles_frame(self):
        angles = angles_frame(parse(self.SYNTHETIC_CIF))
        assert list(angles["label_1"]) == ["C2", "C2", "O1"]
        assert list(angles["label_2"]) == ["C1", "C1", "C1"]
        assert list(angles["label_3"]) == ["O1", "H1", "H1"]
        assert list(angles["angle"]) == [90.0, 90.0, 90.0]
        assert len(angles_frame(parse(self.TWO_ATOM_CIF))) == 0

    def test_coordination_summary(self):
        stats = coordination_summary(parse(self.SYNTHETIC_CIF))
        assert list(stats["element"]) == ["C", "O", "N", "H"]
        assert list(stats["sites"]) == [2, 1, 1, 1]
        assert list(stats["mean"]) == [2.0, 1.0, 0.0, 1.0]
        assert list(stats["min"]) == [1, 1, 0, 1]
        assert list(stats["max"]) == [3, 1, 0, 1]
        assert len(coordination_summary(parse("data_x\n_title empty\n"))) == 0

    def test_bond_angle_summary(self):
        stats = bond_angle_summary(parse(self.SYNTHETIC_CIF))
        triplets = list(zip(stats["element_1"], stats["element_2"], stats["element_3"]))
        assert triplets == [("C", "C", "O"), ("C", "C", "H"), ("H", "C", "O")]
        assert list(stats["count"]) == [1, 1, 1]
        assert list(stats["mean"]) == [90.0, 90.0, 90.0]
        empty = bond_angle_summary(parse(self.TWO_ATOM_CIF))
        assert len(empty) == 0
        assert "mean" in empty.columns

    def test_crystal_system_from_cell(self):
        assert parse(self.TWO_ATOM_CIF).crystal_system == "cubic"
        # a stated cell setting is kept even when the metric looks cubic
        assert parse(self.SYNTHETIC_CIF).crystal_system == "triclinic"
        assert parse(BARE_TWO_ATOM_CIF).crystal_system is None
        impossible = "data_x\n" + self.CUBIC_CELL.format(a=-4)
        assert parse(impossible).crystal_system is None

    def test_negative_cell_length(self):
        result = parse("data_x\n" + self.CUBIC_CELL.format(a=-4))
        assert result.lattice.volume is None
        assert "Cell volume not computed: parameters do not form a cell" in result.warnings

    def test_blocks_in_order(self):
        text = "data_a\n_title A\ndata_b\n_title B\ndata_c\n_title C\n"
        results = parse_all(text)
        assert [r.source_block_id for r in results] == ["a", "b", "c"]
        assert [r.title for r in results] == ["A", "B", "C"]
        assert len({r.parsed_at for r in results}) == 1

    def test_no_atoms(self):
        result = parse("data_empty\n" + self.CUBIC_CELL.format(a=4))
        assert result.atoms == ()
        assert result.bonds == ()
        assert NO_ATOMS_WARNING in result.warnings
        assert result.lattice.volume == 64.0

    def test_warnings_are_logged(self):
        with self.assertLogs("xtalcif.parser", level="WARNING") as logs:
            parse("data_empty\n_title nothing\n", filename="empty.cif")
        assert any(
            "empty.cif data_empty: No atoms parsed in block" in line for line in logs.output
        )

    def test_tokenizer_diagnostics_go_to_their_block(self):
        text = "data_a\n_title A\ndata_b\n_title 'B\n"
        first, second = parse_all(text)
        assert not any("unterminated" in msg for msg in first.warnings)
        assert "[line: 4] unterminated quoted string" in second.warnings
        assert second.title == "B"

    def test_block_warnings_are_kept(self):
        result = parse("data_x\nloop_\n_a\n_b\n1\n")
        assert result.warnings[0] == (
            "[line: 2] loop_ with 2 labels has 1 values; discarding 1 trailing values of an incomplete row"
        )

    def test_metadata(self):
        result = parse(self.SYNTHETIC_CIF)
        assert result.parser_version == PARSER_VERSION
        parsed_at = datetime.fromisoformat(result.parsed_at)
        assert parsed_at.tzinfo is not None

    def test_keep_raw(self):
        options = CIFParserOptions()
        options.keep_raw = True
        result = CIFParser(options).parse(self.SYNTHETIC_CIF)
        assert isinstance(result.raw, RawBlock)
        assert result.raw.value("_cell_length_a") == "10.000(2)"

    def test_compute_bonds_off(self):
        options = CIFParserOptions()
        options.compute_bonds = False
        assert CIFParser(options).parse(self.SYNTHETIC_CIF).bonds == ()

    def test_nproc(self):
        options = CIFParserOptions()
        options.nproc = 3
        assert CIFParser(options).parse(self.SYNTHETIC_CIF).bonds == parse(self.SYNTHETIC_CIF).bonds

    def test_parser_is_reusable(self):
        parser = CIFParser()
        assert parser.parse(self.SYNTHETIC_CIF)[:4] == parser.parse(self.SYNTHETIC_CIF)[:4]

    def test_package_exports(self):
        assert xtalcif.parse is parse
        assert xtalcif.CIFParser is CIFParser


class TestCIFParserErrors(UnitBase):

    def test_not_text(self):
        for value in (None, b"data_x", 42):
            with pytest.raises(CIFInputError):
                parse_all(value)

    def test_empty(self):
        for value in ("", "   \n\t\n"):
            with pytest.raises(CIFInputError):
                parse_all(value)

    def test_no_data_block(self):
        with pytest.raises(CIFNoDataError) as excinfo:
            parse_all("# just a comment\n_cell_length_a 5\n", filename="nodata.cif")
        assert str(excinfo.value) == "nodata.cif: no data_ block found"
        assert str(CIFNoDataError()) == "no data_ block found"

    def test_error_hierarchy(self):
        assert issubclass(CIFInputError, CIFError)
        assert issubclass(CIFNoDataError, CIFError)


class TestCIFParserOptions(UnitBase):

    def test_defaults(self):
        options = CIFParserOptions()
        assert options.bond_tolerance == 1.2
        assert options.compute_bonds is True
        assert options.volume_decimals == 6
        assert options.bond_length_decimals == 3
        assert options.nproc == 1
        assert options.keep_raw is False

    def test_apply_command_args(self):
        args = argparse.Namespace(bond_tolerance=1.5, files=["a.cif"])
        options = CIFParserOptions().apply_command_args(args)
        assert options.bond_tolerance == 1.5
        assert not hasattr(options, "files")
