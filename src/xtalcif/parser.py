"""Turns CIF text into ParseResults.

The pipeline is linear: the text is tokenized, grouped into raw data blocks,
mapped onto the structure model and finally the geometry is derived. Only an
unusable input raises; everything else that goes wrong is reported in the
warnings of the affected ParseResult.
"""

import logging
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version

from .cif.blocks import CIFBlockParser
from .cif.tokenizer import CIFTokenizer
from .structure.mapper import StructureMapper
from .structure.model import ParseResult
from .xtal.geometry import DEFAULT_BOND_TOLERANCE, crystal_system_from_cell, derive_geometry

logger = logging.getLogger(__name__)

__all__ = [
    "CIFError",
    "CIFInputError",
    "CIFNoDataError",
    "CIFParserOptions",
    "CIFParser",
    "PARSER_VERSION",
    "parse_all",
    "parse",
]

try:
    PARSER_VERSION = version("xtalcif")
except PackageNotFoundError:
    PARSER_VERSION = "unknown"


class CIFError(Exception):
    """Base class of errors raised while parsing CIF text."""


class CIFInputError(CIFError):
    """The input is not CIF text at all: not a string, or empty."""


class CIFNoDataError(CIFError):
    """The document contains no data_ block."""

    def __init__(self, filename=None):
        self.filename = filename
        super().__init__(str(self))

    def __str__(self):
        if self.filename:
            return f"{self.filename}: no data_ block found"
        return "no data_ block found"


class CIFParserOptions:
    def __init__(self):
        # General options
        self.directory = "."
        self.verbose = False
        self.debug = False

        # Output options
        self.keep_raw = False

        # Geometry options
        self.compute_bonds = True
        self.bond_tolerance = DEFAULT_BOND_TOLERANCE
        self.volume_decimals = 6
        self.bond_length_decimals = 3
        self.nproc = 1

    def apply_command_args(self, args):
        for key, value in vars(args).items():
            if hasattr(self, key):
                setattr(self, key, value)
        return self


class CIFParser:

    """Parses CIF documents held in memory.

    A parser keeps only its options, so one instance can be shared between
    threads and reused for any number of documents.

    Args:
        options (CIFParserOptions, optional): defaults are used when omitted.
    """

    def __init__(self, options=None):
        self.options = options if options is not None else CIFParserOptions()
        self._block_parser = CIFBlockParser()

    def parse_all(self, text, filename=None):
        """Parse every data block of a document.

        Args:
            text (str): the CIF document.
            filename (str, optional): only used in messages and copied onto
                the results.

        Returns:
            list of ParseResult: one per data_ block, in document order.

        Raises:
            CIFInputError: text is not a string or holds nothing but whitespace.
            CIFNoDataError: text contains no data_ block.
        """
        if not isinstance(text, str):
            raise CIFInputError(f"CIF input must be text, not {type(text).__name__}")
        if not text.strip():
            raise CIFInputError(f"{filename or 'CIF input'} is empty")

        tokenizer = CIFTokenizer.from_text(text)
        blocks = self._block_parser.parse(tokenizer)
        if not blocks:
            raise CIFNoDataError(filename)

        _attach_diagnostics(blocks, tokenizer.diagnostics)
        parsed_at = datetime.now(timezone.utc).isoformat()
        results = [self._parse_block(block, filename, parsed_at) for block in blocks]
        logger.info(f"Parsed {len(results)} data block(s) from {filename or 'CIF input'}")
        return results

    def parse(self, text, filename=None):
        """Parse a document and return the ParseResult of its first block."""
        return self.parse_all(text, filename=filename)[0]

    def _parse_block(self, block, filename, parsed_at):
        mapped = StructureMapper(block).map()
        geometry = derive_geometry(
            mapped.lattice,
            mapped.atoms,
            tolerance=self.options.bond_tolerance,
            compute_bonds=self.options.compute_bonds,
            volume_decimals=self.options.volume_decimals,
            bond_length_decimals=self.options.bond_length_decimals,
            nproc=self.options.nproc,
        )

        lattice = mapped.lattice
        metadata = dict(mapped.metadata)
        if lattice is not None and geometry.volume is not None:
            lattice = lattice._replace(volume=geometry.volume)
            if metadata["crystal_system"] is None:
                metadata["crystal_system"] = crystal_system_from_cell(lattice)
                logger.debug(f"data_{block.name}: crystal system inferred from cell: {metadata['crystal_system']}")

        warnings = tuple(block.warnings) + mapped.warnings + geometry.warnings
        for msg in warnings:
            logger.warning(f"{filename or 'CIF input'} data_{block.name}: {msg}")

        return ParseResult(
            source_block_id=block.name,
            atoms=mapped.atoms,
            warnings=warnings,
            lattice=lattice,
            symmetry=mapped.symmetry,
            bonds=geometry.bonds,
            filename=filename,
            parser_version=PARSER_VERSION,
            parsed_at=parsed_at,
            raw_keys=tuple(block.tags),
            raw=block if self.options.keep_raw else None,
            **metadata,
        )


def _attach_diagnostics(blocks, diagnostics):
    """Add tokenizer diagnostics to the block containing their line.

    Diagnostics from before the first data_ block go to the first block.
    """
    for line_num, msg in diagnostics:
        target = blocks[0]
        for block in blocks:
            if block.line is not None and block.line <= line_num:
                target = block
        target.warnings.append(msg)


def parse_all(text, filename=None, options=None):
    return CIFParser(options).parse_all(text, filename=filename)


def parse(text, filename=None, options=None):
    return CIFParser(options).parse(text, filename=filename)
