"""Parse CIF files and report the crystal structures they contain.

For every data block a one-line summary is printed. With --csv the atom
sites, bonds and bond angles of each block are also written as CSV tables.
"""

import argparse
import logging
import os
import re
import time
from pathlib import Path

from tqdm import tqdm

from xtalcif.custom_argparsers import (
    CustomHelpFormatter,
    PositiveFloat,
    ToggleActionFlag,
    ValidateCIFFileArgument,
)
from xtalcif.logtools import setup_logging, log_run_info, teardown_logging
from xtalcif.parser import CIFError, CIFParser, CIFParserOptions
from xtalcif.structure.summary import angles_frame, atoms_frame, bonds_frame, structure_summary
from xtalcif.xtal.geometry import DEFAULT_BOND_TOLERANCE


logger = logging.getLogger(__name__)

_RE_UNSAFE = re.compile(r"[^\w.-]+")


def build_argparser():
    p = argparse.ArgumentParser(
        formatter_class=CustomHelpFormatter, description=__doc__
    )

    p.add_argument(
        "files",
        nargs="+",
        metavar="FILE.cif",
        action=ValidateCIFFileArgument,
        help="CIF file(s) to parse",
    )

    # Geometry options
    go = p.add_argument_group("Geometry options")
    go.add_argument(
        "--bond-tolerance",
        default=DEFAULT_BOND_TOLERANCE,
        dest="bond_tolerance",
        metavar="<float>",
        type=float,
        action=PositiveFloat,
        help="Bond when distance <= tolerance x (sum of covalent radii)",
    )
    go.add_argument(
        "--bonds",
        action=ToggleActionFlag,
        dest="compute_bonds",
        default=True,
        help="Derive bonds from covalent radii",
    )
    go.add_argument(
        "-p",
        "--nproc",
        default=1,
        metavar="<int>",
        type=int,
        help="Number of threads used for the bond search",
    )

    # Output options
    p.add_argument(
        "-d",
        "--directory",
        default=".",
        metavar="<dir>",
        type=os.path.abspath,
        help="Directory to store log and CSV files",
    )
    p.add_argument(
        "--csv",
        action="store_true",
        help="Write atom, bond and bond angle tables of every data block as CSV",
    )
    p.add_argument(
        "-v", "--verbose", action="store_true", help="Be verbose"
    )
    p.add_argument(
        "--debug", action=ToggleActionFlag, default=False, help="Log as much information as possible"
    )

    return p


def _csv_basename(fname, block_id):
    return f"{Path(fname).stem}_{_RE_UNSAFE.sub('_', block_id) or 'block'}"


def write_tables(result, fname, directory):
    """Writes the atoms, bonds and angles tables as <stem>_<block>_<table>.csv."""
    base = os.path.join(directory, _csv_basename(fname, result.source_block_id))
    atoms_frame(result).to_csv(f"{base}_atoms.csv", index=False)
    bonds_frame(result).to_csv(f"{base}_bonds.csv", index=False)
    angles_frame(result).to_csv(f"{base}_angles.csv", index=False)
    logger.info(f"Wrote {base}_atoms.csv, {base}_bonds.csv and {base}_angles.csv")


def parse_file(parser, fname, options, write_csv=False):
    """Parses one file. Returns True on success."""
    try:
        with open(fname, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        logger.error(f"Unable to read {fname}: {e}")
        return False

    try:
        results = parser.parse_all(text, filename=fname)
    except CIFError as e:
        logger.error(f"{fname}: {e}")
        return False

    for result in results:
        tqdm.write(f"{fname} data_{result.source_block_id}: {structure_summary(result)}")
        if result.warnings:
            logger.info(f"{fname} data_{result.source_block_id}: {len(result.warnings)} warning(s)")
        if write_csv:
            write_tables(result, fname, options.directory)
    return True


def main(argv=None):
    """Default entrypoint for xtalcif_parse."""

    # Collect and act on arguments
    #   (When argv==None, argparse will default to sys.argv[1:])
    p = build_argparser()
    args = p.parse_args(args=argv)

    os.makedirs(args.directory, exist_ok=True)

    # Apply the arguments to options
    options = CIFParserOptions()
    options.apply_command_args(args)

    # Setup logger
    setup_logging(options=options)
    try:
        log_run_info(options, logger)

        parser = CIFParser(options)
        time0 = time.time()
        nfailed = 0
        for fname in tqdm(args.files, desc="Parsing", unit="file", disable=len(args.files) < 2):
            if not parse_file(parser, fname, options, write_csv=args.csv):
                nfailed += 1

        logger.info(f"Total time: {time.time() - time0}s")
        if nfailed:
            logger.error(f"{nfailed} of {len(args.files)} file(s) could not be parsed")
            return 1
        return 0
    finally:
        teardown_logging()
