import sys
import os
import time
import logging
from importlib.metadata import version, PackageNotFoundError

import numpy as np

from . import LOGGER as MODULELOGGER


def setup_logging(options, filename="xtalcif.log"):
    """Attaches logging handlers to module logger with appropriate loglevels.

    Args:
        options (CIFParserOptions): A CIFParserOptions object.
        filename (str): Name of the log file, created in options.directory.
    """
    # Determine logger levels for handlers
    if options.debug:
        file_log_level = logging.DEBUG
        console_log_level = logging.DEBUG
    elif options.verbose:
        file_log_level = logging.INFO
        console_log_level = logging.INFO
    else:
        file_log_level = logging.INFO
        console_log_level = logging.WARNING

    # Create formatter
    log_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)-8s] " "%(processName)-10s %(name)s : %(message)s"
    )

    # Create & attach console loghandler
    console_loghandler = logging.StreamHandler(stream=sys.stdout)
    console_loghandler.setLevel(console_log_level)
    console_loghandler.setFormatter(log_formatter)
    MODULELOGGER.addHandler(console_loghandler)

    # Create & attach file loghandler
    logging_fname = os.path.join(options.directory, filename)
    file_loghandler = logging.FileHandler(filename=logging_fname, mode="a")
    file_loghandler.setLevel(file_log_level)
    file_loghandler.setFormatter(log_formatter)
    MODULELOGGER.addHandler(file_loghandler)

    # Drop level of the modulelogger, so things get passed to handlers
    MODULELOGGER.setLevel(min(file_log_level, console_log_level))


def teardown_logging():
    """Detaches and closes the handlers added by setup_logging."""
    for handler in list(MODULELOGGER.handlers):
        MODULELOGGER.removeHandler(handler)
        handler.close()


def log_run_info(options, logger):
    """Prints run info to a logger object.

    Args:
        options (CIFParserOptions): A CIFParserOptions object for this run.
        logger (logging.Logger): The logger that will log the messages.
    """
    try:
        xtalcif_version = version("xtalcif")
    except PackageNotFoundError:
        xtalcif_version = "unknown"

    cmd = " ".join(sys.argv)
    logger.info(f"===== xtalcif version: {xtalcif_version} =====")
    logger.info(time.strftime("%c %Z"))
    logger.info(f"{cmd}")
    logger.info(f"===== xtalcif parameters: =====")
    for key in vars(options).keys():
        logger.info(f"{key}: {getattr(options, key)}")
    logger.info(f"numpy float resolution: {np.finfo(float).resolution:.1e}")
    logger.info(f"============================\n")
