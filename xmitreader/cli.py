"""Command line entry point: expand the members of an XMIT file into text files."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from typing import List, Optional, Tuple

from .unload import process_unload_file
from .xmit import process_xmit_file

logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = "xmitreader"
_DATE_FORMAT = "%d-%b-%Y %I:%M:%S"
_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(message)s"
_TRACE_FORMAT = (
    "%(asctime)s.%(msecs)03d %(levelname)-8s %(module)s:%(funcName)s:%(lineno)d %(message)s"
)


class _ConsoleHandler(logging.StreamHandler):
    """Console handler installed by the command."""


def _configure_logging(debug: bool, trace: bool) -> None:
    package = logging.getLogger(_PACKAGE_LOGGER)
    for handler in [h for h in package.handlers if isinstance(h, _ConsoleHandler)]:
        package.removeHandler(handler)
    handler = _ConsoleHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_TRACE_FORMAT if trace else _FORMAT, _DATE_FORMAT))
    package.addHandler(handler)
    package.setLevel(logging.DEBUG if debug or trace else logging.INFO)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xmitreader",
        description="Expand the members of a partitioned dataset sent as an XMIT file.",
        allow_abbrev=False,
    )
    parser.add_argument("-input", "--input", default="", help="Input XMIT file to be processed")
    parser.add_argument("-target", "--target", default="", help="Path to the output directory")
    parser.add_argument(
        "-type", "--type", dest="type_ext", default="", help="File type (to be used as extension)"
    )
    parser.add_argument(
        "-unload",
        "--unload",
        default="",
        help="Name of the IEBCOPY unload file. If not specified it will be not kept "
        "and a temporary file will be used",
    )
    parser.add_argument(
        "-debug", "--debug", action="store_true", help="Output debug information (maybe quite verbose)"
    )
    parser.add_argument(
        "-encoding",
        "--encoding",
        default="IBM-1047",
        help="EBCDIC codepage of the dataset contents. The default is IBM-1047",
    )
    parser.add_argument(
        "-trace", "--trace", action="store_true", help="Maximum debug output. VERY verbose"
    )
    return parser


def _expand(
    input_path: str, target: str, type_ext: str, unload_path: str, encoding: str
) -> Tuple[int, Optional[int]]:
    """Run both stages; return the exit code and the member count (None on early failure)."""
    try:
        unload = open(unload_path, "wb")
    except OSError as exc:
        logger.error("Error opening unload file: %s", exc)
        return 8, None
    with unload:
        try:
            source = open(input_path, "rb")
        except OSError as exc:
            logger.error("Error opening input file: %s", exc)
            return 8, None
        with source:
            try:
                params = process_xmit_file(source, unload, encoding)
            except (ValueError, LookupError, OSError) as exc:
                logger.error("Error processing input file: %s", exc)
                return 8, None

    if not params.xmit_files:
        logger.error("Error processing input file: no dataset description found")
        return 8, None
    dataset = params.xmit_files[0]
    logger.info("Source dataset: %s", dataset.source_dsname)
    logger.info(
        "Dataset attributes: DSORG=%s, DSTYPE=%s, RECFM=%s, LRECL=%d, BLKSIZE=%d",
        dataset.source_dsorg,
        dataset.source_dstype,
        dataset.source_recfm,
        dataset.source_lrecl,
        dataset.source_blksize,
    )
    logger.info("Using codepage %s for conversion", encoding)

    try:
        with open(unload_path, "rb") as unload:
            expanded = process_unload_file(unload, target, type_ext, dataset, encoding)
    except EOFError:
        return 0, 0
    except (ValueError, LookupError, OSError) as exc:
        logger.error("%s", exc)
        return 8, 0
    return 0, expanded


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command; return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.debug, args.trace)

    if not (args.input and args.target and args.type_ext):
        parser.print_help(sys.stderr)
        return 16
    if not os.path.exists(args.target):
        logger.error("Target directory does not exist: %s", args.target)
        return 4

    temporary = not args.unload
    unload_path = args.unload
    if temporary:
        try:
            handle, unload_path = tempfile.mkstemp(prefix="xmit_unload_", suffix=".unload")
        except OSError as exc:
            logger.error("Error creating temporary unload file: %s", exc)
            return 8
        os.close(handle)

    rc, expanded = _expand(args.input, args.target, args.type_ext, unload_path, args.encoding)

    if temporary:
        try:
            os.remove(unload_path)
        except OSError as exc:
            logger.warning("Error deleting unload file: %s", exc)
            if expanded is not None:
                rc = 2
        else:
            logger.debug("Temporary unload file deleted: %s", unload_path)

    if expanded is None:
        return rc
    logger.info("%d members expanded from XMIT file %s", expanded, args.input)
    return rc


if __name__ == "__main__":
    sys.exit(main())