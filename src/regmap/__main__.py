# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from textwrap import dedent

import regmap
from regmap.merge import MergeEngine, MergeMode, Options
from regmap.writers import WRITERS, create_writer


def cli() -> None:
    top = argparse.ArgumentParser(
        description=dedent(
            """\
            Merge one or more IP-XACT register descriptions and generate C headers, IP-XACT,
            assembler definitions or LaTeX documentation from the result. Later inputs refine the
            registers described by earlier inputs.
            """
        ),
        allow_abbrev=False,
    )
    top.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help=(
            "Output verbose logs. Can be given multiple times to increase the verbosity. "
            "By default only critical messages are output."
        ),
    )

    merge_mode = top.add_mutually_exclusive_group()
    merge_mode.add_argument(
        "-a",
        "--merge-addr",
        dest="merge_mode",
        action="store_const",
        const=MergeMode.BY_ADDRESS,
        help="Treat registers at the same address offset as the same register.",
    )
    merge_mode.add_argument(
        "-n",
        "--merge-name",
        dest="merge_mode",
        action="store_const",
        const=MergeMode.BY_NAME,
        help="Treat registers with the same name as the same register (default).",
    )
    top.set_defaults(merge_mode=MergeMode.BY_NAME)

    top.add_argument(
        "-p",
        "--project",
        metavar="NAME",
        default=Options.project,
        help="Project name written to the generated files.",
    )
    top.add_argument(
        "-t",
        "--type",
        dest="writer_type",
        choices=list(WRITERS),
        help="Output type. If not given, it is derived from the extension of the output file.",
    )
    top.add_argument(
        "inputs",
        metavar="INPUT",
        nargs="+",
        type=Path,
        help="IP-XACT files to read, in merge order.",
    )
    top.add_argument(
        "output",
        metavar="OUTPUT",
        type=Path,
        help="File to write the output to.",
    )

    args = top.parse_args()

    log_level = {
        0: logging.CRITICAL,
        1: logging.WARNING,
        2: logging.INFO,
        3: logging.DEBUG,
    }.get(args.verbose, logging.DEBUG)
    regmap.log.setLevel(log_level)

    options = Options(merge_mode=args.merge_mode, project=args.project)

    try:
        cmd_generate(args.inputs, args.output, options, args.writer_type)
    except (regmap.RegmapError, OSError) as e:
        regmap.log.critical(str(e))
        sys.exit(1)

    sys.exit(0)


def cmd_generate(
    inputs: list[Path], output: Path, options: Options, writer_type: str | None
) -> None:
    # Fail on an unsupported output before reading any input
    writer = create_writer(output, options, writer_type)
    engine = MergeEngine(options=options)

    for path in inputs:
        if not regmap.read_document(path, engine):
            raise regmap.RegmapParseError(f"Failed to read {path}")

    writer.write(engine.components)


# Entry point when running with python -m regmap
if __name__ == "__main__":
    cli()
