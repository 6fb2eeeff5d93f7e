# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Output writers. A writer is selected by the extension of the output file unless a type is given
explicitly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Type, Union

from ..errors import RegmapError
from ..merge import Options
from .asm import AsmWriter
from .base import Writer
from .header import HeaderWriter
from .ipxact import IpxactWriter
from .latex import LatexWriter
from .symbols import AsmSymbolsWriter

# Writer classes by the file extension they handle.
WRITERS: Dict[str, Type[Writer]] = {
    w.EXTENSION: w for w in (HeaderWriter, IpxactWriter, AsmWriter, AsmSymbolsWriter, LatexWriter)
}


def create_writer(
    path: Union[str, Path], options: Options = Options(), writer_type: Optional[str] = None
) -> Writer:
    """
    Create a writer for an output file.

    :param path: Output file.
    :param options: Options of the merge session.
    :param writer_type: Extension identifying the writer to use. Defaults to the extension of
                        the output file.

    :raises RegmapError: If no writer handles the requested type.
    :return: Writer for the output file.
    """
    path = Path(path)
    if writer_type is None:
        writer_type = path.suffix.lstrip(".")

    writer_class = WRITERS.get(writer_type.lower())
    if writer_class is None:
        supported = ", ".join(WRITERS)
        raise RegmapError(
            f"Unsupported output type {writer_type!r} for {path}, expected one of: {supported}"
        )

    return writer_class(path, options)


__all__ = [
    "AsmSymbolsWriter",
    "AsmWriter",
    "HeaderWriter",
    "IpxactWriter",
    "LatexWriter",
    "WRITERS",
    "Writer",
    "create_writer",
]
