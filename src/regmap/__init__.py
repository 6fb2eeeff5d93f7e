# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from .errors import (
    RegmapError,
    RegmapParseError,
    NumberParseError,
    StructuralError,
    MergeConflictError,
    PaddingConflictError,
)
from .number import (
    Number,
    parse_number,
    require_number,
)
from .model import (
    Access,
    Enumeration,
    Field,
    Register,
    Component,
    Components,
)
from .merge import (
    MergeMode,
    Options,
    EnumDef,
    FieldDef,
    RegisterDef,
    ComponentDef,
    MergeEngine,
)
from .layout import (
    LayoutWarning,
    Chunk,
    RegisterLayout,
    Slot,
    ComponentLayout,
    compile_register,
    compile_component,
)
from .parsing import (
    parse,
    read_document,
)
from .writers import (
    Writer,
    HeaderWriter,
    IpxactWriter,
    AsmWriter,
    AsmSymbolsWriter,
    LatexWriter,
    create_writer,
)

import importlib.metadata
import logging

__version__ = importlib.metadata.version("regmap")


def _init_logger() -> logging.Logger:
    formatter = logging.Formatter("{message}", style="{")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger("regmap")
    logger.setLevel(logging.ERROR)
    logger.addHandler(handler)

    return logger


# logging.Logger instance used for log output from regmap
log = _init_logger()

__all__ = [
    # from errors
    "RegmapError",
    "RegmapParseError",
    "NumberParseError",
    "StructuralError",
    "MergeConflictError",
    "PaddingConflictError",
    # from number
    "Number",
    "parse_number",
    "require_number",
    # from model
    "Access",
    "Enumeration",
    "Field",
    "Register",
    "Component",
    "Components",
    # from merge
    "MergeMode",
    "Options",
    "EnumDef",
    "FieldDef",
    "RegisterDef",
    "ComponentDef",
    "MergeEngine",
    # from layout
    "LayoutWarning",
    "Chunk",
    "RegisterLayout",
    "Slot",
    "ComponentLayout",
    "compile_register",
    "compile_component",
    # from parsing
    "parse",
    "read_document",
    # from writers
    "Writer",
    "HeaderWriter",
    "IpxactWriter",
    "AsmWriter",
    "AsmSymbolsWriter",
    "LatexWriter",
    "create_writer",
    # other
    "log",
    "__version__",
]
