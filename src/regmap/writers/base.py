# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Common functionality of the output writers.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

import regmap

from ..merge import Options
from ..model import Component, Components, Register

_ESCAPES = {"@": "_AT_", "/": "_DIV_"}
_SEPARATORS = re.compile(r"[ \-.,:\[\]\u2014]")


def escape(name: str) -> str:
    """Make a name usable as part of an identifier."""
    name = _SEPARATORS.sub("_", name)
    for char, replacement in _ESCAPES.items():
        name = name.replace(char, replacement)
    return name


def camelcase(name: str) -> str:
    """
    Convert a name to CamelCase, treating separators as word boundaries.
    Separators are dropped, the first letter of each word is capitalized and the rest lowercased.
    """
    words = _SEPARATORS.sub("_", name).split("_")
    return "".join(word[:1].upper() + word[1:].lower() for word in words)


def identifier(name: str) -> str:
    """Prefix names that start with a digit so that they are valid identifiers."""
    if name[:1].isdigit():
        return f"_{name}"
    return name


def type_name(element: Union[Component, Register]) -> str:
    """Name of the type of an element: the type identifier if it has one, its name otherwise."""
    return element.type_id if element.type_id else element.name


def byte_address(component: Component, register: Optional[Register] = None) -> int:
    """Byte address of a component, or of a register within it."""
    address = component.base_address
    if register is not None:
        address += register.address
    return address * component.address_unit_bits // 8


class Writer(ABC):
    """Base class for writers that serialize a set of components to a file."""

    # File extension the writer is selected by
    EXTENSION: str

    def __init__(self, path: Union[str, Path], options: Options = Options()) -> None:
        """
        :param path: Output file.
        :param options: Options of the merge session, for project wide information.
        """
        self._path = Path(path)
        self._options = options

    @property
    def path(self) -> Path:
        return self._path

    @abstractmethod
    def serialize(self, components: Components) -> Dict[Path, str]:
        """:return: Mapping of each output file to its contents."""
        ...

    def write(self, components: Components) -> None:
        """
        Write the components to the output file(s).

        :raises OSError: If a file could not be written.
        """
        for path, contents in self.serialize(components).items():
            regmap.log.info(f"Writing {path}")
            path.write_text(contents, encoding="utf-8")
