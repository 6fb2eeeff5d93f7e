# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Type, Union

import lxml.etree as ET

import regmap

from . import bindings
from ._bindings import IpxactElement, local_name
from .errors import RegmapParseError
from .merge import (
    ComponentDef,
    EnumDef,
    FieldDef,
    MergeEngine,
    Options,
    RegisterDef,
)
from .model import Components


def parse(
    paths: Iterable[Union[str, Path]], options: Options = Options()
) -> Components:
    """
    Parse and merge the register maps described by a sequence of IP-XACT files.

    :param paths: Paths to the IP-XACT files, in merge order.
    :param options: Merge options.

    :raises FileNotFoundError: If a file does not exist.
    :raises RegmapParseError: If a file could not be parsed or contained malformed elements.
    :raises MergeConflictError: If the files describe conflicting definitions.

    :return: The merged components.
    """
    engine = MergeEngine(options=options)

    for path in paths:
        if not read_document(path, engine):
            errors = "\n".join(f"  * {e}" for e in engine.errors)
            raise RegmapParseError(f"Invalid element(s) in {path}:\n{errors}")

    return engine.components


def read_document(path: Union[str, Path], engine: MergeEngine) -> bool:
    """
    Merge the register map described by an IP-XACT file into a model.

    :param path: Path to the IP-XACT file.
    :param engine: Merge engine holding the model.

    :raises FileNotFoundError: If the file does not exist.
    :raises RegmapParseError: If the file is not well formed XML.
    :raises MergeConflictError: If the file conflicts with the model.

    :return: True if all elements of the file were well formed.
    """
    document = load_document(path)

    definitions: List[ComponentDef] = [
        component_definition(element)
        for element in document.getroot().iter()
        if isinstance(element, bindings.AddressBlockElement)
    ]
    regmap.log.info(f"Read {len(definitions)} component(s) from {path}")

    return engine.merge(definitions)


def load_document(path: Union[str, Path]) -> ET._ElementTree:
    """
    :raises FileNotFoundError: If the file does not exist.
    :raises RegmapParseError: If the file is not well formed XML.
    :return: XML tree of the file, using the binding classes for known elements.
    """
    xml_file = Path(path)

    if not xml_file.is_file():
        raise FileNotFoundError(f"No such file: {xml_file.absolute()}")

    try:
        # Note: remove comments as otherwise these are present as nodes in the returned XML tree
        xml_parser = ET.XMLParser(remove_comments=True, remove_pis=True)
        xml_parser.set_element_class_lookup(_LocalNameLookup(bindings.BINDINGS))

        with open(xml_file, "rb") as f:
            return ET.parse(f, parser=xml_parser)

    except ET.XMLSyntaxError as e:
        raise RegmapParseError(f"Error parsing IP-XACT file {xml_file}") from e


def component_definition(element: bindings.AddressBlockElement) -> ComponentDef:
    return ComponentDef(
        name=element.name,
        description=element.description,
        base_address=element.base_address,
        address_range=element.range,
        address_unit_bits=element.address_unit_bits,
        module_name=element.module_name,
        type_id=element.type_identifier,
        registers=[register_definition(r) for r in element.registers],
    )


def register_definition(element: bindings.RegisterElement) -> RegisterDef:
    return RegisterDef(
        name=element.name,
        description=element.description,
        address_offset=element.address_offset,
        size=element.size,
        dim=element.dim,
        type_id=element.type_identifier,
        fields=[field_definition(f) for f in element.fields],
    )


def field_definition(element: bindings.FieldElement) -> FieldDef:
    return FieldDef(
        name=element.name,
        description=element.description,
        bit_offset=element.bit_offset,
        bit_width=element.bit_width,
        access=element.access,
        reset_value=element.reset_value,
        reserved=element.reserved,
        constant=element.constant,
        enums=[
            EnumDef(name=e.name, value=e.value, description=e.description)
            for e in element.enumerated_values
        ],
    )


class _LocalNameLookup(ET.PythonElementClassLookup):
    """XML element class lookup table that maps the local tag name of an element to a class"""

    def __init__(self, lookup_table: Mapping[str, Type[IpxactElement]]):
        """
        :param lookup_table: Lookup table mapping a local tag name to an element class.
        """
        super().__init__()
        self._lookup_table = lookup_table

    def lookup(self, _document: Any, element: Any) -> Optional[Type[IpxactElement]]:
        """Look up the Element class for the given XML element"""
        name = local_name(element.tag)
        if name is None:
            return None
        return self._lookup_table.get(name)
