# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
IP-XACT output. Each component is written as a memory map with a single address block.
Reading the output back gives the same model as the one written. Fields with reserved access
are written without an access element.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import lxml.etree as ET

from ..model import Access, Component, Components, Field, Register
from .base import Writer

NAMESPACE = "http://www.accellera.org/XMLSchema/IPXACT/1685-2014"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
SCHEMA_LOCATION = "http://www.accellera.org/images/XMLSchema/IPXACT/1685-2014/index.xsd"

# Access types of the IP-XACT schema. Reserved fields have no access element.
_ACCESS_TEXT = {
    Access.READ_ONLY: "read-only",
    Access.WRITE_ONLY: "write-only",
    Access.READ_WRITE: "read-write",
    Access.WRITE_ONCE: "writeOnce",
    Access.READ_WRITE_ONCE: "read-writeOnce",
}


def _sub(parent: ET._Element, tag: str, text: Optional[object] = None) -> ET._Element:
    element = ET.SubElement(parent, f"{{{NAMESPACE}}}{tag}")
    if text is not None:
        element.text = str(text)
    return element


class IpxactWriter(Writer):
    """Writes all components to a single IP-XACT document."""

    EXTENSION: str = "xml"

    def serialize(self, components: Components) -> Dict[Path, str]:
        root = ET.Element(
            f"{{{NAMESPACE}}}component",
            nsmap={"ipxact": NAMESPACE, "xsi": XSI_NAMESPACE},
        )
        root.set(f"{{{XSI_NAMESPACE}}}schemaLocation", f"{NAMESPACE} {SCHEMA_LOCATION}")

        _sub(root, "vendor", "nordicsemi.com")
        _sub(root, "library", self._options.project)
        _sub(root, "name", "Register Definitions")
        _sub(root, "version", "1.0")

        memory_maps = _sub(root, "memoryMaps")
        for component in components.values():
            self.memory_map(memory_maps, component)

        contents = ET.tostring(
            root, pretty_print=True, xml_declaration=True, encoding="UTF-8"
        ).decode("utf-8")
        return {self._path: contents}

    def memory_map(self, parent: ET._Element, component: Component) -> None:
        memory_map = _sub(parent, "memoryMap")
        _sub(memory_map, "name", component.name)
        _sub(memory_map, "description", component.description)

        block = _sub(memory_map, "addressBlock")
        _sub(block, "name", component.name)
        _sub(block, "description", component.description)
        _sub(block, "baseAddress", f"0x{component.base_address:x}")
        if component.type_id is not None:
            _sub(block, "typeIdentifier", component.type_id)
        _sub(block, "range", f"0x{component.address_range:x}")
        _sub(block, "usage", "register")
        _sub(block, "volatile", "false")
        if component.module_name is not None:
            extensions = _sub(block, "vendorExtensions")
            _sub(extensions, "hdlModuleName", component.module_name)

        if not component.is_type_id_copy:
            # Originals must precede their copies for the type identifiers to resolve on reading
            registers = sorted(component.registers.values(), key=lambda r: r.is_type_id_copy)
            for register in registers:
                self.register(block, register)

        _sub(memory_map, "addressUnitBits", component.address_unit_bits)

    def register(self, parent: ET._Element, register: Register) -> None:
        element = _sub(parent, "register")
        _sub(element, "name", register.name)
        _sub(element, "description", register.description)
        _sub(element, "addressOffset", f"0x{register.address:x}")
        if register.type_id is not None:
            _sub(element, "typeIdentifier", register.type_id)
        if register.dimensions > 1:
            _sub(element, "dim", register.dimensions)
        _sub(element, "size", register.width)
        _sub(element, "volatile", "true")

        if not register.is_type_id_copy:
            for field in register.fields.values():
                self.field(element, field)

    def field(self, parent: ET._Element, field: Field) -> None:
        element = _sub(parent, "field")
        _sub(element, "name", field.name)
        _sub(element, "description", field.description)
        _sub(element, "bitOffset", field.bit_offset)
        if field.reset_value is not None:
            reset = _sub(_sub(element, "resets"), "reset")
            _sub(reset, "value", f"0x{field.reset_value:x}")
        _sub(element, "bitWidth", field.bit_width)
        if field.access != Access.RESERVED:
            _sub(element, "access", _ACCESS_TEXT[field.access])

        if field.enums:
            values = _sub(element, "enumeratedValues")
            for enum_value in field.enums.values():
                value = _sub(values, "enumeratedValue")
                _sub(value, "name", enum_value.name)
                _sub(value, "value", f"0x{enum_value.value:x}")
                _sub(value, "description", enum_value.description)

        if field.reserved or field.constant:
            extensions = _sub(element, "vendorExtensions")
            if field.reserved:
                _sub(extensions, "reserved", "true")
            if field.constant:
                _sub(extensions, "constantValue", "true")
