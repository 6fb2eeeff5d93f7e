# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
"Low-level" read-only Python representation of the IP-XACT elements that describe register maps.
Each type of element of interest is represented by a class in this module, with properties
returning the raw text of its child elements.

Elements are identified by their local tag name, so documents using any IP-XACT namespace revision
(or vendor specific prefixes in vendor extensions) are handled the same way.
"""

from __future__ import annotations

import typing
from typing import Iterator, Optional

from ._bindings import BindingRegistry, IpxactElement, Text, iter_children, local_name

# Container for classes that represent elements in the IP-XACT XML tree.
BINDING_REGISTRY = BindingRegistry()

# Alias for the BINDING_REGISTRY.add for convenience.
binding = BINDING_REGISTRY.add

# Alias for the BINDING_REGISTRY.bindings for convenience.
BINDINGS = BINDING_REGISTRY.bindings


@binding
class EnumeratedValueElement(IpxactElement):
    """Named value of a field."""

    TAG: str = "enumeratedValue"

    # Name of the enumerated value.
    name: Text = Text("name")

    # Description of the enumerated value.
    description: Text = Text("description")

    # Value of the enumerated value.
    value: Text = Text("value")

    def __repr__(self) -> str:
        return super()._repr(props={"name": self.name})


@binding
class FieldElement(IpxactElement):
    """IP-XACT field element."""

    TAG: str = "field"

    # Name of the field.
    name: Text = Text("name")

    # Description of the field.
    description: Text = Text("description")

    # Least significant bit of the field.
    bit_offset: Text = Text("bitOffset")

    # Number of bits in the field.
    bit_width: Text = Text("bitWidth")

    # Access rights of the field.
    access: Text = Text("access")

    # Value of the field after reset.
    reset_value: Text = Text("resets/reset/value")

    # Vendor flag marking the field as reserved.
    reserved: Text = Text("vendorExtensions/reserved")

    # Vendor flag marking the field as constant.
    constant: Text = Text("vendorExtensions/constantValue")

    @property
    def enumerated_values(self) -> Iterator[EnumeratedValueElement]:
        """Iterate over all enumerated values of the field."""
        values = (
            value
            for values in iter_children(self, "enumeratedValues")
            for value in iter_children(values, EnumeratedValueElement.TAG)
        )
        return typing.cast(Iterator[EnumeratedValueElement], values)

    def __repr__(self) -> str:
        return super()._repr(props={"name": self.name})


@binding
class RegisterElement(IpxactElement):
    """IP-XACT register element."""

    TAG: str = "register"

    # Name of the register.
    name: Text = Text("name")

    # Description of the register.
    description: Text = Text("description")

    # Offset of the register from the start of the address block, in address units.
    address_offset: Text = Text("addressOffset")

    # Width of the register in bits.
    size: Text = Text("size")

    # Number of instances of the register.
    dim: Text = Text("dim")

    # Identifier shared by registers with the same definition.
    type_identifier: Text = Text("typeIdentifier")

    @property
    def fields(self) -> Iterator[FieldElement]:
        """Iterate over all fields of the register."""
        it = iter_children(self, FieldElement.TAG)
        return typing.cast(Iterator[FieldElement], it)

    def __repr__(self) -> str:
        return super()._repr(props={"name": self.name})


@binding
class AddressBlockElement(IpxactElement):
    """IP-XACT address block element, describing a single component."""

    TAG: str = "addressBlock"

    # Name of the address block.
    name: Text = Text("name")

    # Description of the address block.
    description: Text = Text("description")

    # Base address of the address block.
    base_address: Text = Text("baseAddress")

    # Number of address units covered by the address block.
    range: Text = Text("range")

    # Identifier shared by address blocks with the same definition.
    type_identifier: Text = Text("typeIdentifier")

    # Name of the HDL module implementing the address block.
    module_name: Text = Text("vendorExtensions/hdlModuleName")

    @property
    def address_unit_bits(self) -> Optional[str]:
        """
        Number of bits in an address unit.
        This is given by the first addressUnitBits element following the address block in the
        enclosing memory map.
        """
        for sibling in self.itersiblings():
            if local_name(sibling.tag) == "addressUnitBits":
                return (sibling.text or "").strip()
        return None

    @property
    def registers(self) -> Iterator[RegisterElement]:
        """Iterate over all registers of the address block."""
        it = iter_children(self, RegisterElement.TAG)
        return typing.cast(Iterator[RegisterElement], it)

    def __repr__(self) -> str:
        return super()._repr(props={"name": self.name})
