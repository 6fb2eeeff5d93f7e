# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Combination of element definitions from one or more documents into a single model.

Readers convert the elements of a document into `ComponentDef`, `RegisterDef`, `FieldDef` and
`EnumDef` objects carrying the raw attribute text, and hand them to a `MergeEngine`. The engine
creates elements that do not exist yet and updates the ones that do, so that later documents can
refine what earlier documents described.
"""

from __future__ import annotations

import dataclasses as dc
import enum
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import regmap

from .errors import MergeConflictError, StructuralError
from .model import Access, Component, Components, Enumeration, Field, Register
from .number import parse_number


@enum.unique
class MergeMode(enum.Enum):
    """How repeated register definitions are matched to existing registers."""

    # Registers with the same name are the same register.
    BY_NAME = enum.auto()
    # Registers with the same address offset are the same register.
    BY_ADDRESS = enum.auto()


@dataclass(frozen=True)
class Options:
    """Options to configure how documents are merged and written."""

    # Identity used for repeated register definitions.
    merge_mode: MergeMode = MergeMode.BY_NAME

    # Project name written to generated output.
    project: str = "<PROJECT>"


@dataclass
class EnumDef:
    """Named value of a field as found in a document."""

    name: Optional[str] = None
    value: Optional[str] = None
    description: Optional[str] = None

    def __str__(self) -> str:
        return f"enumerated value {self.name!r}"


@dataclass
class FieldDef:
    """Field as found in a document."""

    name: Optional[str] = None
    description: Optional[str] = None
    bit_offset: Optional[str] = None
    bit_width: Optional[str] = None
    access: Optional[str] = None
    reset_value: Optional[str] = None
    # Vendor flags, set if the text is "true"
    reserved: Optional[str] = None
    constant: Optional[str] = None
    enums: List[EnumDef] = dc.field(default_factory=list)

    def __str__(self) -> str:
        return f"field {self.name!r}"


@dataclass
class RegisterDef:
    """Register as found in a document."""

    name: Optional[str] = None
    description: Optional[str] = None
    address_offset: Optional[str] = None
    size: Optional[str] = None
    dim: Optional[str] = None
    type_id: Optional[str] = None
    fields: List[FieldDef] = dc.field(default_factory=list)

    def __str__(self) -> str:
        return f"register {self.name!r}"


@dataclass
class ComponentDef:
    """Component as found in a document."""

    name: Optional[str] = None
    description: Optional[str] = None
    base_address: Optional[str] = None
    address_range: Optional[str] = None
    address_unit_bits: Optional[str] = None
    module_name: Optional[str] = None
    type_id: Optional[str] = None
    registers: List[RegisterDef] = dc.field(default_factory=list)

    def __str__(self) -> str:
        return f"component {self.name!r}"


class MergeEngine:
    """
    Applies element definitions to a `Components` model.

    Every merge method returns True if the element and all of its children were well formed.
    A malformed element is logged and recorded in `errors` but does not stop the processing of its
    siblings, and changes made before the problem was found are kept.

    Definitions that cannot be combined with the existing model raise `MergeConflictError`.
    """

    def __init__(
        self, components: Optional[Components] = None, options: Options = Options()
    ) -> None:
        """
        :param components: Model to merge into. A new empty model is created if not given.
        :param options: Merge options.
        """
        self._components = components if components is not None else Components()
        self._options = options
        self.errors: List[StructuralError] = []

    @property
    def components(self) -> Components:
        return self._components

    @property
    def options(self) -> Options:
        return self._options

    def merge(self, definitions: Iterable[ComponentDef]) -> bool:
        """
        Merge the components of one document.

        :param definitions: Component definitions in document order.
        :raises MergeConflictError: If a definition conflicts with the model.
        :return: True if all definitions were well formed.
        """
        status = True
        for definition in definitions:
            status = self.merge_component(definition) and status
        return status

    def merge_component(self, definition: ComponentDef) -> bool:
        if not definition.name:
            return self._fail(definition, "component without a name")

        status = True

        component = self._components.get(definition.name)
        update = component is not None
        if component is None:
            component = Component(definition.name)
            self._components[definition.name] = component
        else:
            regmap.log.debug(f"Updating component {component.name}")

        if definition.address_unit_bits is not None:
            address_unit_bits = self._number(
                definition, "addressUnitBits", definition.address_unit_bits
            )
            if address_unit_bits is None:
                status = False
            elif address_unit_bits == 0:
                status = self._fail(definition, "addressUnitBits must be non-zero")
            else:
                component.address_unit_bits = address_unit_bits

        if definition.module_name is not None:
            component.module_name = definition.module_name

        if definition.description is not None:
            component.description = definition.description

        if definition.address_range is not None:
            address_range = self._number(definition, "range", definition.address_range)
            if address_range is not None:
                component.address_range = address_range
            else:
                status = False

        if definition.base_address is not None:
            base_address = self._number(definition, "baseAddress", definition.base_address)
            if base_address is not None:
                component.base_address = base_address
            else:
                status = False

        if definition.type_id:
            original = self._components.find_type_id(definition.type_id)
            if original is not None and original is not component:
                regmap.log.info(
                    f"Component {component.name} shares type {definition.type_id} "
                    f"with {original.name}"
                )
                component.set_type_id(definition.type_id, original.name)
            else:
                component.set_type_id(definition.type_id, component.name)

        if component.is_type_id_copy and definition.registers:
            raise MergeConflictError(
                f"Component {component.name} is a copy of {component.type_id_copy} "
                "and cannot declare registers"
            )

        for register_definition in definition.registers:
            status = self.merge_register(component, register_definition, update) and status

        return status

    def merge_register(
        self, component: Component, definition: RegisterDef, update: bool = False
    ) -> bool:
        """
        :param component: Component containing the register.
        :param definition: Register definition.
        :param update: True if the component existed before the current document.
        """
        if not definition.name:
            return self._fail(definition, f"register without a name in {component.name}")

        status = True

        address: Optional[int] = None
        if definition.address_offset is not None:
            address = self._number(definition, "addressOffset", definition.address_offset)
            if address is None:
                status = False

        register: Optional[Register] = None

        if self._options.merge_mode == MergeMode.BY_ADDRESS and address is not None:
            register = component.register_at(address)
            if register is not None:
                if register.name != definition.name:
                    regmap.log.info(
                        f"Replacing register {register!s} at offset 0x{address:x} "
                        f"with {definition.name}"
                    )
                component.rename_register(register, definition.name)
                register.clear_fields()
                if definition.fields:
                    update = False
            else:
                # The address identifies the register, a register of the same name elsewhere
                # is replaced
                previous = component.registers.get(definition.name)
                if previous is not None:
                    regmap.log.info(
                        f"Replacing register {previous!s} at offset 0x{previous.address:x} "
                        f"with {definition.name} at offset 0x{address:x}"
                    )
                register = Register(definition.name)
                component.add_register(register)
                update = False
        else:
            register = component.registers.get(definition.name)

        if register is None:
            register = Register(definition.name)
            component.add_register(register)
            update = False

        if definition.dim is not None:
            dimensions = self._number(definition, "dim", definition.dim)
            if dimensions is None:
                status = False
            elif dimensions == 0:
                status = self._fail(definition, "dim must be non-zero")
            else:
                register.dimensions = dimensions

        if definition.description is not None:
            register.description = definition.description

        if definition.size is not None:
            size = self._number(definition, "size", definition.size)
            if size is None:
                status = False
            elif size == 0:
                status = self._fail(definition, "size must be non-zero")
            else:
                register.width = size
        elif not update:
            status = self._fail(definition, "missing size")

        if definition.type_id:
            original = component.find_type_id(definition.type_id)
            if original is not None and original is not register:
                register.set_type_id(definition.type_id, original.name)
            else:
                register.set_type_id(definition.type_id, register.name)

        if register.is_type_id_copy and definition.fields:
            raise MergeConflictError(
                f"Register {register!s} is a copy of {register.type_id_copy} "
                "and cannot declare fields"
            )

        for field_definition in definition.fields:
            status = self.merge_field(register, field_definition, update) and status

        if address is not None:
            register.address = address
            component.registers.sort()

        return status

    def merge_field(self, register: Register, definition: FieldDef, update: bool = False) -> bool:
        """
        :param register: Register containing the field.
        :param definition: Field definition.
        :param update: If True, only fields that already exist are modified, and their bit range
                       and access type are kept.
        """
        if not definition.name:
            return self._fail(definition, f"field without a name in {register!s}")

        status = True

        field = register.fields.get(definition.name)
        if field is None:
            if update:
                regmap.log.warning(
                    f"Field {definition.name} not found in {register!s}, dropping"
                )
                return status
            field = Field(definition.name)
            register.add_field(field)

        if definition.description is not None:
            field.description = definition.description

        if definition.reserved is not None:
            field.reserved = definition.reserved.strip() == "true"

        if definition.constant is not None:
            field.constant = definition.constant.strip() == "true"

        bit_offset: Optional[int] = None
        if definition.bit_offset is not None:
            bit_offset = self._number(definition, "bitOffset", definition.bit_offset)
            if bit_offset is None:
                status = False
        elif not update:
            status = self._fail(definition, "missing bitOffset")

        bit_width: Optional[int] = None
        if definition.bit_width is not None:
            bit_width = self._number(definition, "bitWidth", definition.bit_width)
            if bit_width is None:
                status = False
            elif bit_width == 0:
                bit_width = None
                status = self._fail(definition, "bitWidth must be non-zero")
        elif not update:
            status = self._fail(definition, "missing bitWidth")

        if not update:
            if bit_offset is not None and bit_width is not None:
                field.stop = bit_offset
                field.start = bit_offset + bit_width - 1
                register.fields.sort()

            if field.name.startswith("reserved"):
                field.access = Access.RESERVED
            else:
                field.access = Access.from_text(definition.access)

        for enum_definition in definition.enums:
            status = self.merge_enum(field, enum_definition) and status

        if definition.reset_value is not None:
            reset_value = self._number(definition, "reset value", definition.reset_value)
            if reset_value is None:
                status = False
            elif reset_value != reset_value & (field.mask >> field.stop):
                status = self._fail(
                    definition,
                    f"reset value 0x{reset_value:x} does not fit in {field.bit_width} bits",
                )
            else:
                field.reset_value = reset_value

        return status

    def merge_enum(self, field: Field, definition: EnumDef) -> bool:
        if not definition.name:
            return self._fail(definition, f"enumerated value without a name in {field.name}")

        status = True

        enum_value = field.enums.get(definition.name)
        if enum_value is None:
            enum_value = Enumeration(definition.name)
            field.add_enum(enum_value)

        if definition.description is not None:
            enum_value.description = definition.description

        if definition.value is not None:
            value = self._number(definition, "value", definition.value)
            if value is not None:
                enum_value.value = value
                field.enums.sort()
            else:
                status = False

        return status

    def _number(self, element: Any, attribute: str, text: str) -> Optional[int]:
        """Parse a numeric attribute, recording a structural error if it is malformed."""
        number = parse_number(text)
        if not number.valid:
            self._fail(element, f"{attribute} has invalid value {text!r}")
            return None
        return number.value

    def _fail(self, element: Any, explanation: str) -> bool:
        error = StructuralError(element, explanation)
        regmap.log.error(str(error))
        self.errors.append(error)
        return False
