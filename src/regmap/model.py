# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
In-memory model of a set of register maps.

The model is a strict ownership tree: `Components` owns `Component` objects, which own `Register`
objects, which own `Field` objects, which own `Enumeration` objects. Each level keeps its children
in an `OrderedContainer` keyed by name and sorted on a level specific key.

Components and registers can share their definition with an earlier element through a type
identifier. Such a copy only stores the name of the element it copies; the children of a copy are
always looked up through the original.
"""

from __future__ import annotations

import enum
from typing import Optional

from typing_extensions import Self

import regmap

from ._container import OrderedContainer, element_repr
from .errors import MergeConflictError


class CaseInsensitiveStrEnum(enum.Enum):
    """String enum class that can be constructed from a case-insensitive string."""

    @classmethod
    def _missing_(cls, value: object) -> Optional[Self]:
        """Handler for string values with mismatched case."""
        if not isinstance(value, str):
            return None

        value_lower = value.lower()
        for member in cls:
            if member.value.lower() == value_lower:
                return member

        return None


@enum.unique
class Access(CaseInsensitiveStrEnum):
    """Access rights for a given field."""

    # Read access is permitted. Write operations have an undefined result.
    READ_ONLY = "read-only"
    # Write access is permitted. Read operations have an undefined result.
    WRITE_ONLY = "write-only"
    # Read and write accesses are permitted.
    READ_WRITE = "read-write"
    # Only the first write after reset has an effect. Read operations have an undefined results.
    WRITE_ONCE = "writeOnce"
    # Only the first write after reset has an effect. Read access is permitted.
    READ_WRITE_ONCE = "read-writeOnce"
    # The bits are not to be used.
    RESERVED = "reserved"

    @classmethod
    def from_text(cls, text: Optional[str]) -> Access:
        """
        :param text: Access type as written in a register description.
        :return: The matching access type, or RESERVED if the text is missing or unknown.
        """
        if text is None:
            return cls.RESERVED
        try:
            return cls(text.strip())
        except ValueError:
            return cls.RESERVED


class TypeIdentified:
    """Common functionality for elements that can share their definition with another element."""

    name: str

    def __init__(self) -> None:
        self._type_id: Optional[str] = None
        self._type_id_copy: Optional[str] = None

    def set_type_id(self, type_id: str, original_name: str) -> None:
        """
        Assign a type identifier.

        :param type_id: Type identifier.
        :param original_name: Name of the element that defines the type. This is the element's own
                              name unless the element is a copy.
        """
        self._type_id = type_id
        self._type_id_copy = original_name

    @property
    def type_id(self) -> Optional[str]:
        """Type identifier of the element, if any."""
        return self._type_id

    @property
    def type_id_copy(self) -> Optional[str]:
        """Name of the element defining the type identifier, if any."""
        return self._type_id_copy

    @property
    def is_type_id_copy(self) -> bool:
        """True if the element is a copy of another element with the same type identifier."""
        return bool(self._type_id_copy) and self._type_id_copy != self.name


class Enumeration:
    """Named value of a field."""

    def __init__(self, name: str, value: int = 0, description: str = "") -> None:
        self.name = name
        self.value = value
        self.description = description

    def __repr__(self) -> str:
        return element_repr(self.__class__, self.name, kv_props={"value": self.value})


class Field:
    """
    Bit field of a register.
    The field covers the bits from `stop` (least significant) up to and including `start` (most
    significant).
    """

    def __init__(
        self,
        name: str,
        *,
        description: str = "",
        start: int = 0,
        stop: int = 0,
        access: Access = Access.READ_WRITE,
        reserved: bool = False,
        constant: bool = False,
        reset_value: Optional[int] = None,
    ) -> None:
        self.name = name
        self.description = description
        self.start = start
        self.stop = stop
        self.access = access
        self.reserved = reserved
        self.constant = constant
        self.reset_value = reset_value
        self._enums: OrderedContainer[Enumeration] = OrderedContainer(
            sort_key=lambda e: e.value
        )

    @property
    def enums(self) -> OrderedContainer[Enumeration]:
        """Named values of the field, sorted by value."""
        return self._enums

    def add_enum(self, enum_value: Enumeration) -> None:
        self._enums[enum_value.name] = enum_value

    @property
    def bit_offset(self) -> int:
        return self.stop

    @property
    def bit_width(self) -> int:
        return self.start - self.stop + 1

    @property
    def mask(self) -> int:
        """Bit mask of the field within the register."""
        if self.bit_width <= 0:
            return 0
        return ((1 << self.bit_width) - 1) << self.stop

    @property
    def has_reset_value(self) -> bool:
        return self.reset_value is not None

    def __repr__(self) -> str:
        bool_props = [p for p, v in (("reserved", self.reserved), ("constant", self.constant)) if v]
        return element_repr(
            self.__class__,
            self.name,
            bool_props=bool_props,
            kv_props={"bits": f"[{self.start}:{self.stop}]", "access": self.access.value},
        )


class Register(TypeIdentified):
    """
    Register of a component.
    The address is an offset from the component base address, in address units.
    """

    def __init__(
        self,
        name: str,
        *,
        description: str = "",
        address: int = 0,
        width: int = 0,
        dimensions: int = 1,
    ) -> None:
        super().__init__()
        self.name = name
        self.description = description
        self.address = address
        self.width = width
        self.dimensions = dimensions
        self._fields: OrderedContainer[Field] = OrderedContainer(sort_key=lambda f: f.start)
        self._parent: Optional[Component] = None

    @property
    def parent(self) -> Optional[Component]:
        """Component containing the register."""
        return self._parent

    @property
    def original(self) -> Optional[Register]:
        """Register this register is a copy of, or None if it is not a copy."""
        if not self.is_type_id_copy or self._parent is None:
            return None
        return self._parent.registers.get(self.type_id_copy)

    @property
    def fields(self) -> OrderedContainer[Field]:
        """Fields of the register sorted by start bit. For a copy, the fields of the original."""
        original = self.original
        if original is not None and original is not self:
            return original._fields
        return self._fields

    def add_field(self, field: Field) -> None:
        """
        :raises MergeConflictError: If the register is a copy of another register.
        """
        if self.is_type_id_copy:
            raise MergeConflictError(
                f"{self!s}: cannot add field {field.name} to a copy of {self.type_id_copy}"
            )
        self._fields[field.name] = field

    def clear_fields(self) -> None:
        self._fields.clear()

    def footprint(self, address_unit_bits: int) -> int:
        """Number of address units occupied by the register including all its dimensions."""
        units = -(-self.width // address_unit_bits)
        return units * self.dimensions

    @property
    def reset_value(self) -> int:
        """Reset value of the register, combined from the reset values of its fields."""
        value = 0
        for field in self.fields.values():
            if field.reset_value is not None:
                value &= ~field.mask
                value |= (field.reset_value << field.stop) & field.mask
        return value

    @property
    def mask(self) -> int:
        """Bit mask of all non-reserved fields."""
        mask = 0
        for field in self.fields.values():
            if not field.reserved:
                mask |= field.mask
        return mask

    @property
    def write_mask(self) -> int:
        """Bit mask of all non-reserved fields that can be written."""
        mask = 0
        for field in self.fields.values():
            if field.access != Access.READ_ONLY and not field.reserved:
                mask |= field.mask
        return mask

    def _has_access(self, access: Access) -> bool:
        return any(f.access == access and not f.reserved for f in self.fields.values())

    @property
    def has_read_only(self) -> bool:
        return self._has_access(Access.READ_ONLY)

    @property
    def has_write_only(self) -> bool:
        return self._has_access(Access.WRITE_ONLY)

    @property
    def has_write(self) -> bool:
        return any(
            f.access != Access.READ_ONLY and not f.reserved for f in self.fields.values()
        )

    def __str__(self) -> str:
        if self._parent is not None:
            return f"{self._parent.name}.{self.name}"
        return self.name

    def __repr__(self) -> str:
        bool_props = [f"copy of {self.type_id_copy}"] if self.is_type_id_copy else []
        return element_repr(
            self.__class__,
            str(self),
            address=self.address,
            length=self.dimensions if self.dimensions > 1 else None,
            bool_props=bool_props,
            kv_props={"width": self.width},
        )


class Component(TypeIdentified):
    """Block of registers mapped at a base address."""

    def __init__(
        self,
        name: str,
        *,
        description: str = "",
        base_address: int = 0,
        address_range: int = 0,
        address_unit_bits: int = 8,
        module_name: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.description = description
        self.base_address = base_address
        self.address_range = address_range
        self.address_unit_bits = address_unit_bits
        self.module_name = module_name
        self._registers: OrderedContainer[Register] = OrderedContainer(
            sort_key=lambda r: r.address
        )
        self._parent: Optional[Components] = None

    @property
    def original(self) -> Optional[Component]:
        """Component this component is a copy of, or None if it is not a copy."""
        if not self.is_type_id_copy or self._parent is None:
            return None
        return self._parent.get(self.type_id_copy)

    @property
    def registers(self) -> OrderedContainer[Register]:
        """
        Registers of the component sorted by address.
        For a copy, the registers of the original.
        """
        original = self.original
        if original is not None and original is not self:
            return original._registers
        return self._registers

    def add_register(self, register: Register) -> None:
        """
        :raises MergeConflictError: If the component is a copy of another component.
        """
        if self.is_type_id_copy:
            raise MergeConflictError(
                f"{self.name}: cannot add register {register.name} to a copy of "
                f"{self.type_id_copy}"
            )
        register._parent = self
        self._registers[register.name] = register

    def rename_register(self, register: Register, name: str) -> None:
        """
        Give a register a new name, replacing any other register with that name.
        Copies of the register follow the rename.
        """
        old_name = register.name
        replaced = self._registers.get(name)
        if replaced is not None and replaced is not register:
            regmap.log.info(
                f"{self.name}: register {name} at offset 0x{replaced.address:x} is replaced by "
                f"the register at offset 0x{register.address:x}"
            )

        self._registers.rekey(old_name, name)
        register.name = name

        for other in self._registers.values():
            if other.type_id is not None and other.type_id_copy == old_name:
                other.set_type_id(other.type_id, name)

    def register_at(self, address: int) -> Optional[Register]:
        """:return: The first register at the given address offset, if any."""
        return self.registers.find(lambda r: r.address == address)

    def find_type_id(self, type_id: str) -> Optional[Register]:
        """:return: The register defining the given type identifier, if any."""
        return self.registers.find(lambda r: r.type_id == type_id and not r.is_type_id_copy)

    @property
    def byte_size(self) -> int:
        """
        Size of the component in bytes. This is the range if one is given, otherwise the end of
        the last register.
        """
        if self.address_range:
            return self.address_range * self.address_unit_bits // 8
        end = 0
        for register in self.registers.values():
            end = max(end, register.address + register.footprint(self.address_unit_bits))
        return end * self.address_unit_bits // 8

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        bool_props = [f"copy of {self.type_id_copy}"] if self.is_type_id_copy else []
        return element_repr(
            self.__class__, self.name, address=self.base_address, bool_props=bool_props
        )


class Components(OrderedContainer[Component]):
    """All components known to a merge session, in order of first definition."""

    def __init__(self) -> None:
        super().__init__(sort_key=None)

    def __setitem__(self, name: str, component: Component, /) -> None:
        component._parent = self
        super().__setitem__(name, component)

    def find_type_id(self, type_id: str) -> Optional[Component]:
        """:return: The component defining the given type identifier, if any."""
        return self.find(lambda c: c.type_id == type_id and not c.is_type_id_copy)
