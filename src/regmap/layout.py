# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Storage layout of registers and components for bitfield based code generation.

A register layout partitions the bits of a register into chunks, each declared in a storage unit
of 8, 16 or 32 bits. Gaps between fields are covered by synthesized padding, and fields that
cannot be placed in a single storage unit are split. A component layout places the registers of a
component at their address offsets, padding the gaps between them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

import regmap

from .errors import PaddingConflictError
from .model import Component, Field, Register

# Storage unit widths, largest first.
STORAGE_WIDTHS: Tuple[int, ...] = (32, 16, 8)

_MAX_STORAGE_WIDTH = STORAGE_WIDTHS[0]


@dataclass(frozen=True)
class LayoutWarning:
    """
    A storage layout decision that deviates from the natural layout of the fields.
    Warnings are logged when they occur and returned with the layout.
    """

    # Register the layout was computed for
    owner: Register

    message: str

    def __str__(self) -> str:
        return f"{self.owner!s}: {self.message}"


@dataclass(frozen=True)
class Chunk:
    """Contiguous run of register bits declared in a single storage unit."""

    # Declared name of the chunk
    name: str

    # Least significant bit of the chunk
    offset: int

    # Number of bits in the chunk
    width: int

    # Width of the storage unit the chunk is declared in
    storage_width: int

    # Field the bits belong to, None for padding
    field: Optional[Field] = None

    @property
    def is_padding(self) -> bool:
        return self.field is None

    @property
    def msb(self) -> int:
        return self.offset + self.width - 1


@dataclass(frozen=True)
class RegisterLayout:
    """Chunks covering every bit of a register exactly once."""

    register: Register

    # Chunks from the least significant bit upwards
    little_endian: Tuple[Chunk, ...]

    warnings: Tuple[LayoutWarning, ...] = ()

    @property
    def big_endian(self) -> Tuple[Chunk, ...]:
        """Chunks from the most significant bit downwards."""
        return tuple(reversed(self.little_endian))


@dataclass(frozen=True)
class Slot:
    """Register or padding array at an address offset of a component."""

    name: str

    # Address offset, in address units
    address: int

    # Number of array elements
    count: int

    # Width of each array element in bits
    storage_width: int

    # Register placed in the slot, None for padding
    register: Optional[Register] = None

    @property
    def is_padding(self) -> bool:
        return self.register is None


@dataclass(frozen=True)
class ComponentLayout:
    """Registers and padding of a component in address order."""

    component: Component
    slots: Tuple[Slot, ...]


def compile_register(register: Register) -> RegisterLayout:
    """
    Compute the storage layout of a register.

    :param register: Register to lay out. For a copy, the fields of the original are used.
    :raises PaddingConflictError: If fields overlap or extend past the register width.
    :return: Layout of the register.
    """
    return _RegisterSweep(register).run()


def compile_component(component: Component) -> ComponentLayout:
    """
    Compute the placement of the registers of a component.
    Components with a range are padded up to the end of the range.

    :param component: Component to lay out. For a copy, the registers of the original are used.
    :raises PaddingConflictError: If registers overlap.
    :return: Layout of the component.
    """
    unit_bits = component.address_unit_bits
    slots: List[Slot] = []
    expected = 0

    for register in sorted(component.registers.values(), key=lambda r: r.address):
        gap = register.address - expected
        if gap < 0:
            raise PaddingConflictError(register, register.address, expected, "offset")
        if gap > 0:
            slot = _padding_slot(expected, gap, unit_bits)
            regmap.log.info(
                f"{component.name}: {slot.count} x {slot.storage_width} bits of padding "
                f"at offset 0x{expected:x}"
            )
            slots.append(slot)

        slots.append(
            Slot(
                name=register.name,
                address=register.address,
                count=register.dimensions,
                storage_width=register.width,
                register=register,
            )
        )
        expected = register.address + register.footprint(unit_bits)

    if component.address_range > expected:
        slots.append(_padding_slot(expected, component.address_range - expected, unit_bits))

    return ComponentLayout(component=component, slots=tuple(slots))


def _padding_slot(address: int, gap: int, unit_bits: int) -> Slot:
    gap_bits = gap * unit_bits
    for storage_width in STORAGE_WIDTHS:
        if gap_bits % storage_width == 0:
            break
    else:
        storage_width = unit_bits

    return Slot(
        name=f"reserved_{address}",
        address=address,
        count=gap_bits // storage_width,
        storage_width=storage_width,
    )


class _RegisterSweep:
    """Single pass over the fields of a register in bit order."""

    def __init__(self, register: Register) -> None:
        self._register = register
        self._width = register.width
        self._fields: Sequence[Field] = sorted(register.fields.values(), key=lambda f: f.start)
        self._position = 0
        self._unit: Optional[int] = None
        self._chunks: List[Chunk] = []
        self._warnings: List[LayoutWarning] = []

    def run(self) -> RegisterLayout:
        for index, field in enumerate(self._fields):
            if field.stop < self._position:
                raise PaddingConflictError(self._register, field.stop, self._position, "bit")
            if field.stop > self._position:
                self._pad(field.stop, index)

            self._unit = self._field_unit(field, index)
            self._place(field, self._unit)
            self._position = max(self._position, field.start + 1)

        if self._position > self._width:
            raise PaddingConflictError(self._register, self._width, self._position, "bit")
        self._pad(self._width, len(self._fields))

        chunks = tuple(self._chunks)
        _check_coverage(self._register, chunks, self._width)

        return RegisterLayout(
            register=self._register, little_endian=chunks, warnings=tuple(self._warnings)
        )

    def _warn(self, message: str) -> None:
        warning = LayoutWarning(self._register, message)
        regmap.log.warning(str(warning))
        self._warnings.append(warning)

    def _pad(self, end: int, next_index: int) -> None:
        """Cover the bits from the current position up to `end` with padding."""
        while self._position < end:
            position = self._position
            unit = self._padding_unit(position, end, next_index)
            chunk_end = min(end, (position // unit + 1) * unit)
            self._chunks.append(
                Chunk(
                    name=f"reserved_{chunk_end - 1}_{position}",
                    offset=position,
                    width=chunk_end - position,
                    storage_width=unit,
                )
            )
            self._unit = unit
            self._position = chunk_end

    def _padding_unit(self, position: int, end: int, next_index: int) -> int:
        if position % 8 != 0:
            return self._unit if self._unit is not None else _MAX_STORAGE_WIDTH

        for width in STORAGE_WIDTHS:
            if position % width == 0 and end - position >= width:
                return width

        # Less than a byte remains, share a unit with the fields that follow
        return self._natural_unit(position, end, next_index)

    def _field_unit(self, field: Field, index: int) -> int:
        if field.stop % 8 == 0:
            return self._natural_unit(field.stop, field.start + 1, index + 1)

        if self._unit is None:
            self._warn(f"no storage unit in force for {field.name}, using 32 bits")
            return _MAX_STORAGE_WIDTH

        return self._unit

    def _natural_unit(self, base: int, end: int, next_index: int) -> int:
        """
        Smallest storage unit starting at `base` that covers the bits up to `end` and any fields
        immediately following them, up to the next byte boundary.
        """
        while end % 8 != 0 and next_index < len(self._fields):
            following = self._fields[next_index]
            if following.stop != end:
                break
            end = following.start + 1
            next_index += 1

        width = -(-(end - base) // 8) * 8

        if width <= 0:
            self._warn(f"zero width storage unit at bit {base}, using 32 bits")
            return _MAX_STORAGE_WIDTH
        if width > _MAX_STORAGE_WIDTH:
            return _MAX_STORAGE_WIDTH
        if width == 24:
            self._warn(f"24 bit storage unit at bit {base}, using 32 bits")
            width = _MAX_STORAGE_WIDTH
        if base % width != 0:
            self._warn(f"{width} bit storage unit at bit {base} is not aligned, using 32 bits")
            width = _MAX_STORAGE_WIDTH

        return width

    def _place(self, field: Field, unit: int) -> None:
        low, high = field.stop, field.start

        if high < low:
            self._warn(f"{field.name} has no bits")
            return

        if low // unit == high // unit:
            self._chunks.append(
                Chunk(
                    name=field.name,
                    offset=low,
                    width=high - low + 1,
                    storage_width=unit,
                    field=field,
                )
            )
            return

        self._warn(f"{field.name} crosses a {unit} bit storage unit boundary and is split")

        position = low
        while position <= high:
            chunk_end = min(high + 1, (position // unit + 1) * unit)
            self._chunks.append(
                Chunk(
                    name=f"{field.name}_{chunk_end - 1}_{position}",
                    offset=position,
                    width=chunk_end - position,
                    storage_width=unit,
                    field=field,
                )
            )
            position = chunk_end


def _check_coverage(register: Register, chunks: Sequence[Chunk], width: int) -> None:
    coverage = np.zeros(width, dtype=np.int32)
    for chunk in chunks:
        coverage[chunk.offset : chunk.offset + chunk.width] += 1

    if not np.all(coverage == 1):
        uncovered = np.flatnonzero(coverage != 1)
        raise RuntimeError(
            f"Layout of {register!s} does not cover bits {uncovered.tolist()} exactly once. "
            "This should never happen, and likely indicates a bug in the layout sweep."
        )
