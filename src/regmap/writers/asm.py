# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Assembler output: ``.equ`` symbols for register addresses, field shifts and masks and enumerated
values.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from ..model import Component, Components, Field, Register
from .base import Writer, byte_address, escape


class AsmWriter(Writer):
    """Writes a single assembler include file with the symbols of all components."""

    EXTENSION: str = "s"

    def serialize(self, components: Components) -> Dict[Path, str]:
        lines: List[str] = [f"; {self._options.project} register definitions", ""]
        for component in components.values():
            for register in component.registers.values():
                lines.extend(self.register_symbols(component, register))
        return {self._path: "\n".join(lines) + "\n"}

    def register_symbols(self, component: Component, register: Register) -> List[str]:
        component_name = escape(component.name).upper()
        register_name = escape(register.name).upper()

        address = byte_address(component, register)
        symbol = f".equ    REG_{component_name}_{register_name}, 0x{address:x}"
        if register.description:
            symbol = f"{symbol} ; {register.description}"

        lines = [symbol]
        for field in register.fields.values():
            lines.extend(self.field_symbols(f"{component_name}_{register_name}", field))
        lines.append("")

        return lines

    def field_symbols(self, prefix: str, field: Field) -> List[str]:
        name = f"{prefix}_{escape(field.name).upper()}"
        lines = [
            f".equ        {name}_SHIFT, {field.stop}",
            f".equ        {name}_MASK,  0x{field.mask:x}",
        ]
        lines.extend(
            f".equ        {name}_{escape(e.name).upper()}, 0x{e.value:x}"
            for e in field.enums.values()
        )
        return lines
