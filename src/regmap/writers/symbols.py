# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Assembler symbol output: a global data symbol per component, placed at the base address of the
component and sized to cover its registers. Linking against the symbols gives the components
addresses without a linker script.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from ..model import Component, Components
from .base import Writer, byte_address, escape


class AsmSymbolsWriter(Writer):
    """Writes a single assembler file with a symbol for each component."""

    EXTENSION: str = "asym"

    def serialize(self, components: Components) -> Dict[Path, str]:
        lines: List[str] = [f"/* {self._options.project} component symbols */", ""]
        for component in components.values():
            lines.extend(self.component_symbol(component))
        return {self._path: "\n".join(lines) + "\n"}

    def component_symbol(self, component: Component) -> List[str]:
        name = escape(component.name).upper()
        return [
            f".global {name}",
            f".equ    {name}, 0x{byte_address(component):x}",
            f".size   {name}, 0x{component.byte_size:x}",
            "",
        ]
