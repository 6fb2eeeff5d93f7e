# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
LaTeX output for register documentation. The document body starts with a memory map table of all
registers, followed by a section per component with a table of fields for each register.

The output is meant to be included in a document that loads the ``longtabu``, ``multirow``,
``ragged2e`` and ``xcolor`` packages and defines the colors ``blue`` and ``liteblue``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from ..model import Access, Component, Components, Field, Register
from .base import Writer, byte_address

# Access abbreviations used in the tables.
_ACCESS_TEXT = {
    Access.READ_ONLY: "RO",
    Access.WRITE_ONLY: "WO",
    Access.READ_WRITE: "RW",
    Access.READ_WRITE_ONCE: "RW1",
    Access.WRITE_ONCE: "W1",
    Access.RESERVED: "",
}

_INDENT = "    "

_ROW_END = r" \\ \hline"


def escape(text: str) -> str:
    """Escape the characters of a name or description that are special to LaTeX."""
    return text.replace("_", r"\_").replace("$", r"\$")


def bit_range(start: int, stop: int) -> str:
    if start == stop:
        return f"[{start}]"
    return f"[{start}:{stop}]"


def enums_are_bit_flags(field: Field) -> bool:
    """
    :return: True if every enumerated value of the field is a distinct single bit, in which case
             the values are documented by bit position.
    """
    used = 0
    for enum_value in field.enums.values():
        value = enum_value.value
        if value == 0 or value & (value - 1) or used & value:
            return False
        used |= value
    return True


class LatexWriter(Writer):
    """Writes the memory map and register tables of all components to a single LaTeX file."""

    EXTENSION: str = "tex"

    def serialize(self, components: Components) -> Dict[Path, str]:
        lines = self.memory_map(components)
        for component in components.values():
            lines.extend(self.component_section(component))
        return {self._path: "\n".join(lines) + "\n"}

    def memory_map(self, components: Components) -> List[str]:
        white = r"\color{white}"
        heading = " & ".join(
            f"{white} {title}"
            for title in ("Address", "Register Name", "CPU Access", "Reset Source", "Module")
        )
        lines = [
            f"% {escape(self._options.project)} register map",
            r"\section{Memory Map}",
            r"\justify",
            r"\begin{center}",
            _INDENT + r"\rowcolors{1}{blue}{liteblue}",
            _INDENT + r"\begin{longtabu} to \textwidth{ | r | X | l | l | c |}",
            _INDENT * 2 + r"\showrowcolors",
            _INDENT * 2 + heading + _ROW_END,
            _INDENT * 2 + r"\hiderowcolors",
            _INDENT * 2 + r"\endhead",
            _INDENT * 2 + r"\hline",
            _INDENT * 2 + r"\endfoot",
        ]

        for component in components.values():
            registers = list(component.registers.values())
            for i, register in enumerate(registers):
                row = (
                    f"0x{byte_address(component, register):x} & {escape(register.name)} & "
                    f"{_ACCESS_TEXT[Access.READ_WRITE]} &  & "
                )
                if i == 0:
                    row += rf"\multirow{{{len(registers)}}}{{*}}{{{escape(component.name)}}}"
                if i < len(registers) - 1:
                    row += r" \\ \cline{1-4}"
                else:
                    row += _ROW_END
                lines.append(_INDENT * 2 + row)

        lines.extend(
            [
                _INDENT + r"\end{longtabu}",
                r"\end{center}",
                "",
            ]
        )
        return lines

    def component_section(self, component: Component) -> List[str]:
        lines = [
            rf"\section{{{escape(component.name)}}}",
            r"\justify",
            "",
        ]
        for register in component.registers.values():
            lines.extend(self.register_table(component, register))
        return lines

    def register_table(self, component: Component, register: Register) -> List[str]:
        columns = r"{ | X[2,r] | X[8,l] | X[2,l] | X[2,l] | X[16,l] |}"
        title = (
            rf"Register at 0x{byte_address(component, register):x}: "
            rf"{escape(component.name)}\_{escape(register.name)}"
        )
        lines = [
            rf"\subsection{{{escape(register.name)}}}",
            escape(register.description),
            r"\begin{center}",
            _INDENT + r"\rowcolors{1}{blue}{liteblue}",
            _INDENT + rf"\begin{{longtabu}} to \textwidth{columns}",
            _INDENT * 2 + r"\showrowcolors",
            _INDENT * 2 + r"\hline",
            _INDENT * 2 + rf"\multicolumn{{5}}{{|l|}}{{\color{{white}} {title}}} \\",
            _INDENT * 2 + r"\hline",
            _INDENT * 2 + r"\multicolumn{1}{|l|}{Bits} & Name & Access & Reset & Description"
            + _ROW_END,
            _INDENT * 2 + r"\hiderowcolors",
            _INDENT * 2 + r"\endhead",
        ]

        fields = list(register.fields.values())
        if fields:
            # Most significant field first
            for field in reversed(fields):
                lines.extend(self.field_row(field))
        else:
            lines.append(
                _INDENT * 2
                + f"{bit_range(register.width - 1, 0)} & r{register.width} & "
                + f"{_ACCESS_TEXT[Access.READ_WRITE]} &  & Direct access to the register data."
                + _ROW_END
            )

        lines.extend(
            [
                _INDENT + r"\end{longtabu}",
                r"\end{center}",
                "",
            ]
        )
        return lines

    def field_row(self, field: Field) -> List[str]:
        if field.name.startswith("reserved"):
            name = "reserved"
            access = _ACCESS_TEXT[Access.RESERVED]
        else:
            name = escape(field.name)
            access = _ACCESS_TEXT[field.access]
        reset = f"0x{field.reset_value:x}" if field.reset_value is not None else ""
        description = escape(field.description)

        row = f"{bit_range(field.start, field.stop)} & {name} & {access} & {reset} & {description}"
        if not field.enums:
            return [_INDENT * 2 + row + _ROW_END]

        if description:
            row += r" \newline"
        lines = [_INDENT * 2 + row]

        bit_flags = enums_are_bit_flags(field)
        values = []
        for enum_value in field.enums.values():
            if bit_flags:
                values.append(f"[{enum_value.value.bit_length() - 1}] {escape(enum_value.name)}")
            else:
                values.append(f"0x{enum_value.value:x}: {escape(enum_value.name)}")
        lines.append(_INDENT * 3 + (" \\newline\n" + _INDENT * 3).join(values) + _ROW_END)

        return lines
