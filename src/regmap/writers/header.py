# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
C header output. One header is written per component, next to the requested output file and
named after it: output ``regs.h`` and component ``UART`` give ``regs_UART.h``.

Each header defines the address, shift and mask macros of the registers of the component, a union
type per register with a bitfield view in both byte orders, and a struct type for the component
with padding between the registers.
"""

from __future__ import annotations

from pathlib import Path
from string import Template
from typing import Dict, List

import regmap

from ..layout import Chunk, compile_component, compile_register
from ..model import Component, Components, Field, Register
from .base import Writer, byte_address, camelcase, escape, identifier, type_name

_TEMPLATE = Template(
    """\
/**
 * @file       ${FILE}
 *
 * @project    ${PROJECT}
 *
 * @brief      ${DESCRIPTION}
 */

/** @defgroup ${GUARD}    ${DESCRIPTION} */
/** @addtogroup ${GUARD}
 * @{
 */
#ifndef ${GUARD}
#define ${GUARD}

#include <stdint.h>
${INCLUDES}
typedef uint8_t  ${GUARD}_uint8_t;
typedef uint16_t ${GUARD}_uint16_t;
typedef uint32_t ${GUARD}_uint32_t;
#define register_container union
#define BITFIELD_BEGIN(__type__, __name__) struct {
#define BITFIELD_MEMBER(__type__, __name__, __offset__, __bits__) __type__ __name__:__bits__;
#define BITFIELD_END(__type__, __name__) } __name__;

${SERIALIZED}
#undef register_container
#undef BITFIELD_BEGIN
#undef BITFIELD_MEMBER
#undef BITFIELD_END

_Static_assert(sizeof(${COMPONENT_TYPE}) == ${COMPONENT_SIZE}, \
"sizeof(${COMPONENT_TYPE}) must be ${COMPONENT_SIZE}");

#endif /* !${GUARD} */

/** @} */
"""
)

_INDENT = "    "


def guard_name(file_name: str) -> str:
    """Include guard for a header file name."""
    return escape(file_name).upper()


def component_type(component: Component) -> str:
    return f"{escape(type_name(component)).upper()}_t"


def register_type(component: Component, register: Register) -> str:
    component_name = escape(type_name(component)).upper()
    return f"Reg{component_name}{camelcase(escape(type_name(register)))}_t"


def _member_name(name: str) -> str:
    return identifier(escape(name.replace(" ", "")))


class HeaderWriter(Writer):
    """Writes a C header per component."""

    EXTENSION: str = "h"

    def component_path(self, component_name: str) -> Path:
        """Path of the header of a component."""
        return self._path.with_name(f"{self._path.stem}_{component_name}.h")

    def serialize(self, components: Components) -> Dict[Path, str]:
        return {
            self.component_path(c.name): self.serialize_component(c)
            for c in components.values()
        }

    def serialize_component(self, component: Component) -> str:
        path = self.component_path(component.name)
        guard = guard_name(path.name)

        includes = ""
        if component.is_type_id_copy and component.type_id_copy is not None:
            original_path = self.component_path(component.type_id_copy)
            includes = f'#include "{original_path.name}"\n'

        serializer = _ComponentSerializer(component, guard)

        return _TEMPLATE.substitute(
            FILE=path.name,
            PROJECT=self._options.project,
            DESCRIPTION=f"{component.name} registers",
            GUARD=guard,
            INCLUDES=includes,
            SERIALIZED=serializer.serialize(),
            COMPONENT_TYPE=component_type(component),
            COMPONENT_SIZE=component.byte_size,
        )


class _ComponentSerializer:
    """Declarations of a single component."""

    def __init__(self, component: Component, guard: str) -> None:
        self._component = component
        self._guard = guard
        self._name = escape(component.name).upper()

    def storage_type(self, width: int) -> str:
        if width not in (8, 16, 32):
            regmap.log.error(
                f"Unable to handle a storage width of {width} bits in {self._component.name}, "
                "please use 8, 16, or 32."
            )
        return f"{self._guard}_uint{width}_t"

    def serialize(self) -> str:
        component = self._component
        lines: List[str] = [
            f"#define REG_{self._name}_BASE ((volatile void*)0x{byte_address(component):x}) "
            f"/* {component.description} */",
        ]
        if component.address_range:
            lines.append(f"#define REG_{self._name}_SIZE (0x{component.byte_size:x})")
        else:
            lines.append(f"#define REG_{self._name}_SIZE (sizeof({component_type(component)}))")
        lines.append("")

        for register in component.registers.values():
            lines.extend(self.register_definition(register))

        if not component.is_type_id_copy:
            lines.extend(self.component_declaration())

        lines.append(f"/** @brief {component.description} */")
        lines.append(
            f"extern volatile {component_type(component)} {identifier(escape(component.name))};"
        )
        lines.append("")

        return "\n".join(lines) + "\n"

    def register_definition(self, register: Register) -> List[str]:
        component = self._component
        register_name = escape(register.name).upper()

        lines = [
            f"#define REG_{self._name}_{register_name} "
            f"((volatile {self.storage_type(register.width)}*)"
            f"0x{byte_address(component, register):x}) /* {register.description} */"
        ]

        if component.is_type_id_copy or register.is_type_id_copy:
            return lines

        fields = register.fields.ordered()
        for field in fields:
            lines.extend(self.field_definition(register, field))
        if fields:
            lines.append("")

        reg_type = register_type(component, register)
        width = register.width

        lines.append(
            f"/** @brief Register definition for @ref {component_type(component)}."
            f"{camelcase(register.name)}. */"
        )
        lines.append(f"typedef register_container {reg_type} {{")
        lines.append(f"{_INDENT}/** @brief {width}bit direct register access. */")
        lines.append(f"{_INDENT}{self.storage_type(width)} r{width};")

        if fields:
            layout = compile_register(register)
            lines.append("")
            lines.append(f"{_INDENT}BITFIELD_BEGIN({self.storage_type(width)}, bits)")
            lines.append("#if defined(__LITTLE_ENDIAN__)")
            lines.extend(self.chunk_declaration(c) for c in layout.little_endian)
            lines.append("#elif defined(__BIG_ENDIAN__)")
            lines.extend(self.chunk_declaration(c) for c in layout.big_endian)
            lines.append("#else")
            lines.append("#error Unknown Endian")
            lines.append("#endif")
            lines.append(f"{_INDENT}BITFIELD_END({self.storage_type(width)}, bits)")

        lines.append(f"}} {reg_type};")
        lines.append("")

        return lines

    def field_definition(self, register: Register, field: Field) -> List[str]:
        prefix = f"{self._name}_{escape(register.name).upper()}_{escape(field.name).upper()}"
        mask = field.mask
        shift = field.stop

        lines = [
            f"#define     {prefix}_SHIFT {shift}u",
            f"#define     {prefix}_MASK  0x{mask:x}u",
            f"#define GET_{prefix}(__reg__)  (((__reg__) & 0x{mask:x}) >> {shift}u)",
            f"#define SET_{prefix}(__val__)  (((__val__) << {shift}u) & 0x{mask:x}u)",
        ]
        lines.extend(
            f"#define     {prefix}_{escape(e.name).upper()} 0x{e.value:x}u"
            for e in field.enums.values()
        )
        return lines

    def chunk_declaration(self, chunk: Chunk) -> str:
        description = "Padding" if chunk.field is None else chunk.field.description
        member = (
            f"BITFIELD_MEMBER({self.storage_type(chunk.storage_width)}, "
            f"{_member_name(chunk.name)}, {chunk.offset}, {chunk.width})"
        )
        return f"{_INDENT * 2}/** @brief {description} */\n{_INDENT * 2}{member}"

    def component_declaration(self) -> List[str]:
        component = self._component
        layout = compile_component(component)

        lines = [
            f"/** @brief Component definition for @ref {component.name}. */",
            f"typedef struct {component_type(component)} {{",
        ]

        for slot in layout.slots:
            if slot.register is None:
                lines.append(f"{_INDENT}/** @brief Reserved bytes to pad out data structure. */")
                lines.append(
                    f"{_INDENT}{self.storage_type(slot.storage_width)} {slot.name}[{slot.count}];"
                )
            else:
                name = identifier(camelcase(escape(slot.register.name)))
                array = f"[{slot.count}]" if slot.count > 1 else ""
                lines.append(f"{_INDENT}/** @brief {slot.register.description} */")
                lines.append(
                    f"{_INDENT}{register_type(component, slot.register)} {name}{array};"
                )
            lines.append("")

        lines.append(f"}} {component_type(component)};")
        lines.append("")

        return lines
