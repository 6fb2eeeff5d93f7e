# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import pytest

import regmap
from regmap import (
    Access,
    AsmSymbolsWriter,
    AsmWriter,
    ComponentDef,
    EnumDef,
    FieldDef,
    HeaderWriter,
    IpxactWriter,
    LatexWriter,
    MergeEngine,
    Options,
    RegisterDef,
    RegmapError,
    create_writer,
)


@pytest.fixture
def components():
    uart0 = ComponentDef(
        name="UART0",
        description="UART",
        base_address="0x40002000",
        address_range="0x1000",
        address_unit_bits="8",
        module_name="uart_core",
        type_id="uart",
        registers=[
            RegisterDef(
                name="CONFIG",
                description="Configuration register",
                address_offset="0x56C",
                size="32",
                fields=[
                    FieldDef(
                        name="HWFC",
                        description="Hardware flow control",
                        bit_offset="0",
                        bit_width="1",
                        access="read-write",
                        reset_value="0",
                        enums=[
                            EnumDef(name="Disabled", value="0", description="Disabled"),
                            EnumDef(name="Enabled", value="1", description="Enabled"),
                        ],
                    ),
                    FieldDef(
                        name="PARITY",
                        description="Parity",
                        bit_offset="1",
                        bit_width="3",
                        access="read-write",
                        reset_value="0x2",
                        constant="true",
                    ),
                    FieldDef(
                        name="reserved0",
                        bit_offset="4",
                        bit_width="4",
                        reserved="true",
                    ),
                    FieldDef(
                        name="STATUS",
                        description="Status",
                        bit_offset="8",
                        bit_width="8",
                        access="read-only",
                    ),
                ],
            ),
            RegisterDef(
                name="RXD",
                description="Receive data",
                address_offset="0x520",
                size="32",
                dim="2",
                type_id="data",
                fields=[
                    FieldDef(
                        name="DATA",
                        bit_offset="0",
                        bit_width="8",
                        access="read-only",
                    )
                ],
            ),
            RegisterDef(
                name="TXD",
                description="Transmit data",
                address_offset="0x51C",
                size="32",
                type_id="data",
            ),
        ],
    )
    uart1 = ComponentDef(
        name="UART1",
        description="UART",
        base_address="0x40003000",
        address_range="0x1000",
        type_id="uart",
    )

    engine = MergeEngine()
    assert engine.merge([uart0, uart1])
    return engine.components


def summary(components):
    """Everything the writers are expected to preserve."""
    result = []
    for c in components.values():
        registers = []
        for r in c.registers.values():
            fields = []
            for f in r.fields.values():
                enums = [(e.name, e.value, e.description) for e in f.enums.values()]
                fields.append(
                    (
                        f.name,
                        f.description,
                        f.start,
                        f.stop,
                        f.access,
                        f.reserved,
                        f.constant,
                        f.reset_value,
                        enums,
                    )
                )
            registers.append(
                (
                    r.name,
                    r.description,
                    r.address,
                    r.width,
                    r.dimensions,
                    r.type_id,
                    r.is_type_id_copy,
                    fields,
                )
            )
        result.append(
            (
                c.name,
                c.description,
                c.base_address,
                c.address_range,
                c.address_unit_bits,
                c.module_name,
                c.type_id,
                c.is_type_id_copy,
                registers,
            )
        )
    return result


def test_header(components, tmp_path):
    writer = HeaderWriter(tmp_path / "regs.h", Options(project="Demo"))
    files = writer.serialize(components)

    assert set(files) == {tmp_path / "regs_UART0.h", tmp_path / "regs_UART1.h"}

    header = files[tmp_path / "regs_UART0.h"]
    assert "@project    Demo" in header
    assert "#ifndef REGS_UART0_H" in header
    assert "#define REG_UART0_BASE ((volatile void*)0x40002000) /* UART */" in header
    assert "#define REG_UART0_SIZE (0x1000)" in header
    assert (
        "#define REG_UART0_CONFIG ((volatile REGS_UART0_H_uint32_t*)0x4000256c) "
        "/* Configuration register */"
    ) in header
    assert "#define     UART0_CONFIG_PARITY_SHIFT 1u" in header
    assert "#define     UART0_CONFIG_PARITY_MASK  0xeu" in header
    assert "#define GET_UART0_CONFIG_STATUS(__reg__)  (((__reg__) & 0xff00) >> 8u)" in header
    assert "#define     UART0_CONFIG_HWFC_ENABLED 0x1u" in header
    assert "typedef register_container RegUARTConfig_t {" in header
    assert "BITFIELD_MEMBER(REGS_UART0_H_uint8_t, HWFC, 0, 1)" in header
    assert "BITFIELD_MEMBER(REGS_UART0_H_uint8_t, STATUS, 8, 8)" in header
    assert "BITFIELD_MEMBER(REGS_UART0_H_uint16_t, reserved_31_16, 16, 16)" in header

    # Copies share the register type of the original
    assert "RegUARTData_t" in header
    assert "typedef register_container RegUARTTxd_t" not in header

    assert "typedef struct UART_t {" in header
    assert "REGS_UART0_H_uint32_t reserved_0[327];" in header
    assert "REGS_UART0_H_uint32_t reserved_1320[17];" in header
    assert "REGS_UART0_H_uint32_t reserved_1392[676];" in header
    assert "RegUARTData_t Rxd[2];" in header
    assert "RegUARTData_t Txd;" in header
    assert "extern volatile UART_t UART0;" in header
    assert '_Static_assert(sizeof(UART_t) == 4096, "sizeof(UART_t) must be 4096");' in header

    copy = files[tmp_path / "regs_UART1.h"]
    assert '#include "regs_UART0.h"' in copy
    assert "#define REG_UART1_CONFIG ((volatile REGS_UART1_H_uint32_t*)0x4000356c)" in copy
    assert "typedef struct" not in copy
    assert "typedef register_container" not in copy
    assert "extern volatile UART_t UART1;" in copy


def test_header_little_and_big_endian(components, tmp_path):
    header = HeaderWriter(tmp_path / "regs.h").serialize(components)[tmp_path / "regs_UART0.h"]

    le_block = header.split("#if defined(__LITTLE_ENDIAN__)")[1].split("#elif")[0]
    be_block = header.split("#elif defined(__BIG_ENDIAN__)")[1].split("#else")[0]

    le_members = [line.strip() for line in le_block.splitlines() if "BITFIELD_MEMBER" in line]
    be_members = [line.strip() for line in be_block.splitlines() if "BITFIELD_MEMBER" in line]
    assert le_members == list(reversed(be_members))


def test_header_write(components, tmp_path):
    HeaderWriter(tmp_path / "regs.h").write(components)

    assert (tmp_path / "regs_UART0.h").is_file()
    assert (tmp_path / "regs_UART1.h").is_file()
    assert not (tmp_path / "regs.h").exists()


def test_ipxact_round_trip(components, tmp_path):
    path = tmp_path / "out.xml"
    IpxactWriter(path, Options(project="Demo")).write(components)

    contents = path.read_text()
    assert contents.startswith("<?xml")
    assert "<ipxact:library>Demo</ipxact:library>" in contents

    assert summary(regmap.parse([path])) == summary(components)


def test_ipxact_round_trip_keeps_reserved_access(tmp_path):
    definition = ComponentDef(
        name="GPIO",
        base_address="0x50000000",
        registers=[
            RegisterDef(
                name="OUT",
                address_offset="0x4",
                size="32",
                fields=[
                    FieldDef(name="SPARE", bit_offset="0", bit_width="4"),
                    FieldDef(name="PIN", bit_offset="4", bit_width="4", access="read-write"),
                ],
            )
        ],
    )
    engine = MergeEngine()
    assert engine.merge([definition])
    written = engine.components["GPIO"].registers["OUT"]
    assert written.fields["SPARE"].access == Access.RESERVED

    path = tmp_path / "out.xml"
    IpxactWriter(path).write(engine.components)
    assert path.read_text().count("<ipxact:access>") == 1

    read = regmap.parse([path])["GPIO"].registers["OUT"]
    assert read.fields["SPARE"].access == Access.RESERVED
    assert read.write_mask == written.write_mask == 0xFF
    assert read.has_read_only == written.has_read_only
    assert read.has_write == written.has_write


def test_ipxact_original_before_copy(components, tmp_path):
    contents = IpxactWriter(tmp_path / "out.xml").serialize(components)[tmp_path / "out.xml"]

    # TXD has the lower address, but is a copy of RXD
    assert contents.index("<ipxact:name>RXD</ipxact:name>") < contents.index(
        "<ipxact:name>TXD</ipxact:name>"
    )
    assert contents.count("<ipxact:register>") == 3


def test_asm(components, tmp_path):
    contents = AsmWriter(tmp_path / "regs.s").serialize(components)[tmp_path / "regs.s"]
    lines = contents.splitlines()

    assert ".equ    REG_UART0_CONFIG, 0x4000256c ; Configuration register" in lines
    assert ".equ        UART0_CONFIG_PARITY_SHIFT, 1" in lines
    assert ".equ        UART0_CONFIG_PARITY_MASK,  0xe" in lines
    assert ".equ        UART0_CONFIG_HWFC_DISABLED, 0x0" in lines
    assert ".equ        UART0_TXD_DATA_MASK,  0xff" in lines
    assert ".equ    REG_UART1_CONFIG, 0x4000356c ; Configuration register" in lines


def test_asm_symbols(components, tmp_path):
    contents = AsmSymbolsWriter(tmp_path / "regs.asym").serialize(components)[
        tmp_path / "regs.asym"
    ]
    lines = contents.splitlines()

    uart0 = lines.index(".global UART0")
    assert lines[uart0 + 1 : uart0 + 3] == [".equ    UART0, 0x40002000", ".size   UART0, 0x1000"]
    uart1 = lines.index(".global UART1")
    assert lines[uart1 + 1 : uart1 + 3] == [".equ    UART1, 0x40003000", ".size   UART1, 0x1000"]


def test_asm_symbols_size_without_range(tmp_path):
    timer = ComponentDef(
        name="TIMER",
        base_address="0x40008000",
        registers=[
            RegisterDef(name="TASKS_START", address_offset="0x0", size="32"),
            RegisterDef(name="CC", address_offset="0x40", size="32", dim="2"),
        ],
    )
    engine = MergeEngine()
    assert engine.merge([timer])

    contents = AsmSymbolsWriter(tmp_path / "out.asym").serialize(engine.components)
    lines = contents[tmp_path / "out.asym"].splitlines()
    assert ".equ    TIMER, 0x40008000" in lines
    assert ".size   TIMER, 0x48" in lines


def test_latex(components, tmp_path):
    contents = LatexWriter(tmp_path / "regs.tex").serialize(components)[tmp_path / "regs.tex"]
    lines = [line.strip() for line in contents.splitlines()]

    assert lines[1] == r"\section{Memory Map}"
    assert r"0x4000251c & TXD & RW &  & \multirow{3}{*}{UART0} \\ \cline{1-4}" in lines
    assert r"0x40002520 & RXD & RW &  &  \\ \cline{1-4}" in lines
    assert r"0x4000256c & CONFIG & RW &  &  \\ \hline" in lines
    assert r"0x4000351c & TXD & RW &  & \multirow{3}{*}{UART1} \\ \cline{1-4}" in lines

    assert r"\section{UART0}" in lines
    assert r"\subsection{CONFIG}" in lines
    assert r"\multicolumn{5}{|l|}{\color{white} Register at 0x4000256c: UART0\_CONFIG} \\" in lines

    # Fields are listed from the most significant bit
    status = lines.index(r"[15:8] & STATUS & RO &  & Status \\ \hline")
    reserved = lines.index(r"[7:4] & reserved &  &  &  \\ \hline")
    parity = lines.index(r"[3:1] & PARITY & RW & 0x2 & Parity \\ \hline")
    hwfc = lines.index(r"[0] & HWFC & RW & 0x0 & Hardware flow control \newline")
    assert status < reserved < parity < hwfc
    assert lines[hwfc + 1 : hwfc + 3] == [r"0x0: Disabled \newline", r"0x1: Enabled \\ \hline"]


def test_latex_registers_without_fields(tmp_path):
    block = ComponentDef(
        name="MY_BLOCK",
        registers=[
            RegisterDef(name="DATA_OUT", address_offset="0x0", size="16"),
            RegisterDef(
                name="FLAGS",
                address_offset="0x4",
                size="32",
                fields=[
                    FieldDef(
                        name="MODE",
                        bit_offset="0",
                        bit_width="3",
                        access="read-write",
                        enums=[
                            EnumDef(name="FAST", value="0x4"),
                            EnumDef(name="SLOW", value="0x1"),
                        ],
                    )
                ],
            ),
        ],
    )
    engine = MergeEngine()
    assert engine.merge([block])

    contents = LatexWriter(tmp_path / "out.tex").serialize(engine.components)
    lines = [line.strip() for line in contents[tmp_path / "out.tex"].splitlines()]

    assert r"\section{MY\_BLOCK}" in lines
    assert r"\subsection{DATA\_OUT}" in lines
    assert r"[15:0] & r16 & RW &  & Direct access to the register data. \\ \hline" in lines

    # Single bit values are documented by bit position
    mode = lines.index(r"[2:0] & MODE & RW &  &")
    assert lines[mode + 1 : mode + 3] == [r"[0] SLOW \newline", r"[2] FAST \\ \hline"]


def test_create_writer(tmp_path):
    assert isinstance(create_writer(tmp_path / "out.h"), HeaderWriter)
    assert isinstance(create_writer(tmp_path / "out.xml"), IpxactWriter)
    assert isinstance(create_writer(tmp_path / "out.S"), AsmWriter)
    assert isinstance(create_writer(tmp_path / "out.inc", writer_type="s"), AsmWriter)
    assert isinstance(create_writer(tmp_path / "out.asym"), AsmSymbolsWriter)
    assert isinstance(create_writer(tmp_path / "out.tex"), LatexWriter)

    writer = create_writer(tmp_path / "out.h", Options(project="Demo"))
    assert writer.path == tmp_path / "out.h"

    with pytest.raises(RegmapError):
        create_writer(tmp_path / "out.txt")
