# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import sys

import pytest

from regmap.__main__ import cli

DOCUMENT = """\
<?xml version="1.0" encoding="UTF-8"?>
<ipxact:component xmlns:ipxact="http://www.accellera.org/XMLSchema/IPXACT/1685-2014">
  <ipxact:memoryMaps>
    <ipxact:memoryMap>
      <ipxact:addressBlock>
        <ipxact:name>GPIO</ipxact:name>
        <ipxact:description>General purpose input and output</ipxact:description>
        <ipxact:baseAddress>0x50000000</ipxact:baseAddress>
        <ipxact:range>0x800</ipxact:range>
        <ipxact:register>
          <ipxact:name>OUT</ipxact:name>
          <ipxact:description>Write GPIO port</ipxact:description>
          <ipxact:addressOffset>0x504</ipxact:addressOffset>
          <ipxact:size>32</ipxact:size>
          <ipxact:field>
            <ipxact:name>PIN0</ipxact:name>
            <ipxact:bitOffset>0</ipxact:bitOffset>
            <ipxact:bitWidth>1</ipxact:bitWidth>
            <ipxact:access>read-write</ipxact:access>
          </ipxact:field>
        </ipxact:register>
      </ipxact:addressBlock>
      <ipxact:addressUnitBits>8</ipxact:addressUnitBits>
    </ipxact:memoryMap>
  </ipxact:memoryMaps>
</ipxact:component>
"""

RENAME = """\
<?xml version="1.0" encoding="UTF-8"?>
<component>
  <memoryMaps>
    <memoryMap>
      <addressBlock>
        <name>GPIO</name>
        <register>
          <name>OUTPUT</name>
          <addressOffset>0x504</addressOffset>
        </register>
      </addressBlock>
    </memoryMap>
  </memoryMaps>
</component>
"""


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["regmap", *[str(a) for a in args]])
    with pytest.raises(SystemExit) as exc_info:
        cli()
    return exc_info.value.code


@pytest.fixture
def document(tmp_path):
    path = tmp_path / "gpio.xml"
    path.write_text(DOCUMENT)
    return path


def test_cli_header(monkeypatch, tmp_path, document):
    assert run_cli(monkeypatch, "-p", "Demo", document, tmp_path / "regs.h") == 0

    header = (tmp_path / "regs_GPIO.h").read_text()
    assert "@project    Demo" in header
    assert "#define REG_GPIO_OUT ((volatile REGS_GPIO_H_uint32_t*)0x50000504)" in header


def test_cli_forced_type(monkeypatch, tmp_path, document):
    output = tmp_path / "regs.inc"
    assert run_cli(monkeypatch, "-t", "s", document, output) == 0

    assert ".equ    REG_GPIO_OUT, 0x50000504 ; Write GPIO port" in output.read_text()


def test_cli_merge_by_address(monkeypatch, tmp_path, document):
    rename = tmp_path / "rename.xml"
    rename.write_text(RENAME)
    output = tmp_path / "merged.xml"

    assert run_cli(monkeypatch, "-a", document, rename, output) == 0

    contents = output.read_text()
    assert "<ipxact:name>OUTPUT</ipxact:name>" in contents
    assert "<ipxact:name>OUT</ipxact:name>" not in contents
    assert "<ipxact:field>" not in contents


def test_cli_merge_by_name(monkeypatch, tmp_path, document):
    rename = tmp_path / "rename.xml"
    rename.write_text(RENAME)
    output = tmp_path / "merged.xml"

    # OUTPUT is a new register without a size
    assert run_cli(monkeypatch, "-n", document, rename, output) == 1
    assert not output.exists()


def test_cli_errors(monkeypatch, tmp_path, document):
    assert run_cli(monkeypatch, document, tmp_path / "regs.txt") == 1
    assert run_cli(monkeypatch, tmp_path / "missing.xml", tmp_path / "regs.h") == 1

    invalid = tmp_path / "invalid.xml"
    invalid.write_text("<component>")
    assert run_cli(monkeypatch, invalid, tmp_path / "regs.h") == 1


def test_cli_usage(monkeypatch, document):
    # Merge modes are mutually exclusive
    assert run_cli(monkeypatch, "-a", "-n", document, "out.h") == 2
