"""Shared fixtures: a small KiCad project written to a temporary directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from kicad_assist.cache import clear_all_caches
from kicad_assist.host.files import BoardFileHost, SchematicFileHost, open_design

DEVICE_SYM = """\
(kicad_symbol_lib
\t(version 20231120)
\t(generator "kicad_symbol_editor")
\t(symbol "R"
\t\t(pin_numbers hide)
\t\t(property "Reference" "R" (at 2.032 0 90) (effects (font (size 1.27 1.27))))
\t\t(property "Value" "R" (at 0 0 90) (effects (font (size 1.27 1.27))))
\t\t(property "Footprint" "" (at -1.778 0 90) (effects (font (size 1.27 1.27)) (hide yes)))
\t\t(symbol "R_0_1"
\t\t\t(rectangle (start -1.016 -2.54) (end 1.016 2.54) (stroke (width 0.254)) (fill (type none)))
\t\t)
\t\t(symbol "R_1_1"
\t\t\t(pin passive line (at 0 3.81 270) (length 1.27) (name "~" (effects (font (size 1.27 1.27)))) (number "1" (effects (font (size 1.27 1.27)))))
\t\t\t(pin passive line (at 0 -3.81 90) (length 1.27) (name "~" (effects (font (size 1.27 1.27)))) (number "2" (effects (font (size 1.27 1.27)))))
\t\t)
\t)
\t(symbol "C"
\t\t(property "Reference" "C" (at 0.635 2.54 0) (effects (font (size 1.27 1.27))))
\t\t(property "Value" "C" (at 0.635 -2.54 0) (effects (font (size 1.27 1.27))))
\t\t(symbol "C_1_1"
\t\t\t(pin passive line (at 0 3.81 270) (length 2.794) (name "~" (effects (font (size 1.27 1.27)))) (number "1" (effects (font (size 1.27 1.27)))))
\t\t\t(pin passive line (at 0 -3.81 90) (length 2.794) (name "~" (effects (font (size 1.27 1.27)))) (number "2" (effects (font (size 1.27 1.27)))))
\t\t)
\t)
\t(symbol "C_Small"
\t\t(extends "C")
\t\t(property "Reference" "C" (at 0.254 1.778 0) (effects (font (size 1.27 1.27))))
\t\t(property "Value" "C_Small" (at 0.254 -2.032 0) (effects (font (size 1.27 1.27))))
\t)
)
"""

REGULATOR_SYM = """\
(kicad_symbol_lib
\t(version 20231120)
\t(generator "kicad_symbol_editor")
\t(symbol "LM7805_TO220"
\t\t(property "Reference" "U" (at -3.81 3.175 0) (effects (font (size 1.27 1.27))))
\t\t(property "Value" "LM7805_TO220" (at 0 3.175 0) (effects (font (size 1.27 1.27))))
\t\t(property "Footprint" "Package_TO_SOT_THT:TO-220-3_Vertical" (at 0 5.715 0) (effects (font (size 1.27 1.27)) (hide yes)))
\t\t(symbol "LM7805_TO220_1_1"
\t\t\t(pin power_in line (at -7.62 0 0) (length 2.54) (name "VI" (effects (font (size 1.27 1.27)))) (number "1" (effects (font (size 1.27 1.27)))))
\t\t\t(pin power_in line (at 0 -7.62 90) (length 2.54) (name "GND" (effects (font (size 1.27 1.27)))) (number "2" (effects (font (size 1.27 1.27)))))
\t\t\t(pin power_out line (at 7.62 0 180) (length 2.54) (name "VO" (effects (font (size 1.27 1.27)))) (number "3" (effects (font (size 1.27 1.27)))))
\t\t)
\t)
)
"""

SYM_LIB_TABLE = """\
(sym_lib_table
\t(version 7)
\t(lib (name "Device")(type "KiCad")(uri "${KIPRJMOD}/libs/Device.kicad_sym")(options "")(descr "Generic symbols"))
\t(lib (name "Regulator_Linear")(type "KiCad")(uri "${KIPRJMOD}/libs/Regulator_Linear.kicad_sym")(options "")(descr ""))
)
"""

FP_LIB_TABLE = """\
(fp_lib_table
\t(version 7)
\t(lib (name "Resistor_SMD")(type "KiCad")(uri "${KIPRJMOD}/libs/Resistor_SMD.pretty")(options "")(descr ""))
)
"""

SCHEMATIC = """\
(kicad_sch
\t(version 20231120)
\t(generator "eeschema")
\t(generator_version "8.0")
\t(uuid "e63e39d7-6ac0-4ffd-8aa3-1841a4541b55")
\t(paper "A4")
\t(lib_symbols)
\t(sheet_instances
\t\t(path "/" (page "1"))
\t)
)
"""

BOARD = """\
(kicad_pcb
\t(version 20240108)
\t(generator "pcbnew")
\t(general (thickness 1.6))
\t(layers (0 "F.Cu" signal) (31 "B.Cu" signal))
\t(net 0 "")
\t(footprint "Resistor_SMD:R_0603_1608Metric"
\t\t(layer "F.Cu")
\t\t(uuid "3f1e6d8a-2b7c-4d1e-9a35-0c2f7e5b9d41")
\t\t(at 100 100)
\t\t(property "Reference" "R1" (at 0 -1.43 0) (layer "F.SilkS"))
\t\t(property "Value" "10k" (at 0 1.43 0) (layer "F.Fab"))
\t)
)
"""


@pytest.fixture(autouse=True)
def _fresh_library_cache() -> None:
    clear_all_caches()


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    """An empty KiCad config directory, so no global tables are picked up."""
    d = tmp_path / "kicad_config"
    d.mkdir()
    return d


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    d = tmp_path / "amp"
    libs = d / "libs"
    pretty = libs / "Resistor_SMD.pretty"
    pretty.mkdir(parents=True)
    (libs / "Device.kicad_sym").write_text(DEVICE_SYM, encoding="utf-8")
    (libs / "Regulator_Linear.kicad_sym").write_text(REGULATOR_SYM, encoding="utf-8")
    for name in ("R_0805_2012Metric", "R_0603_1608Metric"):
        (pretty / f"{name}.kicad_mod").write_text(f'(footprint "{name}")\n', encoding="utf-8")
    (d / "sym-lib-table").write_text(SYM_LIB_TABLE, encoding="utf-8")
    (d / "fp-lib-table").write_text(FP_LIB_TABLE, encoding="utf-8")
    (d / "amp.kicad_sch").write_text(SCHEMATIC, encoding="utf-8")
    (d / "amp.kicad_pcb").write_text(BOARD, encoding="utf-8")
    return d


@pytest.fixture()
def schematic_path(project_dir: Path) -> Path:
    return project_dir / "amp.kicad_sch"


@pytest.fixture()
def board_path(project_dir: Path) -> Path:
    return project_dir / "amp.kicad_pcb"


@pytest.fixture()
def sch_host(schematic_path: Path, config_dir: Path) -> SchematicFileHost:
    host = open_design(schematic_path, config_dir=config_dir)
    assert isinstance(host, SchematicFileHost)
    return host


@pytest.fixture()
def board_host(board_path: Path, config_dir: Path) -> BoardFileHost:
    host = open_design(board_path, config_dir=config_dir)
    assert isinstance(host, BoardFileHost)
    return host
