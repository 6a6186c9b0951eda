"""Tests for the S-expression reader/writer."""

from __future__ import annotations

from pathlib import Path

import pytest

from kicad_assist.sexp import Document, SExp, parse, parse_all


class TestParse:
    def test_atoms(self) -> None:
        assert parse("hello").value == "hello"
        assert parse('"hello world"').value == "hello world"
        assert parse(r'"say \"hi\""').value == 'say "hi"'

    def test_list(self) -> None:
        node = parse('(footprint "Resistor_SMD:R_0603" (layer "F.Cu") (at 14 5.5))')
        assert node.name == "footprint"
        assert node.first_value == "Resistor_SMD:R_0603"
        assert node.get("layer").first_value == "F.Cu"
        assert node.get("at").atom_values == ["14", "5.5"]
        assert node.get("missing") is None

    def test_empty_string_value(self) -> None:
        assert parse('(net 0 "")').atom_values == ["0", ""]

    def test_parse_all(self) -> None:
        nodes = parse_all("(a 1) (b 2)")
        assert [n.name for n in nodes] == ["a", "b"]

    def test_unclosed(self) -> None:
        with pytest.raises(ValueError, match="unclosed"):
            parse("(a (b c)")

    def test_unterminated_string(self) -> None:
        with pytest.raises(ValueError, match="Unterminated"):
            parse('(a "open)')

    def test_unexpected_close(self) -> None:
        with pytest.raises(ValueError):
            parse(")")


class TestQueries:
    def test_property_value(self) -> None:
        node = parse('(symbol (property "Reference" "R1") (property "Value" "10k"))')
        assert node.property_value("Reference") == "R1"
        assert node.property_value("Value") == "10k"
        assert node.property_value("Footprint") is None

    def test_find_recursive(self) -> None:
        node = parse("(a (b (xy 1 2)) (c (d (xy 3 4))))")
        assert [xy.atom_values for xy in node.find_recursive("xy")] == [["1", "2"], ["3", "4"]]

    def test_is_quoted(self) -> None:
        node = parse('(a "x" y)')
        assert node.children[0].is_quoted
        assert not node.children[1].is_quoted


class TestMutation:
    def test_set_property(self) -> None:
        node = parse('(symbol (property "Reference" "R?" (at 0 0 0)))')
        assert node.set_property("Reference", "R1") is True
        assert node.property_value("Reference") == "R1"
        assert node.set_property("Value", "x") is False

    def test_set_atom_out_of_range(self) -> None:
        with pytest.raises(IndexError):
            parse("(a)").set_atom(0, "x")

    def test_deep_copy_is_independent(self) -> None:
        node = parse('(symbol "R" (property "Reference" "R"))')
        copy = node.deep_copy()
        copy.set_atom(0, "Device:R")
        assert node.first_value == "R"
        assert copy.first_value == "Device:R"

    def test_constructors(self) -> None:
        node = SExp.node("at", SExp.atom(10.5), SExp.atom(0.0), SExp.atom(90))
        assert node.to_string() == "(at 10.5 0 90)"
        assert SExp.quoted('a "b"').to_string() == '"a \\"b\\""'


class TestSerialization:
    def test_preserves_original_atoms(self) -> None:
        text = '(at 1.000 -2.50 "x y")'
        assert parse(text).to_string() == text

    def test_nested_lists_indent_with_tabs(self) -> None:
        out = parse("(a x (b 1) (c 2))").to_string()
        assert out == "(a x\n\t(b 1)\n\t(c 2)\n)"

    def test_round_trip_reparses(self) -> None:
        text = '(kicad_sch (version 20231120) (lib_symbols) (symbol (lib_id "Device:R") (at 1 2 0)))'
        again = parse(parse(text).to_string())
        assert again.get("symbol").get("lib_id").first_value == "Device:R"
        assert again.get("lib_symbols").children == []


class TestDocument:
    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Document.load(tmp_path / "nope.kicad_sch")

    def test_load_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.kicad_sch"
        path.write_text("(kicad_sch (version 1)", encoding="utf-8")
        with pytest.raises(ValueError, match="Failed to parse"):
            Document.load(path)

    def test_insert_item_before_sheet_instances(self, schematic_path: Path) -> None:
        doc = Document.load(schematic_path)
        doc.insert_item(parse('(wire (pts (xy 0 0) (xy 1 1)))'))
        names = [c.name for c in doc.root.children]
        assert names.index("wire") == names.index("sheet_instances") - 1

    def test_save_and_reload(self, schematic_path: Path, tmp_path: Path) -> None:
        doc = Document.load(schematic_path)
        assert doc.file_type == "kicad_sch"
        out = doc.save(tmp_path / "copy.kicad_sch")
        again = Document.load(out)
        assert again.root.get("uuid").first_value == "e63e39d7-6ac0-4ffd-8aa3-1841a4541b55"
        assert out.read_text(encoding="utf-8").endswith(")\n")
