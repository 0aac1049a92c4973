# tests/test_main.py
"""
Tests for the reprenum command-line interface.
"""

import json

import pytest

from reprenum import __version__
from reprenum.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, main
from tests.conftest import OPCODE_RENUM, OPCODE_VALUES


@pytest.fixture
def opcode_file(tmp_path):
    path = tmp_path / "opcodes.renum"
    path.write_text(OPCODE_RENUM, encoding="utf-8")
    return path


@pytest.fixture
def broken_file(tmp_path):
    path = tmp_path / "broken.renum"
    path.write_text("(enum E\n  (repr u8)\n  A\n  A)\n", encoding="utf-8")
    return path


@pytest.fixture
def undefined_file(tmp_path):
    path = tmp_path / "undefined.renum"
    path.write_text("(enum E (repr u8) (A MISSING) B)\n", encoding="utf-8")
    return path


@pytest.fixture
def field_file(tmp_path):
    path = tmp_path / "field.renum"
    path.write_text("(enum Field\n  (repr u8)\n  id\n  name\n  value)\n",
                    encoding="utf-8")
    return path


class TestCheck:

    def test_ok(self, opcode_file):
        assert main(["check", str(opcode_file)]) == EXIT_OK

    def test_schema_error(self, broken_file, capsys):
        assert main(["check", str(broken_file)]) == EXIT_ERROR
        err = capsys.readouterr().err
        assert "RENUM-2002" in err
        assert "broken.renum:4:3" in err

    def test_missing_file(self, tmp_path):
        assert main(["check", str(tmp_path / "nope.renum")]) == EXIT_INFRA

    def test_undefined_constant(self, undefined_file, capsys):
        assert main(["check", str(undefined_file)]) == EXIT_ERROR
        assert "RENUM-4000" in capsys.readouterr().err

    def test_reserved_variant_name(self, field_file, capsys):
        assert main(["check", str(field_file)]) == EXIT_ERROR
        err = capsys.readouterr().err
        assert "RENUM-2005" in err
        assert "field.renum:4:3" in err

    def test_keyword_constant(self, tmp_path, capsys):
        path = tmp_path / "kw.renum"
        path.write_text("(const def 4)\n(enum E (repr u8) (A def))\n",
                        encoding="utf-8")
        assert main(["check", str(path)]) == EXIT_ERROR
        assert "RENUM-1001" in capsys.readouterr().err


class TestGenerate:

    def test_stdout(self, opcode_file, capsys):
        assert main(["generate", str(opcode_file)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "class Opcode(EnumValue):" in out
        assert "from opcodes.renum" in out
        compile(out, "<generated>", "exec")

    def test_output_file(self, opcode_file, tmp_path):
        dest = tmp_path / "out" / "opcodes.py"
        assert main(["generate", str(opcode_file), "-o", str(dest)]) == EXIT_OK
        namespace = {"__name__": "opcodes"}
        exec(compile(dest.read_text(encoding="utf-8"), str(dest), "exec"),
             namespace)
        assert namespace["Opcode"].Call.to_int() == OPCODE_VALUES["Call"]

    def test_schema_error(self, broken_file, capsys):
        assert main(["generate", str(broken_file)]) == EXIT_ERROR
        assert capsys.readouterr().out == ""

    def test_undefined_constant(self, undefined_file, tmp_path, capsys):
        dest = tmp_path / "out.py"
        code = main(["generate", str(undefined_file), "-o", str(dest)])
        assert code == EXIT_ERROR
        assert "RENUM-4000" in capsys.readouterr().err
        assert not dest.exists()

    def test_reserved_variant_name(self, field_file, tmp_path, capsys):
        dest = tmp_path / "field.py"
        code = main(["generate", str(field_file), "-o", str(dest)])
        assert code == EXIT_ERROR
        err = capsys.readouterr().err
        assert "RENUM-2005" in err
        assert "field.renum:4:3" in err
        assert not dest.exists()


class TestResolve:

    def test_text(self, opcode_file, capsys):
        assert main(["resolve", str(opcode_file)]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("Opcode (u8)")
        assert "<catch-all>" in out
        assert "(+ BASE 4)" in out

    def test_json(self, opcode_file, capsys):
        assert main(["resolve", str(opcode_file), "--format", "json"]) == EXIT_OK
        payload = json.loads(capsys.readouterr().out)
        table = payload["Opcode"]
        assert table["repr"] == "u8"
        values = {row["name"]: row.get("value") for row in table["variants"]}
        for name, value in OPCODE_VALUES.items():
            assert values[name] == value
        other = table["variants"][-1]
        assert other == {"name": "Other", "catch_all": True}

    def test_json_error(self, broken_file, capsys):
        code = main(["resolve", str(broken_file), "--format", "json"])
        assert code == EXIT_ERROR
        report = json.loads(capsys.readouterr().err)
        assert report["code"] == "RENUM-2002"
        assert report["location"]["line"] == 4

    def test_unresolved_constant(self, tmp_path, capsys):
        path = tmp_path / "ext.renum"
        path.write_text("(enum E (repr u8) (A EXTERNAL))", encoding="utf-8")
        assert main(["resolve", str(path)]) == EXIT_ERROR
        assert "RENUM-4000" in capsys.readouterr().err


class TestArguments:

    def test_no_command(self, capsys):
        assert main([]) == EXIT_INFRA

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert __version__ in capsys.readouterr().out
