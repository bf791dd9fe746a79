"""Tests for the command line entry point."""

import json

import pytest

from conftest import PET_SCHEMA
from pyqt_stageform.__main__ import main


def test_check_valid_and_invalid(tmp_path, capsys):
    good = tmp_path / "pets.json"
    good.write_text(json.dumps(PET_SCHEMA), encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"id": "bad", "fields": [{"type": "select", "name": "s"}]}), encoding="utf-8")

    assert main(["check", str(good)]) == 0
    assert "ok (3 stage(s))" in capsys.readouterr().out

    assert main(["check", str(good), str(bad), str(tmp_path / "missing.json")]) == 1
    out = capsys.readouterr().out
    assert "must have options" in out
    assert "missing.json:" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert "0.1.0" in capsys.readouterr().out
