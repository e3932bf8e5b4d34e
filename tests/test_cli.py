"""Test suite for configuration and the command-line entry point."""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path to import refkit
sys.path.insert(0, str(Path(__file__).parent.parent))

from refkit.cli import main
from refkit.config import RefkitConfig

ENV_VARS = [
    "REFKIT_INPUT_DIR",
    "REFKIT_OUTPUT_DIR",
    "REFKIT_NAME_SEPARATOR",
    "REFKIT_EXPORT_FORMAT",
    "REFKIT_FILL_LISTINGS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_config_defaults():
    config = RefkitConfig.from_env()
    assert config.input_dir == "./input"
    assert config.output_dir == "./output"
    assert config.name_separator == "-"
    assert config.export_format == "csv"


def test_config_from_environment(monkeypatch):
    monkeypatch.setenv("REFKIT_INPUT_DIR", "/data/in")
    monkeypatch.setenv("REFKIT_EXPORT_FORMAT", "JSON")
    config = RefkitConfig.from_env()
    assert config.input_dir == "/data/in"
    assert config.export_format == "json"


def test_config_from_env_file(tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("REFKIT_OUTPUT_DIR=/data/out\nREFKIT_NAME_SEPARATOR=_\n", encoding="utf-8")
    config = RefkitConfig.from_env(str(env_file))
    assert config.output_dir == "/data/out"
    assert config.name_separator == "_"


def test_config_rejects_unknown_format():
    with pytest.raises(ValueError):
        RefkitConfig(export_format="xml")


def test_main_writes_tables(tmp_path, capsys):
    input_dir = tmp_path / "in"
    input_dir.mkdir()
    (input_dir / "Waterbodies - export.csv").write_text(
        "Name,Watersheds,Monitoring Sites\nBear Creek,Upper Basin,\"BC-01, BC-02\"\n",
        encoding="utf-8",
    )
    (input_dir / "Watersheds - export.csv").write_text(
        "Name,Waterbodies\nUpper Basin,Bear Creek\n", encoding="utf-8"
    )
    output_dir = tmp_path / "out"

    code = main(["--input", str(input_dir), "--output", str(output_dir), "--format", "json"])

    assert code == 0
    assert (output_dir / "Waterbodies.json").exists()
    assert (output_dir / "Watersheds.json").exists()
    assert "2 tables saved" in capsys.readouterr().out


def test_main_missing_input(tmp_path, capsys):
    code = main(["--input", str(tmp_path / "missing"), "--output", str(tmp_path / "out")])
    assert code == 1
    assert "Input directory not found" in capsys.readouterr().err


def test_main_fill_listings(tmp_path):
    input_dir = tmp_path / "in"
    input_dir.mkdir()
    (input_dir / "Stations - export.csv").write_text(
        "SiteID,Waterbody,Monitoring Organization\n"
        "BC-01,Bear Creek,Acme River Watch\n"
        "BC-02,Bear Creek,Acme River Watch\n",
        encoding="utf-8",
    )
    (input_dir / "Organizations - export.csv").write_text(
        "Organization Name,Organization Website\nAcme River Watch,https://acme.example\n",
        encoding="utf-8",
    )
    output_dir = tmp_path / "out"

    code = main(["--input", str(input_dir), "--output", str(output_dir), "--format", "json", "--fill-listings"])

    assert code == 0
    with open(output_dir / "Organizations.json", encoding="utf-8") as f:
        orgs = json.load(f)
    assert orgs == [{
        "Organization Name": "Acme River Watch",
        "Logo": "",
        "Organization Website": "https://acme.example",
        "Organization Description": "",
        "Monitoring Sites": "",
        "Sites": "bc-01; bc-02",
        "slug": "acme-river-watch",
    }]


def test_fill_listings_from_environment(monkeypatch):
    monkeypatch.setenv("REFKIT_FILL_LISTINGS", "true")
    assert RefkitConfig.from_env().fill_listings
