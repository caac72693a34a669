from __future__ import annotations

from pathlib import Path

import pytest

from sensor_csv_import.utils.config import DEFAULTS, ensure_dirs, load_config, read_config_file


def test_defaults_without_file():
    cfg = load_config()
    assert cfg == DEFAULTS
    cfg["import"]["suffix"] = ".txt"
    assert DEFAULTS["import"]["suffix"] == ".csv"


def test_file_overrides_defaults(tmp_path: Path):
    p = tmp_path / "c.yaml"
    p.write_text("store:\n  db_path: x.db\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg["store"]["db_path"] == "x.db"
    assert cfg["store"]["time_zone"] is None
    assert cfg["import"]["null_values"] == ["", "null"]
    assert cfg["_meta"]["config_path"] == str(p.resolve())


def test_extends_chain(tmp_path: Path):
    (tmp_path / "base.yaml").write_text("import:\n  progress: false\n  suffix: .dat\n", encoding="utf-8")
    (tmp_path / "mid.yaml").write_text("extends: base.yaml\nimport:\n  suffix: .csv\n", encoding="utf-8")
    (tmp_path / "top.yaml").write_text(
        "extends:\n  - mid.yaml\nlogging:\n  level: DEBUG\n", encoding="utf-8"
    )
    cfg = load_config(tmp_path / "top.yaml")
    assert cfg["import"]["progress"] is False
    assert cfg["import"]["suffix"] == ".csv"
    assert cfg["logging"]["level"] == "DEBUG"
    assert "extends" not in cfg


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_config_file(tmp_path / "none.yaml")


def test_non_mapping_root(tmp_path: Path):
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_bad_extends_type(tmp_path: Path):
    p = tmp_path / "bad.yaml"
    p.write_text("extends: 3\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_ensure_dirs(tmp_path: Path):
    cfg = load_config()
    cfg["store"]["db_path"] = str(tmp_path / "a" / "r.db")
    cfg["logging"]["file"] = str(tmp_path / "logs" / "x.log")
    ensure_dirs(cfg)
    assert (tmp_path / "a").is_dir()
    assert (tmp_path / "logs").is_dir()


def test_shipped_base_config_loads():
    cfg = load_config(Path(__file__).resolve().parents[1] / "configs" / "base.yaml")
    assert cfg["import"]["suffix"] == ".csv"
    assert cfg["store"]["time_zone"] is None


def test_empty_file_gives_defaults(tmp_path: Path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    cfg = load_config(p)
    assert cfg["import"] == DEFAULTS["import"]


def test_extends_cycle_is_rejected(tmp_path: Path):
    (tmp_path / "a.yaml").write_text("extends: b.yaml\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("extends: a.yaml\n", encoding="utf-8")
    with pytest.raises(ValueError, match="cycle"):
        load_config(tmp_path / "a.yaml")


def test_list_values_replace_instead_of_merging(tmp_path: Path):
    p = tmp_path / "c.yaml"
    p.write_text("import:\n  null_values: [NA]\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg["import"]["null_values"] == ["NA"]
    assert DEFAULTS["import"]["null_values"] == ["", "null"]
