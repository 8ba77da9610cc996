from __future__ import annotations

from pathlib import Path

import pytest

from mcstructure_glb import cli
from mcstructure_glb.config import Settings

from conftest import structure_bytes


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("ASSETS_DIR", "WORKERS", "LENIENT", "MAX_CHAIN_DEPTH", "AIR_NAME", "LOG_LEVEL"):
        monkeypatch.delenv(f"MCSTRUCTURE_GLB_{key}", raising=False)


def test_self_test_writes_glb(tmp_path):
    out = tmp_path / "sub" / "selftest.glb"
    assert cli.main(["--self-test", str(out), "--assets", str(tmp_path / "none")]) == 0
    assert out.read_bytes()[:4] == b"glTF"


def test_convert_success(tmp_path):
    src = tmp_path / "in.mcstructure"
    src.write_bytes(structure_bytes([2, 1, 1], [0, 1], ["minecraft:air", "minecraft:stone"]))
    out = tmp_path / "out.glb"

    assert cli.main([str(src), str(out), "--assets", str(tmp_path), "--workers", "2"]) == 0
    assert out.exists()


def test_missing_input_file_is_usage_error(tmp_path):
    assert cli.main([str(tmp_path / "absent.mcstructure"), str(tmp_path / "out.glb")]) == 2


def test_output_only_without_self_test_is_usage_error(tmp_path):
    assert cli.main([str(tmp_path / "out.glb")]) == 2


def test_invalid_workers_is_usage_error(tmp_path):
    assert cli.main(["--self-test", str(tmp_path / "x.glb"), "--workers", "0"]) == 2


def test_bad_structure_exits_1_without_output(tmp_path):
    src = tmp_path / "in.mcstructure"
    src.write_bytes(structure_bytes([2, 2, 2], [0], ["minecraft:stone"]))
    out = tmp_path / "out.glb"

    assert cli.main([str(src), str(out)]) == 1
    assert not out.exists()


def test_lenient_flag_accepts_short_grid(tmp_path):
    src = tmp_path / "in.mcstructure"
    src.write_bytes(structure_bytes([2, 2, 2], [0], ["minecraft:stone"]))
    out = tmp_path / "out.glb"

    assert cli.main([str(src), str(out), "--lenient", "--assets", str(tmp_path)]) == 0
    assert out.exists()


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MCSTRUCTURE_GLB_ASSETS_DIR", str(tmp_path))
    monkeypatch.setenv("MCSTRUCTURE_GLB_WORKERS", "3")
    monkeypatch.setenv("MCSTRUCTURE_GLB_LENIENT", "yes")
    monkeypatch.setenv("MCSTRUCTURE_GLB_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.assets_dir == Path(tmp_path)
    assert settings.workers == 3
    assert settings.lenient is True
    assert settings.log_level == "DEBUG"


def test_settings_reject_non_integer(monkeypatch):
    monkeypatch.setenv("MCSTRUCTURE_GLB_WORKERS", "many")
    with pytest.raises(ValueError, match="MCSTRUCTURE_GLB_WORKERS"):
        Settings.from_env()


def test_bad_env_is_usage_error(monkeypatch, tmp_path):
    monkeypatch.setenv("MCSTRUCTURE_GLB_MAX_CHAIN_DEPTH", "deep")
    assert cli.main(["--self-test", str(tmp_path / "x.glb")]) == 2


def test_overrides_skip_none():
    base = Settings(workers=2)
    assert base.with_overrides(workers=None, lenient=True) == Settings(workers=2, lenient=True)


def test_unknown_log_level_is_usage_error(tmp_path):
    assert cli.main(["--self-test", str(tmp_path / "x.glb"), "--log-level", "chatty"]) == 2
    assert not (tmp_path / "x.glb").exists()


def test_settings_reject_unknown_log_level():
    with pytest.raises(ValueError, match="unknown log level"):
        Settings(log_level="CHATTY")
