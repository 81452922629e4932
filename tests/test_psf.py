from __future__ import annotations

from pathlib import Path

from conftest import make_sfo, sfo_bytes

from shadboot.models import DEFAULT_FW_VERSION, PSFData
from shadboot.psf import (
    ATTR_REQUIRE_PS_VR,
    ATTR_SUPPORT_PS_VR,
    ParamSfo,
    load_psf_data,
    parse_sdk_version,
    psf_candidates,
)


def test_param_sfo_reads_strings_and_integers(tmp_path: Path) -> None:
    path = make_sfo(tmp_path / "param.sfo", {"TITLE": "Bloodborne", "SYSTEM_VER": 0x4508001})
    sfo = ParamSfo()
    assert sfo.open(path)
    assert sfo.get_string("TITLE") == "Bloodborne"
    assert sfo.get_integer("SYSTEM_VER") == 0x4508001
    # type mismatch and missing keys read as absent
    assert sfo.get_integer("TITLE") is None
    assert sfo.get_string("SYSTEM_VER") is None
    assert sfo.get_string("APP_VER") is None
    assert sorted(sfo.keys()) == ["SYSTEM_VER", "TITLE"]


def test_param_sfo_rejects_bad_magic_and_truncation(tmp_path: Path) -> None:
    bad = tmp_path / "bad.sfo"
    bad.write_bytes(b"NOPE" + b"\x00" * 32)
    assert not ParamSfo().open(bad)

    good = sfo_bytes({"TITLE": "Game"})
    short = tmp_path / "short.sfo"
    short.write_bytes(good[:24])
    assert not ParamSfo().open(short)


def test_missing_file_is_absent(tmp_path: Path) -> None:
    assert load_psf_data(tmp_path / "param.sfo") is None


def test_unopenable_file_is_absent_and_logged(tmp_path: Path, caplog) -> None:
    path = tmp_path / "param.sfo"
    path.write_bytes(b"garbage")
    with caplog.at_level("ERROR"):
        assert load_psf_data(path) is None
    assert "Failed to open param.sfo" in caplog.text


def test_content_id_takes_precedence(tmp_path: Path) -> None:
    content_id = "UP0000-ABCD123456780_00"
    path = make_sfo(tmp_path / "param.sfo", {"CONTENT_ID": content_id, "TITLE_ID": "CUSA99999"})
    data = load_psf_data(path)
    assert data.id == content_id[7:16]
    assert data.id == "ABCD12345"


def test_title_id_fallback(tmp_path: Path) -> None:
    path = make_sfo(tmp_path / "a.sfo", {"CONTENT_ID": "", "TITLE_ID": "CUSA00001"})
    assert load_psf_data(path).id == "CUSA00001"
    path = make_sfo(tmp_path / "b.sfo", {"TITLE_ID": "CUSA00002"})
    assert load_psf_data(path).id == "CUSA00002"


def test_short_content_id_still_yields_an_id(tmp_path: Path) -> None:
    path = make_sfo(tmp_path / "param.sfo", {"CONTENT_ID": "UP0000"})
    assert load_psf_data(path).id == "UP0000"


def test_defaults(tmp_path: Path) -> None:
    path = make_sfo(tmp_path / "param.sfo", {"CATEGORY": "gd"})
    data = load_psf_data(path)
    assert data == PSFData()
    assert data.id == ""
    assert data.title == "Unknown title"
    assert data.app_version == "Unknown version"
    assert data.fw_version == DEFAULT_FW_VERSION == 0x4700000
    assert data.sdk_version == data.fw_version
    assert not data.psvr_supported and not data.psvr_required


def test_full_metadata(tmp_path: Path) -> None:
    path = make_sfo(tmp_path / "param.sfo", {
        "APP_VER": "01.09",
        "ATTRIBUTE": ATTR_SUPPORT_PS_VR,
        "CONTENT_ID": "EP9000-CUSA00207_00-BLOODBORNE0000EU",
        "PUBTOOLINFO": "c_date=20150306,sdk_ver=01750001,st_type=digital50",
        "SYSTEM_VER": 0x1750000,
        "TITLE": "Bloodborne",
        "TITLE_ID": "CUSA00207",
    })
    data = load_psf_data(path)
    assert data.id == "CUSA00207"
    assert data.title == "Bloodborne"
    assert data.app_version == "01.09"
    assert data.fw_version == 0x1750000
    assert data.sdk_version == 0x01750001
    assert data.psvr_supported is True
    assert data.psvr_required is False


def test_psvr_required_bit(tmp_path: Path) -> None:
    path = make_sfo(tmp_path / "param.sfo", {"ATTRIBUTE": ATTR_SUPPORT_PS_VR | ATTR_REQUIRE_PS_VR})
    data = load_psf_data(path)
    assert data.psvr_supported and data.psvr_required


def test_sdk_version_parsing() -> None:
    assert parse_sdk_version("c_date=20200101,sdk_ver=04508001,st_type=digital50", 7) == 0x04508001
    assert parse_sdk_version("sdk_ver=05050001", 7) == 0x05050001
    assert parse_sdk_version("c_date=20200101", 7) == 7
    assert parse_sdk_version("", 7) == 7


def test_malformed_sdk_version_falls_back_to_firmware(caplog) -> None:
    with caplog.at_level("WARNING"):
        assert parse_sdk_version("sdk_ver=zz12,x=1", 0x4700000) == 0x4700000
        assert parse_sdk_version("sdk_ver=", 0x4700000) == 0x4700000
    assert "Malformed sdk_ver" in caplog.text


def test_psf_candidates_prefer_update_folders(tmp_path: Path) -> None:
    base = tmp_path / "CUSA00001"
    assert psf_candidates(base) == [
        tmp_path / "CUSA00001-UPDATE" / "sce_sys/param.sfo",
        tmp_path / "CUSA00001-patch" / "sce_sys/param.sfo",
        base / "sce_sys/param.sfo",
    ]
