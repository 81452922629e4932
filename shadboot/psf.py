"""
param.sfo (PSF) reading and game metadata extraction.

A PSF file is a little-endian key/value table:

    header   magic b"\\0PSF", version, key table offset, data table offset, entry count
    index    one 16-byte entry per key: key offset (u16), format (u16),
             length (u32), max length (u32), data offset (u32)
    keys     NUL-terminated ASCII names
    data     UTF-8 strings (NUL-terminated) or 32-bit integers
"""
from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import PSFError
from .models import DEFAULT_APP_VERSION, DEFAULT_FW_VERSION, DEFAULT_TITLE, PSFData
from .utils import path_exists

log = logging.getLogger(__name__)

PSF_MAGIC = b"\x00PSF"
HEADER = struct.Struct("<4sIIII")
INDEX_ENTRY = struct.Struct("<HHIII")

FMT_TEXT_SPECIAL = 0x0004
FMT_TEXT = 0x0204
FMT_INTEGER = 0x0404

# ATTRIBUTE bits
ATTR_SUPPORT_PS_VR = 1 << 14
ATTR_REQUIRE_PS_VR = 1 << 26

CONTENT_ID_OFFSET = 7
TITLE_ID_LENGTH = 9
SDK_VER_KEY = "sdk_ver"


class ParamSfo:
    """Parsed PSF table. Call open() before reading values."""

    def __init__(self):
        self.entries: Dict[str, Union[str, int, bytes]] = {}

    def open(self, path: Union[str, Path]) -> bool:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            log.error("Cannot read %s: %s", path, e)
            return False
        try:
            self.entries = dict(parse_entries(data))
        except PSFError as e:
            log.error("Malformed param.sfo %s: %s", path, e)
            self.entries = {}
            return False
        return True

    def get_string(self, key: str) -> Optional[str]:
        value = self.entries.get(key)
        return value if isinstance(value, str) else None

    def get_integer(self, key: str) -> Optional[int]:
        value = self.entries.get(key)
        return value if isinstance(value, int) else None

    def keys(self) -> List[str]:
        return list(self.entries)


def parse_entries(data: bytes) -> List[Tuple[str, Union[str, int, bytes]]]:
    if len(data) < HEADER.size:
        raise PSFError("file too small for header")
    magic, _version, key_table, data_table, count = HEADER.unpack_from(data, 0)
    if magic != PSF_MAGIC:
        raise PSFError(f"bad magic {magic!r}")
    if HEADER.size + count * INDEX_ENTRY.size > len(data):
        raise PSFError(f"index table of {count} entries overruns file")

    out: List[Tuple[str, Union[str, int, bytes]]] = []
    for i in range(count):
        key_off, fmt, length, _max_len, data_off = INDEX_ENTRY.unpack_from(
            data, HEADER.size + i * INDEX_ENTRY.size)

        key_start = key_table + key_off
        key_end = data.find(b"\x00", key_start)
        if key_start >= len(data) or key_end < 0:
            raise PSFError(f"entry {i}: key outside file")
        key = data[key_start:key_end].decode("ascii", errors="replace")

        start = data_table + data_off
        if start + length > len(data):
            raise PSFError(f"entry {key}: value outside file")
        raw = data[start:start + length]

        if fmt == FMT_INTEGER:
            if length < 4:
                raise PSFError(f"entry {key}: integer shorter than 4 bytes")
            value: Union[str, int, bytes] = struct.unpack_from("<I", raw)[0]
        elif fmt in (FMT_TEXT, FMT_TEXT_SPECIAL):
            nul = raw.find(b"\x00")
            if nul != -1:
                raw = raw[:nul]
            value = raw.decode("utf-8", errors="replace")
        else:
            value = raw
        out.append((key, value))
    return out


def parse_sdk_version(pubtool_info: str, fallback: int) -> int:
    """Pull the hex `sdk_ver=` value out of PUBTOOLINFO; `fallback` if absent or bad."""
    offset = pubtool_info.find(SDK_VER_KEY)
    if offset == -1:
        return fallback
    start = offset + len(SDK_VER_KEY) + 1   # skip "sdk_ver="
    end = pubtool_info.find(",", start)
    if end == -1:
        end = len(pubtool_info)
    text = pubtool_info[start:end]
    try:
        return int(text, 16) & 0xFFFFFFFF
    except ValueError:
        log.warning("Malformed sdk_ver %r in PUBTOOLINFO, using firmware version", text)
        return fallback


def load_psf_data(param_sfo_path: Union[str, Path]) -> Optional[PSFData]:
    if not path_exists(param_sfo_path):
        return None

    sfo = ParamSfo()
    if not sfo.open(param_sfo_path):
        log.error("Failed to open param.sfo")
        return None

    data = PSFData()

    content_id = sfo.get_string("CONTENT_ID")
    title_id = sfo.get_string("TITLE_ID")
    if content_id:
        data.id = (content_id[CONTENT_ID_OFFSET:CONTENT_ID_OFFSET + TITLE_ID_LENGTH]
                   or title_id or content_id)
    elif title_id is not None:
        data.id = title_id

    title = sfo.get_string("TITLE")
    data.title = DEFAULT_TITLE if title is None else title
    fw = sfo.get_integer("SYSTEM_VER")
    data.fw_version = DEFAULT_FW_VERSION if fw is None else fw
    app_ver = sfo.get_string("APP_VER")
    data.app_version = DEFAULT_APP_VERSION if app_ver is None else app_ver

    data.sdk_version = parse_sdk_version(sfo.get_string("PUBTOOLINFO") or "", data.fw_version)

    attributes = sfo.get_integer("ATTRIBUTE")
    if attributes is not None:
        data.psvr_supported = bool(attributes & ATTR_SUPPORT_PS_VR)
        data.psvr_required = bool(attributes & ATTR_REQUIRE_PS_VR)

    return data


def psf_candidates(game_folder: Path, param_sfo: str = "sce_sys/param.sfo") -> List[Path]:
    """Update and patch folders shadow the base game's param.sfo."""
    parent, name = game_folder.parent, game_folder.name
    return [
        parent / f"{name}-UPDATE" / param_sfo,
        parent / f"{name}-patch" / param_sfo,
        game_folder / param_sfo,
    ]


def log_game_metadata(data: PSFData) -> None:
    log.info("Game id: %s Title: %s", data.id, data.title)
    log.info("Fw: %#x App Version: %s", data.fw_version, data.app_version)
    log.info("param.sfo SDK version: %#x", data.sdk_version)
    log.info("PSVR Supported: %s", data.psvr_supported)
    log.info("PSVR Required: %s", data.psvr_required)
