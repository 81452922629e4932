from __future__ import annotations

import struct
import sys
from pathlib import Path
from typing import Dict, Union

import pytest

# Ensure project root import
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def sfo_bytes(entries: Dict[str, Union[str, int]]) -> bytes:
    """Encode a minimal param.sfo holding `entries` (str -> utf-8, int -> u32)."""
    keys = b""
    values = b""
    index = b""
    for key, value in entries.items():
        if isinstance(value, int):
            raw, fmt = struct.pack("<I", value), 0x0404
        else:
            raw, fmt = value.encode("utf-8") + b"\x00", 0x0204
        max_len = (len(raw) + 3) & ~3
        index += struct.pack("<HHIII", len(keys), fmt, len(raw), max_len, len(values))
        keys += key.encode("ascii") + b"\x00"
        values += raw.ljust(max_len, b"\x00")
    while len(keys) % 4:
        keys += b"\x00"
    key_table = 20 + len(index)
    data_table = key_table + len(keys)
    header = struct.pack("<4sIIII", b"\x00PSF", 0x101, key_table, data_table, len(entries))
    return header + index + keys + values


def make_sfo(path: Path, entries: Dict[str, Union[str, int]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(sfo_bytes(entries))
    return path


def make_game(root: Path, game_id: str, entries: Dict[str, Union[str, int]] = None) -> Path:
    """Lay out `<root>/<game_id>/{eboot.bin, sce_sys/param.sfo}` and return the eboot."""
    folder = root / game_id
    make_sfo(folder / "sce_sys" / "param.sfo", entries or {"TITLE_ID": game_id})
    eboot = folder / "eboot.bin"
    eboot.write_bytes(b"\x7fELF stub")
    return eboot


@pytest.fixture
def user_dir(tmp_path: Path) -> Path:
    d = tmp_path / "user"
    d.mkdir()
    return d
