from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import GameNotFoundError
from .utils import is_directory, path_exists

log = logging.getLogger(__name__)

MAX_SEARCH_DEPTH = 5
UPDATE_SUFFIXES = ("-UPDATE", "-patch")
EBOOT = "eboot.bin"
PARAM_SFO = Path("sce_sys") / "param.sfo"

def resolve_game_folder(file: Union[str, Path], provided_folder: Optional[Path] = None) -> Path:
    """Install root for `file`: the override, the base game next to an update dir, or the parent."""
    if provided_folder is not None:
        return provided_folder

    game_folder = Path(file).parent
    name = game_folder.name
    if name.endswith(UPDATE_SUFFIXES):
        base_name = name[:name.rfind("-")]
        base_path = game_folder.parent / base_name
        if base_name and is_directory(base_path):
            return base_path
    return game_folder

def _subdirs(folder: Path) -> List[Path]:
    try:
        entries = list(folder.iterdir())
    except OSError:
        return []
    return sorted((e for e in entries if is_directory(e)), key=lambda p: p.name.lower())

def find_game_by_id(folder: Path, game_id: str, max_depth: int) -> Optional[Path]:
    """Depth-first search for `<game_id>/eboot.bin` with a param.sfo beside it."""
    if max_depth < 0:
        return None
    if folder.name == game_id and path_exists(folder / PARAM_SFO):
        eboot = folder / EBOOT
        if path_exists(eboot):
            return eboot
    for d in _subdirs(folder):
        found = find_game_by_id(d, game_id, max_depth - 1)
        if found is not None:
            return found
    return None

def resolve_game_path(game_path: str, install_dirs: Iterable[Path],
                      max_depth: int = MAX_SEARCH_DEPTH) -> Path:
    eboot_path = Path(game_path)
    if game_path and path_exists(eboot_path):
        return eboot_path

    for install_dir in install_dirs:
        found = find_game_by_id(Path(install_dir), game_path, max_depth)
        if found is not None:
            log.info("Resolved game ID %s to %s", game_path, found)
            return found

    raise GameNotFoundError(game_path)
