import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union
from PIL import Image

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

def is_windows() -> bool:
    return os.name == "nt"

def default_user_dir() -> Path:
    if is_windows():
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / "shadboot"
    base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "shadboot"

# --- filesystem checks: OS errors read as "absent" ---

def path_exists(path: PathLike) -> bool:
    try:
        return Path(path).exists()
    except (OSError, ValueError):
        return False

def is_directory(path: PathLike) -> bool:
    try:
        return Path(path).is_dir()
    except (OSError, ValueError):
        return False

def find_file_if_exists(path: PathLike) -> Optional[Path]:
    p = Path(path)
    return p if path_exists(p) else None

def ensure_directory(path: PathLike, context: str = "") -> bool:
    """Create `path` (and parents) unless it already exists."""
    p = Path(path)
    if path_exists(p):
        return True
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError:
        if context:
            log.error("Failed to create %s directory: %s", context, p)
        else:
            log.error("Failed to create directory: %s", p)
        return False
    return True

def parse_bool_param(param: str) -> Optional[bool]:
    if param == "true":
        return True
    if param == "false":
        return False
    return None

def image_size(path: PathLike) -> Optional[Tuple[int, int]]:
    """Return (width, height) of a readable image, else None."""
    try:
        with Image.open(path) as im:
            w, h = im.size
    except (OSError, ValueError):
        return None
    if w <= 0 or h <= 0:
        return None
    return w, h
