import json
import logging
from typing import Dict
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULTS = {
    "game_install_dirs": [],
    "addon_install_dir": "",
    "emulator": "",
    "fullscreen": False,
    "show_fps": False,
}

def load_settings(settings_file: Path) -> Dict:
    default = {k: (list(v) if isinstance(v, list) else v) for k, v in DEFAULTS.items()}
    try:
        if settings_file.exists():
            data = json.loads(settings_file.read_text("utf-8"))
            if isinstance(data, dict):
                default.update({k: data.get(k, default[k]) for k in default})
            else:
                log.warning("Ignoring settings file %s: not a JSON object", settings_file)
    except (OSError, ValueError) as e:
        log.warning("Ignoring unreadable settings file %s: %s", settings_file, e)
    if not isinstance(default["game_install_dirs"], list):
        default["game_install_dirs"] = []
    return default

def save_settings(settings_file: Path, settings: dict) -> None:
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(settings, indent=2), encoding="utf-8")

def add_game_install_dir(settings_file: Path, folder: Path) -> bool:
    """Append `folder` to the install directory list. False if already listed."""
    settings = load_settings(settings_file)
    dirs = settings["game_install_dirs"]
    entry = str(folder)
    if entry in dirs:
        return False
    dirs.append(entry)
    save_settings(settings_file, settings)
    log.info("Added game install directory %s", entry)
    return True

def set_addon_install_dir(settings_file: Path, folder: Path) -> None:
    settings = load_settings(settings_file)
    settings["addon_install_dir"] = str(folder)
    save_settings(settings_file, settings)
    log.info("Addon install directory set to %s", folder)

def game_install_dirs(settings: dict) -> list:
    return [Path(d) for d in settings.get("game_install_dirs", []) if isinstance(d, str) and d]
