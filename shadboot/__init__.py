import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from .utils import default_user_dir, ensure_directory

USER_DIR = os.environ.get("SHADBOOT_USER_DIR")
EMULATOR = os.environ.get("SHADBOOT_EMULATOR", "")
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

def create_config(user_dir: Optional[Union[str, Path]] = None) -> Dict:
    root = Path(user_dir or USER_DIR or default_user_dir())
    config: Dict = {}
    config["USER_DIR"] = root
    config["SETTINGS_FILE"] = root / "config.json"
    config["LOG_DIR"] = root / "log"
    config["LOG_FILE"] = root / "log" / "shadboot.log"
    config["CUSTOM_CONFIGS_DIR"] = root / "custom_configs"
    config["MAX_SEARCH_DEPTH"] = 5
    config["MAX_LOGGED_ARGS"] = 32
    config["PARAM_SFO"] = "sce_sys/param.sfo"
    config["SPLASH_IMAGE"] = "sce_sys/pic1.png"
    config["EMULATOR"] = EMULATOR
    return config

def setup_logging(log_file: Path, append: bool = False) -> None:
    """Send log records to `log_file`, appending or truncating it."""
    root = logging.getLogger()
    if not ensure_directory(log_file.parent, "log"):
        return
    for h in list(root.handlers):
        if getattr(h, "_shadboot", False):
            root.removeHandler(h)
            h.close()
    handler = logging.FileHandler(log_file, mode="a" if append else "w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._shadboot = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(logging.INFO)
