from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

DEFAULT_TITLE = "Unknown title"
DEFAULT_APP_VERSION = "Unknown version"
DEFAULT_FW_VERSION = 0x4700000


@dataclass(frozen=True)
class ParsedArgs:
    has_game_argument: bool = False
    game_path: str = ""
    game_args: Tuple[str, ...] = ()      # verbatim tokens after "--"
    game_folder: Optional[Path] = None   # --override-root
    wait_for_debugger: bool = False
    wait_pid: Optional[int] = None


class EffectKind(Enum):
    IGNORE_GAME_PATCH = "ignore_game_patch"
    PATCH_FILE = "patch_file"
    FULLSCREEN = "fullscreen"
    LOG_APPEND = "log_append"
    CONFIG_MODE = "config_mode"
    SHOW_FPS = "show_fps"
    ADD_GAME_FOLDER = "add_game_folder"
    SET_ADDON_FOLDER = "set_addon_folder"


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    value: Union[str, bool, Path, None] = None


@dataclass(frozen=True)
class Exit:
    status: int
    message: str = ""
    stream: str = "stderr"


@dataclass(frozen=True)
class ParseResult:
    args: ParsedArgs
    effects: Tuple[Effect, ...] = ()
    warnings: Tuple[str, ...] = ()
    exit: Optional[Exit] = None


@dataclass
class PSFData:
    id: str = ""
    title: str = DEFAULT_TITLE
    app_version: str = DEFAULT_APP_VERSION
    fw_version: int = DEFAULT_FW_VERSION
    sdk_version: int = DEFAULT_FW_VERSION
    psvr_supported: bool = False
    psvr_required: bool = False
    splash_path: Optional[Path] = None


@dataclass
class RuntimeOptions:
    patch_file: Optional[str] = None
    ignore_game_patches: bool = False
    fullscreen: Optional[bool] = None    # None=settings file value
    log_append: bool = False
    config_mode: str = "default"         # default | clean | global
    show_fps: bool = False


@dataclass
class LaunchDescriptor:
    executable: Path
    game_folder: Path
    game_args: Tuple[str, ...] = ()
    psf: Optional[PSFData] = None
    game_config: Optional[Path] = None
    options: RuntimeOptions = field(default_factory=RuntimeOptions)
    wait_for_debugger: bool = False
    executable_name: str = ""
