"""
Command-line parsing for the launcher.

parse_args() never touches process state: toggles come back as a list of
Effects for the caller to apply, and help, folder registration and every
fatal error come back as an Exit for the caller to act on.
"""
from __future__ import annotations

from enum import Enum, auto
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import LaunchError, UsageError, ValidationError
from .models import Effect, EffectKind, Exit, ParsedArgs, ParseResult
from .utils import is_directory, parse_bool_param

USAGE = """\
Usage: shadboot [options] <elf or eboot.bin path>
Options:
  -g, --game <path|ID>          Specify game path to launch
  -- ...                        Parameters passed to the game ELF. Needs to be at the end of the line, and everything after "--" is a game argument.
  -p, --patch <patch_file>      Apply specified patch file
  -i, --ignore-game-patch       Disable automatic loading of game patch
  -f, --fullscreen <true|false> Specify window initial fullscreen state. Does not overwrite the config file.
  --add-game-folder <folder>    Adds a new game folder to the config.
  --set-addon-folder <folder>   Sets the addon folder to the config.
  --log-append                  Append log output to file instead of overwriting it.
  --override-root <folder>      Override the game root folder. Default is the parent of game path
  --wait-for-debugger           Wait for debugger to attach
  --wait-for-pid <pid>          Wait for process with specified PID to stop
  --config-clean                Run the emulator with the default config values, ignores the config file(s) entirely.
  --config-global               Run the emulator with the base config file only, ignores game specific configs.
  --show-fps                    Enable FPS counter display at startup
  -h, --help                    Display this help message
"""


class FlagKind(Enum):
    HELP = auto()
    GAME = auto()
    PATCH = auto()
    IGNORE_GAME_PATCH = auto()
    FULLSCREEN = auto()
    ADD_GAME_FOLDER = auto()
    SET_ADDON_FOLDER = auto()
    LOG_APPEND = auto()
    CONFIG_CLEAN = auto()
    CONFIG_GLOBAL = auto()
    OVERRIDE_ROOT = auto()
    WAIT_FOR_DEBUGGER = auto()
    WAIT_FOR_PID = auto()
    SHOW_FPS = auto()
    SEPARATOR = auto()


FLAGS: Dict[str, FlagKind] = {
    "-h": FlagKind.HELP,
    "--help": FlagKind.HELP,
    "-g": FlagKind.GAME,
    "--game": FlagKind.GAME,
    "-p": FlagKind.PATCH,
    "--patch": FlagKind.PATCH,
    "-i": FlagKind.IGNORE_GAME_PATCH,
    "--ignore-game-patch": FlagKind.IGNORE_GAME_PATCH,
    "-f": FlagKind.FULLSCREEN,
    "--fullscreen": FlagKind.FULLSCREEN,
    "--add-game-folder": FlagKind.ADD_GAME_FOLDER,
    "--set-addon-folder": FlagKind.SET_ADDON_FOLDER,
    "--log-append": FlagKind.LOG_APPEND,
    "--config-clean": FlagKind.CONFIG_CLEAN,
    "--config-global": FlagKind.CONFIG_GLOBAL,
    "--override-root": FlagKind.OVERRIDE_ROOT,
    "--wait-for-debugger": FlagKind.WAIT_FOR_DEBUGGER,
    "--wait-for-pid": FlagKind.WAIT_FOR_PID,
    "--show-fps": FlagKind.SHOW_FPS,
    "--": FlagKind.SEPARATOR,
}

# Flags that consume the following token.
VALUE_FLAGS = {
    FlagKind.GAME,
    FlagKind.PATCH,
    FlagKind.FULLSCREEN,
    FlagKind.ADD_GAME_FOLDER,
    FlagKind.SET_ADDON_FOLDER,
    FlagKind.OVERRIDE_ROOT,
    FlagKind.WAIT_FOR_PID,
}

TOGGLES = {
    FlagKind.IGNORE_GAME_PATCH: Effect(EffectKind.IGNORE_GAME_PATCH, True),
    FlagKind.LOG_APPEND: Effect(EffectKind.LOG_APPEND, True),
    FlagKind.CONFIG_CLEAN: Effect(EffectKind.CONFIG_MODE, "clean"),
    FlagKind.CONFIG_GLOBAL: Effect(EffectKind.CONFIG_MODE, "global"),
    FlagKind.SHOW_FPS: Effect(EffectKind.SHOW_FPS, True),
}

SAVED_MESSAGES = {
    FlagKind.ADD_GAME_FOLDER: "Game folder successfully saved.",
    FlagKind.SET_ADDON_FOLDER: "Addon folder successfully saved.",
}


def validate_folder(path: str) -> Optional[Path]:
    folder = Path(path)
    return folder if path and is_directory(folder) else None


def _fatal(error: LaunchError) -> Exit:
    return Exit(status=error.exit_status, message=f"Error: {error}")


def parse_args(tokens: Sequence[str]) -> ParseResult:
    """Scan `tokens` (argv without the program name) left to right."""
    tokens = list(tokens)
    if not tokens:
        return ParseResult(ParsedArgs(), exit=Exit(1, USAGE, "stdout"))

    has_game = False
    game_path = ""
    game_args: List[str] = []
    game_folder: Optional[Path] = None
    wait_for_debugger = False
    wait_pid: Optional[int] = None
    effects: List[Effect] = []
    warnings: List[str] = []
    exit_: Optional[Exit] = None

    last = len(tokens) - 1
    i = 0
    while i <= last:
        cur = tokens[i]
        kind = FLAGS.get(cur)

        value = ""
        if kind in VALUE_FLAGS:
            if i == last:
                exit_ = _fatal(UsageError(f"Missing argument for {cur}"))
                break
            i += 1
            value = tokens[i]

        if kind is FlagKind.HELP:
            exit_ = Exit(0, USAGE, "stdout")
            break

        elif kind is FlagKind.GAME:
            game_path = value
            has_game = True

        elif kind is FlagKind.PATCH:
            effects.append(Effect(EffectKind.PATCH_FILE, value))

        elif kind is FlagKind.FULLSCREEN:
            fullscreen = parse_bool_param(value)
            if fullscreen is None:
                exit_ = _fatal(ValidationError(
                    f"Invalid argument for {cur}. Use 'true' or 'false'."))
                break
            effects.append(Effect(EffectKind.FULLSCREEN, fullscreen))

        elif kind in (FlagKind.ADD_GAME_FOLDER, FlagKind.SET_ADDON_FOLDER):
            folder = validate_folder(value)
            if folder is None:
                exit_ = _fatal(ValidationError(f"Folder does not exist: {value}"))
                break
            effect_kind = (EffectKind.ADD_GAME_FOLDER if kind is FlagKind.ADD_GAME_FOLDER
                           else EffectKind.SET_ADDON_FOLDER)
            effects.append(Effect(effect_kind, folder))
            exit_ = Exit(0, SAVED_MESSAGES[kind], "stdout")
            break

        elif kind is FlagKind.OVERRIDE_ROOT:
            folder = validate_folder(value)
            if folder is None:
                exit_ = _fatal(ValidationError(f"Folder does not exist: {value}"))
                break
            game_folder = folder

        elif kind is FlagKind.WAIT_FOR_PID:
            digits = value[1:] if value.startswith("-") else value
            if digits.isdigit() and digits.isascii():
                wait_pid = int(value, 10)
            else:
                exit_ = _fatal(ValidationError(f"Invalid PID argument: {value}"))
                break

        elif kind is FlagKind.WAIT_FOR_DEBUGGER:
            wait_for_debugger = True

        elif kind in TOGGLES:
            effects.append(TOGGLES[kind])

        elif kind is FlagKind.SEPARATOR:
            if i == last:
                warnings.append("Warning: -- is set, but no game arguments are added!")
            game_args.extend(tokens[i + 1:])
            break

        # Bare trailing token is the game path unless -g already set one.
        elif i == last and not has_game and not cur.startswith("-"):
            game_path = cur
            has_game = True

        else:
            warnings.append(f"Unknown argument: {cur}, see --help for info.")

        i += 1

    args = ParsedArgs(
        has_game_argument=has_game,
        game_path=game_path,
        game_args=tuple(game_args),
        game_folder=game_folder,
        wait_for_debugger=wait_for_debugger,
        wait_pid=wait_pid,
    )
    return ParseResult(args, tuple(effects), tuple(warnings), exit_)
