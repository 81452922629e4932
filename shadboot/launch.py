# shadboot/launch.py
from __future__ import annotations

import logging
import os
import platform
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import psutil

from . import create_config, setup_logging
from .args import parse_args
from .errors import GameNotFoundError
from .models import Effect, EffectKind, LaunchDescriptor, ParsedArgs, RuntimeOptions
from .psf import load_psf_data, log_game_metadata, psf_candidates
from .scanning import resolve_game_folder, resolve_game_path
from .settings import add_game_install_dir, game_install_dirs, load_settings, set_addon_install_dir
from .utils import find_file_if_exists, image_size

log = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Effects
# ──────────────────────────────────────────────────────────────────────────────

def apply_effects(effects: Sequence[Effect], options: RuntimeOptions, settings_file: Path) -> None:
    """Apply parsed toggles to `options`; folder effects are persisted to settings."""
    for effect in effects:
        kind = effect.kind
        if kind is EffectKind.IGNORE_GAME_PATCH:
            options.ignore_game_patches = True
        elif kind is EffectKind.PATCH_FILE:
            options.patch_file = str(effect.value)
        elif kind is EffectKind.FULLSCREEN:
            options.fullscreen = bool(effect.value)
        elif kind is EffectKind.LOG_APPEND:
            options.log_append = True
        elif kind is EffectKind.CONFIG_MODE:
            options.config_mode = str(effect.value)
        elif kind is EffectKind.SHOW_FPS:
            options.show_fps = True
        elif kind is EffectKind.ADD_GAME_FOLDER:
            add_game_install_dir(settings_file, Path(effect.value))
        elif kind is EffectKind.SET_ADDON_FOLDER:
            set_addon_install_dir(settings_file, Path(effect.value))

# ──────────────────────────────────────────────────────────────────────────────
# Logging helpers
# ──────────────────────────────────────────────────────────────────────────────

def log_configuration(options: RuntimeOptions, settings: dict) -> None:
    log.info("Config mode: %s", options.config_mode)
    log.info("Fullscreen: %s", effective_fullscreen(options, settings))
    log.info("Show FPS: %s", options.show_fps or bool(settings.get("show_fps")))
    log.info("Patch file: %s", options.patch_file or "none")
    log.info("Ignore game patches: %s", options.ignore_game_patches)
    log.info("Game install dirs: %s", settings.get("game_install_dirs", []))
    log.info("Addon install dir: %s", settings.get("addon_install_dir") or "none")

    log.info("CPU Physical Cores: %s, Logical Cores: %s",
             psutil.cpu_count(logical=False), psutil.cpu_count(logical=True))
    log.info("Total RAM: %s GB", round(psutil.virtual_memory().total / 1024 ** 3))
    log.info("Operating System: %s %s", platform.system(), platform.release())

def log_game_arguments(args: Sequence[str], max_logged: int = 32) -> Tuple[str, ...]:
    """Log game arguments and return the ones that get passed on."""
    passed = tuple(args[:max_logged])
    for i, arg in enumerate(passed):
        log.info("Game argument %d: %s", i, arg)
    if len(args) > max_logged:
        log.error("Too many game arguments, only passing the first %d", max_logged)
    return passed

def effective_fullscreen(options: RuntimeOptions, settings: dict) -> bool:
    return options.fullscreen if options.fullscreen is not None else bool(settings.get("fullscreen"))

# ──────────────────────────────────────────────────────────────────────────────
# Descriptor
# ──────────────────────────────────────────────────────────────────────────────

def build_launch_descriptor(
    eboot: Path,
    args: ParsedArgs,
    options: RuntimeOptions,
    config: Dict,
    executable_name: str = "",
) -> LaunchDescriptor:
    game_folder = resolve_game_folder(eboot, args.game_folder)

    psf = None
    for candidate in psf_candidates(game_folder, config["PARAM_SFO"]):
        if find_file_if_exists(candidate):
            psf = load_psf_data(candidate)
            break

    game_config = None
    if psf is not None:
        splash = find_file_if_exists(game_folder / config["SPLASH_IMAGE"])
        if splash is not None:
            size = image_size(splash)
            if size:
                psf.splash_path = splash
                log.info("Splash image: %s (%dx%d)", splash, *size)
            else:
                log.warning("Splash image is not readable: %s", splash)
        log_game_metadata(psf)
        if options.config_mode == "default" and psf.id:
            game_config = find_file_if_exists(Path(config["CUSTOM_CONFIGS_DIR"]) / f"{psf.id}.json")
    else:
        log.warning("No param.sfo found for %s, using defaults", game_folder)

    game_args = log_game_arguments(list(args.game_args), config["MAX_LOGGED_ARGS"])

    return LaunchDescriptor(
        executable=eboot,
        game_folder=game_folder,
        game_args=game_args,
        psf=psf,
        game_config=game_config,
        options=options,
        wait_for_debugger=args.wait_for_debugger,
        executable_name=executable_name,
    )

# ──────────────────────────────────────────────────────────────────────────────
# Engine hand-off
# ──────────────────────────────────────────────────────────────────────────────

def wait_for_pid(pid: int) -> None:
    """Block until process `pid` has exited."""
    if not psutil.pid_exists(pid):
        log.info("Process %d is not running", pid)
        return
    log.info("Waiting for process %d to stop", pid)
    try:
        psutil.Process(pid).wait()
    except psutil.NoSuchProcess:
        pass
    log.info("Process %d stopped", pid)

def descriptor_env(descriptor: LaunchDescriptor, settings: dict) -> Dict[str, str]:
    o = descriptor.options
    env = os.environ.copy()
    env["SHADBOOT_GAME_FOLDER"] = str(descriptor.game_folder)
    env["SHADBOOT_FULLSCREEN"] = "true" if effective_fullscreen(o, settings) else "false"
    env["SHADBOOT_SHOW_FPS"] = "1" if (o.show_fps or settings.get("show_fps")) else "0"
    env["SHADBOOT_CONFIG_MODE"] = o.config_mode
    env["SHADBOOT_IGNORE_GAME_PATCH"] = "1" if o.ignore_game_patches else "0"
    env["SHADBOOT_WAIT_FOR_DEBUGGER"] = "1" if descriptor.wait_for_debugger else "0"
    if o.patch_file:
        env["SHADBOOT_PATCH_FILE"] = o.patch_file
    if settings.get("addon_install_dir"):
        env["SHADBOOT_ADDON_FOLDER"] = str(settings["addon_install_dir"])
    if descriptor.game_config:
        env["SHADBOOT_GAME_CONFIG"] = str(descriptor.game_config)
    if descriptor.psf is not None:
        env["SHADBOOT_TITLE_ID"] = descriptor.psf.id
        env["SHADBOOT_SDK_VERSION"] = f"{descriptor.psf.sdk_version:#x}"
        env["SHADBOOT_FW_VERSION"] = f"{descriptor.psf.fw_version:#x}"
        if descriptor.psf.splash_path:
            env["SHADBOOT_SPLASH"] = str(descriptor.psf.splash_path)
    return env

class ProcessEngine:
    """Hands the descriptor to an external emulator executable."""

    def __init__(self, emulator: str, settings: Optional[dict] = None):
        self.emulator = emulator
        self.settings = settings or {}

    def run(self, descriptor: LaunchDescriptor) -> Tuple[bool, str]:
        if not self.emulator:
            return False, "No emulator executable configured."
        argv: List[str] = [self.emulator, str(descriptor.executable), *descriptor.game_args]
        env = descriptor_env(descriptor, self.settings)
        log.info("Starting emulator: %s", " ".join(argv))
        try:
            p = subprocess.Popen(argv, cwd=str(descriptor.game_folder), env=env)
        except OSError as e:
            return False, str(e)
        code = p.wait()
        if code != 0:
            return False, f"Emulator exited with status {code}."
        return True, "Emulator exited."

# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def main(
    argv: Optional[Sequence[str]] = None,
    *,
    engine=None,
    waiter: Callable[[int], None] = wait_for_pid,
    user_dir: Optional[Path] = None,
) -> int:
    argv = list(sys.argv if argv is None else argv)
    config = create_config(user_dir)
    settings_file = Path(config["SETTINGS_FILE"])

    result = parse_args(argv[1:])
    for w in result.warnings:
        print(w, file=sys.stderr)

    options = RuntimeOptions()
    if result.exit is None or result.exit.status == 0:
        try:
            apply_effects(result.effects, options, settings_file)
        except OSError as e:
            print(f"Error: Could not save settings: {e}", file=sys.stderr)
            return 1

    if result.exit is not None:
        stream = sys.stdout if result.exit.stream == "stdout" else sys.stderr
        if result.exit.message:
            print(result.exit.message, file=stream, end="" if result.exit.message.endswith("\n") else "\n")
        return result.exit.status

    setup_logging(Path(config["LOG_FILE"]), append=options.log_append)

    args = result.args
    if not args.has_game_argument:
        print("Error: Please provide a game path or ID.", file=sys.stderr)
        return 1

    settings = load_settings(settings_file)
    install_dirs = game_install_dirs(settings)
    if not install_dirs:
        print("Warning: No game folder set. Please set it using:\n"
              "  shadboot --add-game-folder <folder_name>", file=sys.stderr)

    try:
        eboot = resolve_game_path(args.game_path, install_dirs, config["MAX_SEARCH_DEPTH"])
    except GameNotFoundError as e:
        log.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_configuration(options, settings)
    descriptor = build_launch_descriptor(eboot, args, options, config, executable_name=argv[0] if argv else "")

    if args.wait_pid is not None:
        waiter(args.wait_pid)

    if engine is None:
        engine = ProcessEngine(config["EMULATOR"] or settings.get("emulator", ""), settings)
    ok, msg = engine.run(descriptor)
    if not ok:
        log.error("Launch failed: %s", msg)
        print(f"Error: Launch failed: {msg}", file=sys.stderr)
        return 1
    log.info("%s", msg)
    return 0
