"""Tauri config templates: loading, base overrides, and saving."""

import json
import os
from dataclasses import dataclass

from pake_config import output
from pake_config.context import BuildContext, PakeConfigError

PAKE_CONFIG = os.path.join("src-tauri", "pake.json")
TAURI_CONFIG = os.path.join("src-tauri", "tauri.conf.json")
PLATFORM_CONFIGS = {
    "linux": os.path.join("src-tauri", "tauri.linux.conf.json"),
    "darwin": os.path.join("src-tauri", "tauri.macos.conf.json"),
    "win32": os.path.join("src-tauri", "tauri.windows.conf.json"),
}


class ConfigFileError(PakeConfigError):
    def __init__(self, path, message):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


@dataclass
class ConfigSet:
    """The five JSON documents edited during one run."""

    pake: dict
    tauri: dict
    linux: dict
    macos: dict
    windows: dict

    def platform(self, platform: str) -> dict:
        return {
            "linux": self.linux,
            "darwin": self.macos,
            "win32": self.windows,
        }[platform]

    def files(self):
        """Yield (relative path, document) pairs in write order."""
        yield PAKE_CONFIG, self.pake
        yield TAURI_CONFIG, self.tauri
        for platform, path in PLATFORM_CONFIGS.items():
            yield path, self.platform(platform)


def _read_json(root, rel_path):
    path = os.path.join(root, rel_path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigFileError(rel_path, "file not found") from e
    except json.JSONDecodeError as e:
        raise ConfigFileError(rel_path, f"invalid JSON ({e})") from e


def load_configs(root) -> ConfigSet:
    return ConfigSet(
        pake=_read_json(root, PAKE_CONFIG),
        tauri=_read_json(root, TAURI_CONFIG),
        linux=_read_json(root, PLATFORM_CONFIGS["linux"]),
        macos=_read_json(root, PLATFORM_CONFIGS["darwin"]),
        windows=_read_json(root, PLATFORM_CONFIGS["win32"]),
    )


def save_configs(root, configs: ConfigSet) -> None:
    for rel_path, data in configs.files():
        with open(os.path.join(root, rel_path), "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")


def update_base_configs(ctx: BuildContext, configs: ConfigSet) -> None:
    """Apply the build parameters to pake.json and tauri.conf.json.

    URL, product name and identifier are always written. Every other
    parameter is only applied when it was given, otherwise the template
    value stays as it is.
    """
    output.info("Updating base configurations...")
    window = configs.pake["windows"][0]
    window["url"] = ctx.url

    overrides = (
        ("width", ctx.width),
        ("height", ctx.height),
        ("fullscreen", ctx.fullscreen),
        ("hide_title_bar", ctx.hide_title_bar),
        ("force_internal_navigation", ctx.force_internal_navigation),
    )
    for key, value in overrides:
        if value is None:
            continue
        window[key] = value
        output.detail(f"Set {key} to: {json.dumps(value)}")

    if ctx.show_system_tray is not None:
        tray = configs.pake.setdefault("system_tray", {})
        for platform in ("macos", "linux", "windows"):
            tray[platform] = ctx.show_system_tray
        output.detail(
            f"Set system tray to: {json.dumps(ctx.show_system_tray)} for all platforms"
        )

    if configs.pake.get("system_tray_path"):
        configs.pake["system_tray_path"] = f"icons/{ctx.name}.png"
        output.detail(f"Set system tray icon path to: {configs.pake['system_tray_path']}")

    configs.tauri["productName"] = ctx.title
    configs.tauri["identifier"] = ctx.identifier
    output.detail(f"Set product name to: {ctx.title}")
    output.detail(f"Set identifier to: {ctx.identifier}")

    tray_icon = (configs.tauri.get("app") or {}).get("trayIcon")
    if isinstance(tray_icon, dict):
        tray_icon["iconPath"] = f"png/{ctx.name}_512.png"
        output.detail(f"Set tauri tray icon path to: {tray_icon['iconPath']}")
