"""Per-platform icon requirements and bundle config synthesis."""

import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pake_config import output
from pake_config.config import ConfigSet
from pake_config.context import BuildContext, PakeConfigError
from pake_config.icons import (
    IconConversionFailure,
    IconGenerationFailure,
    IconOutcome,
    IconResolver,
    IconUnavailableError,
    generate_ico,
    resize_to,
)

TAURI_DIR = "src-tauri"

# Extra PNG sizes the macOS bundle metadata expects next to the .icns
MACOS_PNG_SIZES = (128, 256, 512)


class UnsupportedPlatformError(PakeConfigError):
    def __init__(self, platform):
        self.platform = platform
        super().__init__(f"Unsupported platform: {platform}")


class Platform(str, Enum):
    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "win32"

    @classmethod
    def detect(cls, value: Optional[str] = None) -> "Platform":
        value = value or sys.platform
        # Older interpreters report "linux2"
        if value.startswith("linux"):
            value = "linux"
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedPlatformError(value) from None


@dataclass(frozen=True)
class PlatformDescriptor:
    platform: Platform
    icon_path: str
    default_icon: str
    icons: List[str]
    base_png_path: Optional[str] = None
    base_png_default: Optional[str] = None
    resources: List[str] = field(default_factory=list)
    desktop_entry_path: Optional[str] = None
    desktop_entry: Optional[str] = None
    desktop_files: Dict[str, str] = field(default_factory=dict)


def _tauri(*parts) -> str:
    return os.path.join(TAURI_DIR, *parts)


def desktop_entry(ctx: BuildContext) -> str:
    return (
        "[Desktop Entry]\n"
        "Encoding=UTF-8\n"
        "Categories=Office\n"
        f"Exec={ctx.product_name}\n"
        f"Icon={ctx.product_name}\n"
        f"Name={ctx.product_name}\n"
        f"Name[zh_CN]={ctx.title_zh}\n"
        "StartupNotify=true\n"
        "Terminal=false\n"
        "Type=Application\n"
    )


def describe(platform: Platform, ctx: BuildContext) -> PlatformDescriptor:
    """Icon paths and bundle extras for ``platform``, filled in from ``ctx``."""
    name = ctx.name
    if platform is Platform.LINUX:
        desktop_file = f"{ctx.product_name}.desktop"
        return PlatformDescriptor(
            platform=platform,
            icon_path=_tauri("png", f"{name}_512.png"),
            default_icon=_tauri("png", "icon_512.png"),
            icons=[f"png/{name}_512.png"],
            desktop_entry_path=_tauri("assets", desktop_file),
            desktop_entry=desktop_entry(ctx),
            desktop_files={
                f"/usr/share/applications/{desktop_file}": f"assets/{desktop_file}",
            },
        )
    if platform is Platform.MACOS:
        return PlatformDescriptor(
            platform=platform,
            icon_path=_tauri("icons", f"{name}.icns"),
            default_icon=_tauri("icons", "icon.icns"),
            icons=[f"icons/{name}.icns"],
        )
    if platform is Platform.WINDOWS:
        return PlatformDescriptor(
            platform=platform,
            icon_path=_tauri("png", f"{name}_256.ico"),
            default_icon=_tauri("png", "icon_256.ico"),
            icons=[f"png/{name}_256.ico"],
            base_png_path=_tauri("png", f"{name}_512.png"),
            base_png_default=_tauri("png", "icon_512.png"),
            resources=[f"png/{name}_256.ico"],
        )
    raise UnsupportedPlatformError(platform)


def synthesize(descriptor: PlatformDescriptor, platform_config: dict, ctx: BuildContext) -> None:
    """Point the platform config at the resolved icons and shared identifiers."""
    bundle = platform_config.setdefault("bundle", {})
    bundle["icon"] = list(descriptor.icons)
    platform_config["identifier"] = ctx.identifier
    platform_config["productName"] = ctx.title


# --- Platform handlers ---


def _configure_linux(descriptor, platform_config, resolver):
    outcomes = [
        resolver.ensure(
            descriptor.icon_path, descriptor.default_icon, "Linux icon", ensure_rgba=True
        )
    ]

    entry_path = resolver.abspath(descriptor.desktop_entry_path)
    os.makedirs(os.path.dirname(entry_path), exist_ok=True)
    with open(entry_path, "w", encoding="utf-8") as f:
        f.write(descriptor.desktop_entry)
    output.detail(f"Wrote desktop entry to {descriptor.desktop_entry_path}")

    bundle = platform_config.setdefault("bundle", {})
    deb = bundle.setdefault("linux", {}).setdefault("deb", {})
    deb["files"] = dict(descriptor.desktop_files)
    return outcomes


def _first_existing(resolver, candidates):
    for candidate in candidates:
        if resolver.exists(candidate):
            return candidate
    return None


def _configure_macos(descriptor, platform_config, resolver):
    outcomes = [resolver.ensure(descriptor.icon_path, descriptor.default_icon, "macOS icon")]

    targets: List[Tuple[int, str]] = [
        (size, _tauri("png", f"icon_{size}.png")) for size in MACOS_PNG_SIZES
    ]
    source = _first_existing(
        resolver,
        [descriptor.icon_path]
        + [path for _, path in sorted(targets, reverse=True)]
        + [descriptor.default_icon],
    )
    if source is None:
        output.warn("No source icon found for the macOS PNG sizes")
        return outcomes

    for size, path in targets:
        if resolver.exists(path):
            continue
        output.detail(f"Generating macOS icon size {size}x{size}")
        try:
            resize_to(resolver.abspath(source), resolver.abspath(path), size)
        except (IconConversionFailure, OSError) as e:
            output.warn(f"Failed to generate {path}: {e}")
            continue
        output.detail(f"Generated macOS icon: {path}")
    return outcomes


def _configure_windows(descriptor, platform_config, resolver):
    outcomes = [
        resolver.ensure(
            descriptor.base_png_path,
            descriptor.base_png_default,
            "Windows base icon PNG",
            ensure_rgba=True,
        )
    ]

    ico = IconOutcome(path=descriptor.icon_path, available=resolver.exists(descriptor.icon_path))
    if ico.available:
        ico.tier = "existing"
    else:
        output.info(f"Generating Windows ICO from {descriptor.base_png_path} -> {descriptor.icon_path}")
        try:
            generate_ico(
                resolver.abspath(descriptor.base_png_path),
                resolver.abspath(descriptor.icon_path),
            )
            ico.created, ico.tier = True, "generated"
        except IconGenerationFailure as e:
            output.warn(f"Failed to generate Windows ICO: {e.message}")
            ico.failures.append(e)
            if resolver.exists(descriptor.default_icon):
                output.warn("Falling back to default Windows icon")
                try:
                    resolver.copy(descriptor.default_icon, descriptor.icon_path)
                    ico.created, ico.tier = True, "default"
                except OSError as e:
                    output.warn(f"Failed to copy default Windows icon {descriptor.default_icon}: {e}")
                    ico.failures.append(IconConversionFailure(descriptor.icon_path, str(e)))
        ico.available = resolver.exists(descriptor.icon_path)
        if not ico.available:
            ico.failures.append(
                IconUnavailableError(descriptor.icon_path, "no Windows icon could be produced")
            )
            if not resolver.ctx.create_app:
                output.error(f"Failed to create Windows icon at {descriptor.icon_path}")
    outcomes.append(ico)

    platform_config.setdefault("bundle", {})["resources"] = list(descriptor.resources)
    return outcomes


def configure_platform(
    platform: Platform, ctx: BuildContext, configs: ConfigSet, resolver: IconResolver
) -> List[IconOutcome]:
    """Resolve the platform's icons and update its bundle config.

    Returns one IconOutcome per required icon.
    """
    descriptor = describe(platform, ctx)
    platform_config = configs.platform(platform.value)

    if platform is Platform.LINUX:
        outcomes = _configure_linux(descriptor, platform_config, resolver)
    elif platform is Platform.MACOS:
        outcomes = _configure_macos(descriptor, platform_config, resolver)
    elif platform is Platform.WINDOWS:
        outcomes = _configure_windows(descriptor, platform_config, resolver)
    else:
        raise UnsupportedPlatformError(platform)

    synthesize(descriptor, platform_config, ctx)
    return outcomes
