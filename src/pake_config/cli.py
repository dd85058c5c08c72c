"""Pake Tauri configuration CLI.

Reads the build parameters from the environment, prepares the icons the
current platform needs, and rewrites the Tauri config templates under
src-tauri/ to match.

Usage examples:
    URL=https://example.com NAME=Example TITLE=Example NAME_ZH=示例 pake-config
    pake-config --root path/to/pake --platform win32
    ICON=https://example.com/logo.png pake-config --timeout 10

Exit codes:
  0: configuration written (icon fallbacks may have degraded to defaults)
  1: missing environment variables, unsupported platform, or unreadable
     config template; nothing is written
"""

import argparse
import os
import sys

import click

from pake_config import output
from pake_config.config import load_configs, save_configs, update_base_configs
from pake_config.context import REQUIRED_ENV_VARS, BuildContext, PakeConfigError
from pake_config.download import timeout_from_env
from pake_config.icons import IconResolver
from pake_config.platforms import Platform, configure_platform

OPTIONAL_ENV_VARS = (
    "WIDTH",
    "HEIGHT",
    "FULLSCREEN",
    "HIDE_TITLE_BAR",
    "SHOW_SYSTEM_TRAY",
    "FORCE_INTERNAL_NAVIGATION",
    "ICON",
)


def print_environment(environ):
    output.info("Environment variables:")
    for key in REQUIRED_ENV_VARS + OPTIONAL_ENV_VARS:
        if key in environ:
            output.detail(f"{key}: {environ[key]}")


def run(root=".", platform_name=None, environ=None, timeout=None):
    """Run the whole configuration pipeline once.

    Returns (platform, icon outcomes). Raises PakeConfigError subclasses for
    the fatal cases before any file has been touched.
    """
    if environ is None:
        environ = os.environ
    ctx = BuildContext.from_env(environ)
    platform = Platform.detect(platform_name)
    configs = load_configs(root)

    update_base_configs(ctx, configs)

    if timeout is None:
        timeout = timeout_from_env(environ)
    resolver = IconResolver(ctx, root=root, timeout=timeout)
    outcomes = configure_platform(platform, ctx, configs, resolver)

    save_configs(root, configs)
    return platform, outcomes


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Prepare Tauri configs and icons for a Pake build",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--root", default=".", help="Project root containing src-tauri/ (default: cwd)"
    )
    parser.add_argument(
        "--platform",
        default=None,
        help="Target platform: linux, darwin or win32 (default: host platform)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for a remote icon download (default: $PAKE_ICON_TIMEOUT or 30)",
    )
    args = parser.parse_args(argv)

    print_environment(os.environ)
    try:
        platform, outcomes = run(args.root, args.platform, timeout=args.timeout)
    except PakeConfigError as e:
        output.error(f"Configuration failed: {e}")
        sys.exit(1)

    degraded = [o for o in outcomes if o.failures]
    if degraded:
        output.warn(
            f"{len(degraded)} icon{'s' if len(degraded) != 1 else ''} used a fallback"
        )
    click.echo("")
    output.success(f"Tauri configuration complete for {platform.value}")


if __name__ == "__main__":
    main()
