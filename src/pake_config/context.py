"""Build parameters resolved from the environment."""

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

REQUIRED_ENV_VARS = ("URL", "NAME", "TITLE", "NAME_ZH")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class PakeConfigError(Exception):
    """Base class for errors that abort the configuration run."""


class MissingParameterError(PakeConfigError):
    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            f"Missing required environment variables: {', '.join(self.missing)}"
        )


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of ``value`` ("800px" -> 800)."""
    if not value:
        return None
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if not value:
        return None
    return value == "true"


@dataclass(frozen=True)
class BuildContext:
    url: str
    name: str
    title: str
    title_zh: str
    width: Optional[int] = None
    height: Optional[int] = None
    fullscreen: Optional[bool] = None
    hide_title_bar: Optional[bool] = None
    show_system_tray: Optional[bool] = None
    force_internal_navigation: Optional[bool] = None
    icon: Optional[str] = None
    create_app: bool = False

    @property
    def identifier(self) -> str:
        return f"com.pake.{self.name}"

    @property
    def product_name(self) -> str:
        return f"com-pake-{self.name}"

    @property
    def icon_is_remote(self) -> bool:
        return bool(self.icon) and self.icon.startswith("http")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildContext":
        """Build the context from environment variables.

        Only presence of the four mandatory variables is checked; an empty
        value counts as present. Every missing name is reported at once.
        Optional variables that are unset or empty leave the corresponding
        field as None.
        """
        if environ is None:
            environ = os.environ
        missing = [key for key in REQUIRED_ENV_VARS if key not in environ]
        if missing:
            raise MissingParameterError(missing)

        return cls(
            url=environ["URL"],
            name=environ["NAME"],
            title=environ["TITLE"],
            title_zh=environ["NAME_ZH"],
            width=_parse_int(environ.get("WIDTH")),
            height=_parse_int(environ.get("HEIGHT")),
            fullscreen=_parse_bool(environ.get("FULLSCREEN")),
            hide_title_bar=_parse_bool(environ.get("HIDE_TITLE_BAR")),
            show_system_tray=_parse_bool(environ.get("SHOW_SYSTEM_TRAY")),
            force_internal_navigation=_parse_bool(
                environ.get("FORCE_INTERNAL_NAVIGATION")
            ),
            icon=environ.get("ICON") or None,
            create_app=environ.get("PAKE_CREATE_APP") == "1",
        )
