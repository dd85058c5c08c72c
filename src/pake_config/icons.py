"""Icon resolution: make sure every icon file a platform needs exists.

Each required icon goes through ordered fallback tiers, first success wins:

  1. the file already exists           -> nothing to do
  2. ICON is a remote URL              -> download and convert
  3. a known icon exists on disk       -> derive the target from it
  4. the platform's bundled default    -> copy verbatim

Failures in any tier are recorded on the returned IconOutcome and logged as
warnings; they never abort the run.

Composite containers (.ico, .icns) are always copied byte for byte. Running
them through the raster path would flatten a multi-resolution icon into a
single image, which the Windows resource compiler rejects.
"""

import io
import os
import re
import shutil
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from pake_config import output
from pake_config.context import BuildContext
from pake_config.download import DEFAULT_TIMEOUT, IconFetchFailure, fetch_icon

DEFAULT_SIZE = 512
ICO_SIZES = [16, 32, 48, 64, 128, 256]

# Magic bytes for the composite container formats
CONTAINER_MAGIC = {
    ".ico": b"\x00\x00\x01\x00",
    ".icns": b"icns",
}
RASTER_FORMATS = {".png": "PNG"}

# Existing icons searched, in order, when a target has to be derived
KNOWN_SOURCES = (
    os.path.join("src-tauri", "icons", "icon.icns"),
    os.path.join("src-tauri", "png", "icon_512.png"),
    os.path.join("src-tauri", "png", "icon_32.ico"),
)

_TRAILING_SIZE = re.compile(r"(\d+)$")


class IconError(Exception):
    def __init__(self, path, message):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class IconConversionFailure(IconError):
    pass


class IconGenerationFailure(IconError):
    pass


class IconUnavailableError(IconError):
    pass


def extension(path) -> str:
    return os.path.splitext(str(path))[1].lower()


def is_container(path) -> bool:
    return extension(path) in CONTAINER_MAGIC


def target_size(path) -> int:
    """Pixel size encoded at the end of the file stem (Foo_256.png -> 256)."""
    stem = os.path.splitext(os.path.basename(str(path)))[0]
    match = _TRAILING_SIZE.search(stem)
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return DEFAULT_SIZE


def _open_image(data, target):
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise IconConversionFailure(target, f"cannot decode image ({e})") from e
    return img


def contain(img: Image.Image, size: int) -> Image.Image:
    """Fit ``img`` inside a size x size square, padded with transparency."""
    img = img.convert("RGBA")
    fitted = ImageOps.contain(img, (size, size), Image.LANCZOS)
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    offset = ((size - fitted.width) // 2, (size - fitted.height) // 2)
    canvas.paste(fitted, offset, fitted)
    return canvas


def render_raster(data: bytes, target, size: Optional[int] = None) -> bytes:
    """Decode ``data`` and re-encode it as a square raster icon for ``target``."""
    fmt = RASTER_FORMATS.get(extension(target))
    if fmt is None:
        raise IconConversionFailure(target, f"unsupported icon extension {extension(target)!r}")
    img = contain(_open_image(data, target), size or target_size(target))

    buf = io.BytesIO()
    img.save(buf, format=fmt, compress_level=9)
    return buf.getvalue()


def transform(data: bytes, target) -> bytes:
    """Convert source bytes into the binary format ``target`` needs.

    Container targets get the bytes unchanged, provided they already are
    that container. Raster targets are resized and re-encoded.
    """
    ext = extension(target)
    if ext in CONTAINER_MAGIC:
        if not data.startswith(CONTAINER_MAGIC[ext]):
            raise IconConversionFailure(
                target, f"source is not a {ext} file and cannot be copied through"
            )
        return data
    return render_raster(data, target)


def _write_bytes(path, data):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def ensure_rgba_png(path, size: Optional[int] = None) -> bool:
    """Rewrite a PNG as RGBA (and ``size`` square) if it is not already.

    Returns True when the file was rewritten.
    """
    with Image.open(path) as img:
        img.load()
        if (
            img.format == "PNG"
            and img.mode == "RGBA"
            and (size is None or img.size == (size, size))
        ):
            return False
        normalized = contain(img, size) if size else img.convert("RGBA")
    normalized.save(path, format="PNG", compress_level=9)
    return True


def resize_to(source, target, size: int) -> None:
    """Write ``source`` to ``target`` as a size x size raster icon."""
    with open(source, "rb") as f:
        data = f.read()
    _write_bytes(target, render_raster(data, target, size))


def generate_ico(source, target, sizes=ICO_SIZES) -> None:
    """Build a multi-resolution .ico from a single raster source."""
    try:
        with Image.open(source) as img:
            master = contain(img, max(sizes))
        images = [master.resize((s, s), Image.LANCZOS) for s in sizes]
        parent = os.path.dirname(target)
        if parent:
            os.makedirs(parent, exist_ok=True)
        images[-1].save(
            target,
            format="ICO",
            sizes=[(s, s) for s in sizes],
            append_images=images[:-1],
        )
    except (Image.DecompressionBombError, OSError, ValueError) as e:
        raise IconGenerationFailure(target, str(e)) from e


@dataclass
class IconOutcome:
    path: str
    created: bool = False
    tier: Optional[str] = None
    failures: List[Exception] = field(default_factory=list)
    available: bool = False


class IconResolver:
    """Runs the fallback tiers for each icon path under ``root``."""

    def __init__(
        self,
        ctx: BuildContext,
        root=".",
        fetch: Callable[..., bytes] = fetch_icon,
        timeout: float = DEFAULT_TIMEOUT,
        known_sources=KNOWN_SOURCES,
    ):
        self.ctx = ctx
        self.root = str(root)
        self.fetch = fetch
        self.timeout = timeout
        self.known_sources = tuple(known_sources)

    def abspath(self, rel_path) -> str:
        return os.path.join(self.root, rel_path)

    def exists(self, rel_path) -> bool:
        return os.path.exists(self.abspath(rel_path))

    def copy(self, source, target) -> None:
        """Copy ``source`` to ``target`` byte for byte."""
        dest = self.abspath(target)
        parent = os.path.dirname(dest)
        if parent:
            os.makedirs(parent, exist_ok=True)
        shutil.copyfile(self.abspath(source), dest)

    def ensure(self, path, fallback_path, description="icon", ensure_rgba=False) -> IconOutcome:
        outcome = IconOutcome(path=path)
        if self.exists(path):
            outcome.tier = "existing"
            outcome.available = True
            return outcome

        for tier, strategy in (
            ("download", self._download),
            ("derived", self._derive),
            ("default", self._copy_default),
        ):
            if strategy(path, fallback_path, description, outcome):
                outcome.created = True
                outcome.tier = tier
                break

        if outcome.created and ensure_rgba and extension(path) == ".png":
            try:
                ensure_rgba_png(self.abspath(path), target_size(path))
            except (Image.DecompressionBombError, OSError, ValueError) as e:
                output.warn(f"Failed to normalize {path} to RGBA: {e}")
                outcome.failures.append(IconConversionFailure(path, str(e)))

        outcome.available = self.exists(path)
        if not outcome.available:
            missing = IconUnavailableError(path, f"no source could produce the {description}")
            outcome.failures.append(missing)
            # Logged only; the build continues with a dangling icon reference.
            if not self.ctx.create_app:
                output.error(f"Failed to create {description} at {path}")
        return outcome

    def _download(self, path, fallback_path, description, outcome) -> bool:
        if not self.ctx.icon_is_remote:
            return False
        url = self.ctx.icon
        output.info(f"Downloading {description} from {url}")
        try:
            data = self.fetch(url, timeout=self.timeout)
            _write_bytes(self.abspath(path), transform(data, path))
        except OSError as e:
            output.warn(f"Failed to write {description} to {path}: {e}")
            outcome.failures.append(IconConversionFailure(path, str(e)))
            return False
        except (IconFetchFailure, IconConversionFailure) as e:
            output.warn(f"Failed to download {description}, trying fallback options: {e}")
            outcome.failures.append(e)
            return False
        output.detail(f"Downloaded {description} to {path}")
        return True

    def _candidate_sources(self, fallback_path):
        sources = []
        if self.ctx.icon and not self.ctx.icon_is_remote:
            sources.append(self.ctx.icon)
        sources.extend(s for s in self.known_sources if s != fallback_path)
        return sources

    def _derive(self, path, fallback_path, description, outcome) -> bool:
        for source in self._candidate_sources(fallback_path):
            if not self.exists(source):
                continue
            output.detail(f"Found source icon at {source}, generating {description}")
            try:
                with open(self.abspath(source), "rb") as f:
                    data = f.read()
                _write_bytes(self.abspath(path), transform(data, path))
            except IconConversionFailure as e:
                output.warn(f"Failed to generate {description} from {source}: {e.message}")
                outcome.failures.append(e)
                continue
            except OSError as e:
                output.warn(f"Failed to generate {description} from {source}: {e}")
                outcome.failures.append(IconConversionFailure(path, str(e)))
                continue
            output.detail(f"Generated {description} from {source}")
            return True
        return False

    def _copy_default(self, path, fallback_path, description, outcome) -> bool:
        if not self.exists(fallback_path):
            return False
        output.warn(f"Using default icon for {description}")
        try:
            self.copy(fallback_path, path)
        except OSError as e:
            output.warn(f"Failed to copy default icon {fallback_path}: {e}")
            outcome.failures.append(IconConversionFailure(path, str(e)))
            return False
        return True
