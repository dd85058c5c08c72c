"""Shared pytest fixtures."""

import io
import json
import struct

import pytest
from PIL import Image

BASE_ENV = {
    "URL": "https://example.com",
    "NAME": "Foo",
    "TITLE": "Foo App",
    "NAME_ZH": "福",
}

TEMPLATES = {
    "pake.json": {
        "windows": [
            {
                "url": "https://weread.qq.com",
                "width": 1200,
                "height": 780,
                "fullscreen": False,
                "hide_title_bar": False,
            }
        ],
        "system_tray": {"macos": False, "linux": True, "windows": True},
        "system_tray_path": "icons/icon.png",
    },
    "tauri.conf.json": {
        "productName": "WeRead",
        "identifier": "com.pake.weread",
        "app": {"trayIcon": {"iconPath": "png/icon_512.png"}},
    },
    "tauri.linux.conf.json": {
        "bundle": {"icon": ["png/weread_512.png"], "linux": {"deb": {"files": {}}}},
    },
    "tauri.macos.conf.json": {"bundle": {"icon": ["icons/weread.icns"]}},
    "tauri.windows.conf.json": {
        "bundle": {"icon": ["png/weread_256.ico"], "resources": ["png/weread_32.ico"]},
    },
}


def png_bytes(size=(512, 512), mode="RGB", color=(200, 30, 30), fmt="PNG"):
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def icns_bytes(sizes=(128, 256, 512)):
    """Minimal .icns holding PNG entries (ic07/ic08/ic09)."""
    type_codes = {128: b"ic07", 256: b"ic08", 512: b"ic09"}
    entries = []
    for size in sizes:
        data = png_bytes((size, size), mode="RGBA", color=(30, 30, 200, 255))
        entries.append((type_codes[size], data))
    total = 8 + sum(8 + len(data) for _, data in entries)
    out = io.BytesIO()
    out.write(b"icns")
    out.write(struct.pack(">I", total))
    for type_code, data in entries:
        out.write(type_code)
        out.write(struct.pack(">I", 8 + len(data)))
        out.write(data)
    return out.getvalue()


def ico_bytes(sizes=(16, 32, 48, 256)):
    img = Image.new("RGBA", (256, 256), (30, 200, 30, 255))
    buf = io.BytesIO()
    img.save(buf, format="ICO", sizes=[(s, s) for s in sizes])
    return buf.getvalue()


@pytest.fixture
def env():
    return dict(BASE_ENV)


@pytest.fixture
def project(tmp_path):
    """A Pake checkout with config templates and the bundled default icons."""
    tauri = tmp_path / "src-tauri"
    (tauri / "png").mkdir(parents=True)
    (tauri / "icons").mkdir()
    for name, data in TEMPLATES.items():
        (tauri / name).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    (tauri / "png" / "icon_512.png").write_bytes(png_bytes())
    (tauri / "png" / "icon_256.ico").write_bytes(ico_bytes())
    (tauri / "icons" / "icon.icns").write_bytes(icns_bytes())
    return tmp_path


@pytest.fixture
def read_json(project):
    def _read(name):
        with open(project / "src-tauri" / name, encoding="utf-8") as f:
            return json.load(f)
    return _read
