"""HTTP fetch for remote icon sources (stdlib only)."""

import os
import socket
import urllib.error
import urllib.request

DEFAULT_TIMEOUT = 30.0

_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


class IconFetchFailure(Exception):
    def __init__(self, status_code, message):
        self.status_code = status_code
        self.message = message
        super().__init__(f"fetch error {status_code}: {message}")


def timeout_from_env(environ=None, default=DEFAULT_TIMEOUT):
    """Read PAKE_ICON_TIMEOUT (seconds), falling back to ``default``."""
    if environ is None:
        environ = os.environ
    raw = environ.get("PAKE_ICON_TIMEOUT")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def fetch_icon(url, timeout=DEFAULT_TIMEOUT):
    """Download ``url`` and return the raw response body.

    Raises IconFetchFailure on HTTP errors (with the response status),
    on network errors and timeouts (status 0), and on an empty body.
    """
    req = urllib.request.Request(url, method="GET")
    req.add_header("User-Agent", _CHROME_UA)
    req.add_header("Accept", "image/*,*/*;q=0.8")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = resp.read()
    except urllib.error.HTTPError as e:
        body_text = e.read().decode("utf-8", errors="replace")
        raise IconFetchFailure(e.code, body_text[:200] or e.reason) from e
    except urllib.error.URLError as e:
        raise IconFetchFailure(0, str(e.reason)) from e
    except (socket.timeout, TimeoutError) as e:
        raise IconFetchFailure(0, f"timed out after {timeout}s") from e
    except (OSError, ValueError) as e:
        raise IconFetchFailure(0, str(e)) from e

    if not data:
        raise IconFetchFailure(0, "empty response body")
    return data
