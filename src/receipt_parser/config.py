import os
from typing import Dict, Optional, Tuple

from .domain.models import DEFAULT_FALLBACK_POLICY, FallbackPolicy, ItemMode
from .logging import get_logger

log = get_logger("config")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir."""
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Minimal .env reader.

    - Reads key=value pairs, ignores comments (#/;) and blank lines.
    - Trims single/double quotes around the value.
    - Returns mapping; does not mutate environment.
    """
    env: Dict[str, str] = {}
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return env
    try:
        with open(path, "r", encoding="utf-8") as f:
            for raw in f:
                line = raw.strip()
                if not line or line.startswith("#") or line.startswith(";"):
                    continue
                if "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip()
                if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                    v = v[1:-1]
                env[k] = v.strip()
        log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    except OSError as e:
        log.warning(f"Failed reading .env: {e}")
    return env


def _lookup(dotenv_dir: str, key: str) -> Optional[str]:
    v = os.environ.get(key)
    if v is not None and v.strip():
        return v.strip()
    v = _read_dotenv(dotenv_dir).get(key)
    return v.strip() if v else None


def load_item_mode(dotenv_dir: str) -> ItemMode:
    raw = _lookup(dotenv_dir, "RECEIPT_ITEM_MODE")
    if not raw:
        return ItemMode.LINE
    try:
        return ItemMode.parse(raw)
    except ValueError:
        log.warning(f"Ignoring invalid RECEIPT_ITEM_MODE={raw!r}; using 'line'")
        return ItemMode.LINE


def load_fallback_policy(dotenv_dir: str) -> FallbackPolicy:
    """Return the total-fallback policy from env/.env with documented defaults."""
    tolerance = DEFAULT_FALLBACK_POLICY.tolerance
    prefer_larger = DEFAULT_FALLBACK_POLICY.prefer_larger

    raw_tol = _lookup(dotenv_dir, "RECEIPT_FALLBACK_TOLERANCE")
    if raw_tol:
        try:
            parsed = float(raw_tol)
            if parsed < 0:
                raise ValueError("negative tolerance")
            tolerance = parsed
        except ValueError:
            log.warning(f"Ignoring invalid RECEIPT_FALLBACK_TOLERANCE={raw_tol!r}")

    raw_pref = _lookup(dotenv_dir, "RECEIPT_FALLBACK_PREFER_LARGER")
    if raw_pref:
        lowered = raw_pref.lower()
        if lowered in _TRUE:
            prefer_larger = True
        elif lowered in _FALSE:
            prefer_larger = False
        else:
            log.warning(f"Ignoring invalid RECEIPT_FALLBACK_PREFER_LARGER={raw_pref!r}")

    return FallbackPolicy(tolerance=tolerance, prefer_larger=prefer_larger)


def load_api_bind(dotenv_dir: str) -> Tuple[str, int]:
    """Return (host, port) for the HTTP API with sensible defaults."""
    host = _lookup(dotenv_dir, "RECEIPT_API_HOST") or "127.0.0.1"
    port = 8001
    raw_port = _lookup(dotenv_dir, "RECEIPT_API_PORT")
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            log.warning(f"Ignoring invalid RECEIPT_API_PORT={raw_port!r}; using {port}")
    return host, port
