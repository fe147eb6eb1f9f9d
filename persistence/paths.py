from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

from settings import get_settings


def project_root() -> Path:
    # persistence/paths.py -> persistence -> project root
    return Path(__file__).resolve().parents[1]


def data_dir() -> Path:
    configured = get_settings().data_dir
    base = Path(configured) if configured else project_root() / "data"
    return ensure_dir(base)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def local_store_path(address: str) -> Path:
    """
    Map a local store address to the JSON file backing it.

    - ``file:///abs/path/db.json`` -> that path
    - ``some/dir/db.json`` or any value with a separator or suffix -> that path
    - ``documents`` (a bare name) -> ``<data dir>/documents.json``
    """
    if address.startswith("file://"):
        return Path(unquote(urlparse(address).path))
    candidate = Path(address)
    if candidate.suffix or len(candidate.parts) > 1:
        return candidate
    return data_dir() / f"{address}.json"
