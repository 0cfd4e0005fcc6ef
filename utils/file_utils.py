"""
File Utilities Module
Common file operations and path handling functions.
"""

import json
import secrets
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional

def normalize_path(path: str | Path) -> Path:
    """Convert string path to normalized Path object."""
    return Path(path).resolve()

def ensure_directory(directory: Path) -> None:
    """Ensure directory exists, create if necessary."""
    directory.mkdir(parents=True, exist_ok=True)

def file_exists(path: Optional[str | Path]) -> bool:
    """True if ``path`` is set and points at an existing file."""
    if not path:
        return False
    return Path(path).is_file()

def make_output_dir(out_dir: Optional[str | Path] = None, prefix: str = 'heart-qa') -> Path:
    """
    Resolve (and create) the directory screenshots are written to.

    Args:
        out_dir: Explicit directory; created if missing
        prefix: Name prefix for the generated temp directory

    Returns:
        The explicit directory, or a fresh ``<tmp>/<prefix>-<ms>-<hex>`` directory
    """
    if out_dir:
        directory = normalize_path(out_dir)
    else:
        stamp = int(time.time() * 1000)
        directory = Path(tempfile.gettempdir()) / f"{prefix}-{stamp}-{secrets.token_hex(6)}"
    ensure_directory(directory)
    return directory

def write_json(data: Dict[str, Any], output_path: str | Path) -> Path:
    """Write ``data`` as indented UTF-8 JSON and return the path."""
    path = Path(output_path)
    ensure_directory(path.parent)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
        f.write('\n')
    return path
