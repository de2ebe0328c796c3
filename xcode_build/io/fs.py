"""xcode_build.io.fs

Filesystem helpers shared by the pipeline.

Why this module exists
----------------------
Several stages touch the build tree: cleaning the build directory and the
test reports, preparing the ``Payload`` scratch directory, listing ``*.app``
bundles, writing manifests and metadata. Keeping those operations here means
"delete recursively, ignoring absence" and "write atomically" behave the same
everywhere.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, List


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write *text* to a sibling temp file, then ``os.replace`` it into place.

    Text is written byte-for-byte (no newline translation); manifests are
    fixed templates.
    """
    p = Path(path)
    ensure_dir(p.parent)
    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp, p)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: Any) -> None:
    """Stable JSON (sorted keys, two-space indent, trailing newline)."""
    text = json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
    write_text_atomic(path, text)


def delete_recursive(path: Path) -> None:
    """Delete a file or directory tree; a missing path is not an error."""
    p = Path(path)
    if p.is_symlink() or p.is_file():
        p.unlink()
    elif p.is_dir():
        shutil.rmtree(p)


def ensure_dir(path: Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def list_app_bundles(build_dir: Path) -> List[Path]:
    """Return the ``*.app`` entries directly under *build_dir*, sorted by name.

    Raises ``OSError`` when the directory cannot be read; an empty list means
    the directory was readable but held no bundles.
    """
    entries = os.listdir(str(build_dir))
    return sorted(Path(build_dir) / name for name in entries if name.endswith(".app"))
