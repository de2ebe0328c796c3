"""xcode_build.io

Filesystem helpers.

Design principle
----------------
The build tree is shared with tools we do not control (``xcodebuild`` writes
into it, ``xcrun`` reads ``Payload`` from it). Every write or delete the
pipeline performs goes through this module.
"""

from __future__ import annotations

from .fs import (
    delete_recursive,
    ensure_dir,
    list_app_bundles,
    write_json_atomic,
    write_text_atomic,
)

__all__ = [
    "delete_recursive",
    "ensure_dir",
    "list_app_bundles",
    "write_json_atomic",
    "write_text_atomic",
]
