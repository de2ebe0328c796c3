"""xcode_build.domain.keychain

Keychain records as read from the tool configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping


@dataclass(frozen=True)
class Keychain:
    """One OS X keychain holding signing certificates.

    ``password`` is a secret: it is excluded from ``repr()`` and from
    :meth:`to_dict` so it can never end up in logs or metadata files.
    An empty password means the keychain has no password (or is already
    unlocked).
    """

    name: str
    path: str
    password: str = field(default="", repr=False)
    in_search_path: bool = False

    @classmethod
    def ad_hoc(cls, path: str, password: str = "") -> "Keychain":
        """Inline keychain given by path (and password) instead of by name."""
        return cls(name="", path=path, password=password or "", in_search_path=False)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Keychain":
        return cls(
            name=str(d.get("name") or ""),
            path=str(d.get("path") or ""),
            password=str(d.get("password") or ""),
            in_search_path=bool(d.get("in_search_path", False)),
        )

    def expanded(self, expand: Callable[[str], str]) -> "Keychain":
        return replace(self, path=expand(self.path), password=expand(self.password))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "path": self.path, "in_search_path": self.in_search_path}
