"""tools/xcodebuild/list_parser.py

Parser for ``xcodebuild -list`` output.

Example input::

    Information about project "MyApp":
        Targets:
            MyApp
            MyAppTests

        Build Configurations:
            Debug
            Release

        If no build configuration is specified and -scheme is not passed then "Release" is used.

        Schemes:
            MyApp

Each section runs from its header to the next blank line. Order of appearance
is kept; duplicates are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

_SECTIONS = {
    "Targets:": "targets",
    "Build Configurations:": "configurations",
    "Schemes:": "schemes",
}


@dataclass(frozen=True)
class XcodeListing:
    targets: Tuple[str, ...] = ()
    configurations: Tuple[str, ...] = ()
    schemes: Tuple[str, ...] = ()


def _dedup(items: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def parse_list_output(text: str) -> XcodeListing:
    collected: Dict[str, List[str]] = {v: [] for v in _SECTIONS.values()}
    current = None

    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line:
            current = None
            continue
        if line in _SECTIONS:
            current = _SECTIONS[line]
            continue
        if current is not None:
            collected[current].append(line)

    return XcodeListing(
        targets=_dedup(collected["targets"]),
        configurations=_dedup(collected["configurations"]),
        schemes=_dedup(collected["schemes"]),
    )
