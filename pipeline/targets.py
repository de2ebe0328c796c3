"""pipeline.targets

Turn the request's scheme/target knobs into ``xcodebuild`` arguments.

Checked in this order:

1. a scheme -> ``-scheme <scheme>``
2. no target but a project file -> ``-alltargets``
3. regex selector -> one ``-target <name>`` pair per discovered target the
   pattern matches (``re.search``), in discovery order
4. otherwise the target name literally (or nothing when it is empty)
"""

from __future__ import annotations

import logging
import re
from typing import List, Sequence

from xcode_build.domain import BuildRequest
from xcode_build.errors import TargetResolutionError

logger = logging.getLogger(__name__)


def match_targets(pattern: str, targets: Sequence[str]) -> List[str]:
    """Targets matching *pattern* anywhere in the name, in the given order."""
    try:
        rx = re.compile(pattern)
    except re.error as e:
        raise TargetResolutionError(f"Invalid target regex {pattern!r}: {e}")
    return [t for t in targets if rx.search(t)]


def resolve_target_args(request: BuildRequest, targets: Sequence[str]) -> List[str]:
    """Return the target-selection part of the build command."""
    if request.scheme:
        return ["-scheme", request.scheme]

    if not request.target and request.project_file:
        return ["-alltargets"]

    if request.interpret_target_as_regex:
        if not targets:
            raise TargetResolutionError(
                f"Cannot match target regex {request.target!r}: the project listing returned no targets."
            )
        matched = match_targets(request.target, targets)
        if not matched:
            raise TargetResolutionError(
                f"Target regex {request.target!r} matched none of: {', '.join(targets)}"
            )
        logger.info("Target regex %r matched: %s", request.target, ", ".join(matched))
        args: List[str] = []
        for name in matched:
            args += ["-target", name]
        return args

    if request.target:
        return ["-target", request.target]
    return []
