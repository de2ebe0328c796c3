"""xcode_build.errors

Error taxonomy for the build pipeline.

Every fatal condition the pipeline can hit maps to exactly one exception type,
so callers (and tests) can tell a configuration mistake from a broken build
without parsing message strings.

Best-effort misses (version discovery returning nothing, diagnostics commands
failing, variable expansion failing) are *not* represented here: they are
logged and the pipeline substitutes a safe default.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from xcode_build.domain.build import BuildOutcome


class PipelineError(Exception):
    """Base class for every fatal pipeline condition."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ConfigurationError(PipelineError):
    """Missing tool paths, missing keychain configuration, malformed files."""


class ToolInvocationError(PipelineError):
    """A required subprocess step exited non-zero."""

    def __init__(self, reason: str, *, command: str = "", exit_code: Optional[int] = None) -> None:
        super().__init__(reason)
        # Already masked by tools.core_cmd.format_command.
        self.command = command
        self.exit_code = exit_code


class BuildFailure(PipelineError):
    """The build step failed and failing build results are not allowed."""

    def __init__(self, reason: str, *, outcome: "BuildOutcome") -> None:
        super().__init__(reason)
        self.outcome = outcome


class TargetResolutionError(PipelineError):
    """A regex target selector could not be resolved against the project."""


class PackagingError(PipelineError):
    """Base class for packaging preconditions that do not hold."""


class MissingBuildDirectoryError(PackagingError):
    pass


class BuildDirectoryListingError(PackagingError):
    pass


class NoApplicationsFoundError(PackagingError):
    pass


class MissingVersionError(PackagingError):
    pass
