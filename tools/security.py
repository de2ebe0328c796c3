"""tools/security.py

``/usr/bin/security`` adapter: keychain search list, default keychain,
unlocking, and the signing-identity diagnostics.

Why this exists
---------------
Signing fails late and confusingly when the keychain holding the certificate
is locked or not searchable. :class:`CredentialUnlocker` front-loads that: it
runs before the build and any failure aborts the run, so an unsignable build
never starts.

The keychain password is passed as a command argument and is masked in every
command line this module logs or puts into an exception.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from tools.core_cmd import CommandRunner, format_command
from xcode_build.domain import Keychain
from xcode_build.errors import ToolInvocationError

logger = logging.getLogger(__name__)


def list_keychains_command(security: str, paths: Sequence[str]) -> List[str]:
    return [security, "list-keychains", "-s", *paths]


def default_keychain_command(security: str, path: str) -> List[str]:
    return [security, "default-keychain", "-d", "user", "-s", path]


def unlock_keychain_command(security: str, keychain: Keychain) -> List[str]:
    if keychain.password:
        return [security, "unlock-keychain", "-p", keychain.password, keychain.path]
    return [security, "unlock-keychain", keychain.path]


# Index of the password in unlock_keychain_command(...).
_PASSWORD_INDEX = 3


class CredentialUnlocker:
    """Make one keychain the searchable default keychain and unlock it."""

    def __init__(self, runner: CommandRunner, security: str) -> None:
        self.runner = runner
        self.security = security

    def unlock(
        self,
        keychain: Keychain,
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> None:
        """Run the unlock sequence; raises :class:`ToolInvocationError` on any failure."""
        self._step(list_keychains_command(self.security, [keychain.path]), "set the keychain search list", env, cwd)
        self._step(default_keychain_command(self.security, keychain.path), "set the default keychain", env, cwd)

        unlock = unlock_keychain_command(self.security, keychain)
        masks = (_PASSWORD_INDEX,) if keychain.password else ()
        self._step(unlock, "unlock the keychain", env, cwd, masks=masks)

        # Reading the info once after unlocking keeps OS X from prompting for
        # the password later in the build; the output itself is not used.
        self._step(
            [self.security, "show-keychain-info", keychain.path],
            "read keychain info",
            env,
            cwd,
            discard_output=True,
        )

    def _step(
        self,
        cmd: List[str],
        what: str,
        env: Optional[Mapping[str, str]],
        cwd: Optional[Path],
        *,
        masks: Iterable[int] = (),
        discard_output: bool = False,
    ) -> None:
        masks = tuple(masks)
        sink = (lambda _line: None) if discard_output else None
        code = self.runner.run(cmd, env=env, cwd=cwd, stdout_sink=sink, masks=masks)
        if code != 0:
            shown = format_command(cmd, masks)
            raise ToolInvocationError(
                f"Failed to {what} (exit code {code}): {shown}",
                command=shown,
                exit_code=code,
            )


def restore_keychains(
    runner: CommandRunner,
    security: str,
    keychains: Sequence[Keychain],
    default_keychain: str = "",
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    """Re-apply the configured keychain search list and default keychain.

    Returns the exit code of the last command run; a non-zero value means the
    run should be marked unstable, not failed.
    """
    searchable = [k for k in keychains if k.in_search_path and k.path]
    default = None
    if default_keychain:
        default = next((k for k in searchable if k.name == default_keychain), None)

    code = runner.run(list_keychains_command(security, [k.path for k in searchable]), env=env, cwd=cwd)
    if code == 0 and default is not None:
        code = runner.run(default_keychain_command(security, default.path), env=env, cwd=cwd)

    if code != 0:
        logger.warning("Restoring keychains failed with exit code %d", code)
    return code


def show_signing_identities(
    runner: CommandRunner,
    security: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([security, "find-identity", "-p", "codesigning", "-v"], env=env, cwd=cwd)


def show_certificate(
    runner: CommandRunner,
    security: str,
    identity: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([security, "find-certificate", "-a", "-c", identity, "-Z"], env=env, cwd=cwd)
