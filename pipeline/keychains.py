"""pipeline.keychains

Pick the keychain a job asked for and put the configured keychains back
afterwards.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from pipeline.config import ToolConfig
from pipeline.expansion import expand_env
from tools.core_cmd import CommandRunner
from tools.security import restore_keychains
from xcode_build.domain import BuildRequest, Keychain


def resolve_keychain(request: BuildRequest, config: ToolConfig) -> Optional[Keychain]:
    """A configured keychain by name, else an ad-hoc one from the path, else None."""
    if request.keychain_name:
        found = config.find_keychain(request.keychain_name)
        if found is not None:
            return found
    if request.keychain_path:
        return Keychain.ad_hoc(request.keychain_path, request.keychain_password)
    return None


def restore_configured_keychains(
    runner: CommandRunner,
    config: ToolConfig,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> bool:
    """Re-apply the configured search list. Returns False when the run is unstable.

    Keychain paths are expanded against *env* (``${HOME}/...``) first.
    """
    env = env or {}
    keychains = tuple(k.expanded(lambda s: expand_env(s, env)) for k in config.keychains)
    code = restore_keychains(
        runner,
        config.security,
        keychains,
        config.default_keychain,
        env=env,
        cwd=cwd,
    )
    return code == 0
