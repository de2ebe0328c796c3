from __future__ import annotations

from typing import Mapping

from pipeline.config import ToolConfig
from pipeline.keychains import restore_configured_keychains
from tools.core_cmd import CommandRunner

# Exit status for "finished, but the run should be marked unstable".
UNSTABLE_EXIT_CODE = 2


def run_restore_keychains(
    config: ToolConfig,
    runner: CommandRunner,
    *,
    env: Mapping[str, str],
) -> int:
    names = ", ".join(k.name for k in config.keychains if k.in_search_path) or "(none)"
    print("\n🔑 Restoring keychain search list")
    print(f"  Keychains : {names}")
    if config.default_keychain:
        print(f"  Default   : {config.default_keychain}")

    if restore_configured_keychains(runner, config, env=env):
        print("\n✅ Keychains restored.")
        return 0
    print("\n⚠️ Restoring keychains failed; marking the run unstable.")
    return UNSTABLE_EXIT_CODE
