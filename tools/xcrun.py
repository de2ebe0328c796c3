"""tools/xcrun.py

``xcrun PackageApplication`` adapter: turns a built ``.app`` into an ``.ipa``.

``--sign`` is only passed when the caller asks for it; the alternative is that
the app was already signed by ``xcodebuild`` through ``CODE_SIGN_IDENTITY``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List


def package_application_command(
    xcrun: str,
    sdk: str,
    app: Path,
    ipa: Path,
    *,
    embedded_profile: str = "",
    sign_identity: str = "",
) -> List[str]:
    cmd = [xcrun, "-sdk", sdk, "PackageApplication", "-v", str(app), "-o", str(ipa)]
    if embedded_profile:
        cmd += ["--embed", embedded_profile]
    if sign_identity:
        cmd += ["--sign", sign_identity]
    return cmd
