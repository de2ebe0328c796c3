"""pipeline.expansion

Variable expansion for configuration strings.

Two flavours are needed:

* :func:`expand_env` - the lenient expansion applied to every job field
  before the run starts. ``${VAR}`` and ``$VAR`` are replaced from the job
  environment; anything unknown or malformed is left exactly as written.
* :func:`expand` - the strict expansion service used for SYMROOT,
  CONFIGURATION_BUILD_DIR and the version templates. It also knows the
  ``XCODE_BUILD_NUMBER`` token once the version has been discovered, and it
  raises :class:`ExpansionError` instead of guessing. The orchestrator logs
  that error and carries on without a value.

Both are pure functions of ``(template, context)``.
"""

from __future__ import annotations

import re
from typing import Callable, Mapping

__all__ = ["ExpansionError", "Expander", "expand", "expand_env"]

_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_.]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

Expander = Callable[[str, Mapping[str, str]], str]


class ExpansionError(ValueError):
    """A template referenced an unknown variable or is malformed."""


def expand_env(template: str, env: Mapping[str, str]) -> str:
    if not template or "$" not in template:
        return template or ""

    def _sub(m: "re.Match[str]") -> str:
        name = m.group(1) or m.group(2)
        value = env.get(name)
        return m.group(0) if value is None else str(value)

    return _VAR_RE.sub(_sub, template)


def expand(template: str, context: Mapping[str, str]) -> str:
    if not template:
        return ""

    pos = 0
    out = []
    while True:
        i = template.find("$", pos)
        if i < 0:
            out.append(template[pos:])
            break
        out.append(template[pos:i])

        m = _VAR_RE.match(template, i)
        if m is None:
            if template.startswith("${", i):
                raise ExpansionError(f"Malformed variable reference at offset {i}: {template!r}")
            # A lone '$' is literal.
            out.append("$")
            pos = i + 1
            continue

        name = m.group(1) or m.group(2)
        if name not in context:
            raise ExpansionError(f"Unknown variable {name!r} in {template!r}")
        out.append(str(context[name]))
        pos = m.end()

    return "".join(out)
