"""xcode_build

Core package for the Xcode build pipeline.

Why this exists
---------------
The executable surface of this repository lives in top-level packages
(``tools`` wraps the Apple command line tools, ``pipeline`` sequences them,
``cli`` is the front door). Those layers need to agree on a small set of
shared contracts:

* domain types (build requests, keychains, versions, outcomes, artifacts)
* the error taxonomy every fatal pipeline condition is expressed in
* filesystem helpers (atomic writes, recursive cleanup, bundle discovery)

Keeping them here lets ``tools`` and ``pipeline`` depend on one stable core
without depending on each other in both directions.
"""

from __future__ import annotations
