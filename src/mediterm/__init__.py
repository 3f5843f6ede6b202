"""MediTerm: term-aware chunked translation for medical documents.

The top-level package only carries the version string; the public entry
points live in :mod:`mediterm.pipelines` (``translate``) and
:mod:`mediterm.text` (``segment``, ``estimate_tokens``).
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
