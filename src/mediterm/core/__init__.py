"""Core package for MediTerm.

Settings, the error taxonomy, the term dictionary, and the Pydantic
contracts shared by the text utilities and the translation pipeline:
    from mediterm.core.settings import settings, load_settings, Settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
