"""Prompt templates for the reasoning loop, stored as .txt files under templates/."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Raw template text for ``name`` (file name without extension).

    Placeholders use str.format syntax; literal braces are doubled.
    """
    path = TEMPLATES_DIR / f"{name}.txt"
    if not path.is_file():
        available = ", ".join(sorted(p.stem for p in TEMPLATES_DIR.glob("*.txt")))
        raise FileNotFoundError(f"No prompt template '{name}' (available: {available})")
    logger.debug("Loaded prompt template %s", path)
    return path.read_text(encoding="utf-8").strip()


def render_prompt(name: str, **kwargs: str) -> str:
    """Fill a template's placeholders. Raises KeyError for a missing variable."""
    return load_prompt(name).format(**kwargs)
