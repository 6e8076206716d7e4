from __future__ import annotations

"""Modules responsible for generating MJML markup and other outputs."""

from .mjml_builder import build_mjml, escape_attribute_value  # noqa: F401

__all__: list[str] = [
    "build_mjml",
    "escape_attribute_value",
]
