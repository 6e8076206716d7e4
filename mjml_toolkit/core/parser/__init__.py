"""MJML text parsing: preprocessing repairs and tree building."""

from .mjml_parser import MjmlParser, normalize_text_content, parse_mjml
from .preprocessor import collapse_duplicate_attributes, preprocess_mjml, repair_ampersands

__all__ = [
    "MjmlParser",
    "parse_mjml",
    "normalize_text_content",
    "preprocess_mjml",
    "repair_ampersands",
    "collapse_duplicate_attributes",
]
