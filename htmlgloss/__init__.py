"""
htmlgloss
Glossary term linking and abbreviation markup for HTML content
"""

from .core import (
    Document,
    GlossaryProcessor,
    PageContext,
    RawTermEntry,
    YamlTermStore,
)

__version__ = "1.0.0"
