"""
Shared fixtures for htmlgloss tests.
"""

import pytest

from htmlgloss.core.config import HtmlGlossConfig
from htmlgloss.core.models import PageContext
from htmlgloss.core.processor import GlossaryProcessor
from htmlgloss.core.store import YamlTermStore

ENV_VARS = [
    "HTMLGLOSS_CSS_CLASS",
    "HTMLGLOSS_LIMIT",
    "HTMLGLOSS_CACHE_BACKEND",
    "HTMLGLOSS_CACHE_DIR",
    "HTMLGLOSS_CACHE_TTL",
    "HTMLGLOSS_DEBUG",
]

DONEC_TERMS = [
    # Shorter term first on purpose, the store orders by length
    {"text": "Donec", "link": "/b"},
    {"text": "Donec vitae", "link": "/a"},
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config(clean_env):
    return HtmlGlossConfig()


@pytest.fixture
def make_store():
    def _make(terms, documents=None):
        return YamlTermStore({"terms": terms, "documents": documents or {}})
    return _make


@pytest.fixture
def make_processor(config, make_store):
    def _make(terms, documents=None, **kwargs):
        return GlossaryProcessor(make_store(terms, documents), config=config, **kwargs)
    return _make


@pytest.fixture
def en():
    return PageContext(locale="en", request_path="/en/blog")
