"""
htmlgloss Term Store
YAML-backed glossary rows and document directory
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import yaml

from .models import Document, RawTermEntry

logger = logging.getLogger(__name__)

# Sample glossary used by the CLI self-test
SAMPLE_GLOSSARY_YAML = """
documents:
  1: /en
  12: /en/about
  27: /en/products/donec-vitae

terms:
  - text: Donec vitae
    link: 27
  - text: Donec
    link: https://en.wikipedia.org/wiki/Lorem_ipsum
  - text: HTML
    abbr: HyperText Markup Language
    exactmatch: true
    casesensitive: true
  - text: About us
    link: 12
    language: en
  - text: Über uns
    link: /de/ueber-uns
    language: de
  - text: lorem
    exactmatch: true
"""


class TermStore(Protocol):
    """Source of glossary rows"""

    def query(self, locale: str, site_id: Optional[Union[str, int]] = None) -> List[RawTermEntry]:
        """Rows for a locale/site, longest text first"""
        ...


class DocumentLookup(Protocol):
    """Resolves document ids used as glossary link targets"""

    def get_by_id(self, document_id: int) -> Optional[Document]:
        ...


class DocumentDirectory:
    """
    In-memory id -> path directory of documents
    """

    def __init__(self, documents: Optional[Dict[Any, str]] = None):
        self._documents: Dict[int, Document] = {}
        for document_id, full_path in (documents or {}).items():
            self.add(int(document_id), str(full_path))

    def add(self, document_id: int, full_path: str) -> Document:
        document = Document(id=document_id, full_path=full_path)
        self._documents[document_id] = document
        return document

    def get_by_id(self, document_id: int) -> Optional[Document]:
        return self._documents.get(document_id)

    def get_by_path(self, full_path: str) -> Optional[Document]:
        """Find a document by its full path, ignoring a trailing slash"""
        wanted = full_path.rstrip("/") or "/"
        for document in self._documents.values():
            if (document.full_path.rstrip("/") or "/") == wanted:
                return document
        return None

    def __len__(self) -> int:
        return len(self._documents)


def _matches(value: Any, wanted: Any) -> bool:
    """Empty values apply everywhere, others must match exactly"""
    if value is None or value == "":
        return True
    if wanted is None or wanted == "":
        return False
    return str(value) == str(wanted)


class YamlTermStore:
    """
    Glossary rows loaded from YAML

    Expected layout:

        documents:
          12: /en/about
        terms:
          - text: About us
            link: 12
            language: en
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """
        Initialize the store

        Args:
            data: Parsed YAML mapping with "terms" and optional "documents"
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("Glossary data must be a mapping with a 'terms' list")

        rows = data.get("terms") or []
        if not isinstance(rows, list):
            raise ValueError("'terms' must be a list of glossary rows")

        documents = data.get("documents") or {}
        if not isinstance(documents, dict):
            raise ValueError("'documents' must map document ids to paths")

        self.documents = DocumentDirectory(documents)
        self.entries: List[RawTermEntry] = []

        for row in rows:
            if not isinstance(row, dict):
                logger.warning(f"Skipping malformed glossary row: {row!r}")
                continue
            try:
                self.entries.append(RawTermEntry.from_row(row))
            except ValueError as e:
                logger.warning(f"Skipping glossary row: {e}")

        logger.info(f"Loaded {len(self.entries)} glossary terms and {len(self.documents)} documents")

    @classmethod
    def from_yaml(cls, text: str) -> 'YamlTermStore':
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid glossary YAML: {e}")
        return cls(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'YamlTermStore':
        """Load a glossary YAML file"""
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid glossary YAML in {path}: {e}")
        return cls(data)

    @classmethod
    def sample(cls) -> 'YamlTermStore':
        return cls.from_yaml(SAMPLE_GLOSSARY_YAML)

    def query(self, locale: str, site_id: Optional[Union[str, int]] = None) -> List[RawTermEntry]:
        """
        Rows for a locale and site

        Args:
            locale: Request locale; rows without a language always apply
            site_id: Current site; rows without a site always apply

        Returns:
            Matching rows ordered by descending text length
        """
        rows = [
            entry for entry in self.entries
            if _matches(entry.language, locale) and _matches(entry.site, site_id)
        ]
        # Stable sort keeps file order among equal lengths
        rows.sort(key=lambda entry: len(entry.text), reverse=True)
        return rows

    def get_by_id(self, document_id: int) -> Optional[Document]:
        return self.documents.get_by_id(document_id)

    def get_by_path(self, full_path: str) -> Optional[Document]:
        return self.documents.get_by_path(full_path)
