"""
htmlgloss Data Models
Typed records for glossary terms, compiled match rules and page context
"""

from dataclasses import dataclass
from enum import Enum
from re import Pattern
from typing import Any, Dict, Optional, Tuple, Union

# Marks a rule as having no link target (abbreviation only)
NO_TARGET = ""


def _truthy(value: Any) -> bool:
    """Interpret database-style flags ("1", "0", "", None, bools)"""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LinkKind(str, Enum):
    """Where a rule's hyperlink points to"""
    NONE = "none"
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class RawTermEntry:
    """A glossary term as stored, before it is compiled into a rule"""
    text: str
    link: Optional[Union[str, int]] = None
    abbr: Optional[str] = None
    exact_match: bool = False
    case_sensitive: bool = False
    language: Optional[str] = None
    site: Optional[Union[str, int]] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'RawTermEntry':
        """
        Build an entry from a store row

        Args:
            row: Mapping with at least a "text" key. Both "exact_match" and
                the column spelling "exactmatch" are accepted (same for
                case sensitivity).

        Returns:
            RawTermEntry
        """
        text = row.get("text")
        if text is None or not str(text):
            raise ValueError(f"Glossary row without text: {row!r}")

        exact = row.get("exact_match", row.get("exactmatch", False))
        case = row.get("case_sensitive", row.get("casesensitive", False))

        return cls(
            text=str(text),
            link=_blank_to_none(row.get("link")),
            abbr=_blank_to_none(row.get("abbr")),
            exact_match=_truthy(exact),
            case_sensitive=_truthy(case),
            language=_blank_to_none(row.get("language")),
            site=_blank_to_none(row.get("site")),
        )

    def has_replacement(self) -> bool:
        """Entries with neither link nor abbreviation produce no markup"""
        return bool(self.link) or bool(self.abbr)


@dataclass(frozen=True)
class MatchRule:
    """Compiled match-and-replace unit derived from one RawTermEntry"""
    text: str
    pattern: Pattern
    replacement: str
    link_kind: LinkKind = LinkKind.NONE
    link_target: Union[str, int] = NO_TARGET
    href: str = ""

    def substitute(self, markup: str, budget: int = -1) -> Tuple[str, int]:
        """
        Replace occurrences of the term in a markup string

        Matches of the skip alternative (tags, comments and blocked
        elements with their content) are written back unchanged and do
        not count as replacements.

        Args:
            markup: Inner markup of an element
            budget: Maximum number of replacements, negative for unlimited

        Returns:
            Tuple of (new markup, number of replacements made)
        """
        count = 0

        def _replace(match):
            nonlocal count
            if match.group("term") is None:
                return match.group(0)
            if 0 <= budget <= count:
                return match.group(0)
            count += 1
            return self.replacement

        result = self.pattern.sub(_replace, markup)
        return result, count


@dataclass(frozen=True)
class Document:
    """A page that glossary links can point to"""
    id: int
    full_path: str


@dataclass
class PageContext:
    """
    Request-level information used while processing content

    locale: current request locale, None when unresolved
    request_path: path of the current request
    editmode: True while content is being edited or previewed
    document: the document being rendered, if any
    site_id: current site, None outside of site requests
    """
    locale: Optional[str] = None
    request_path: str = ""
    editmode: bool = False
    document: Optional[Document] = None
    site_id: Optional[Union[str, int]] = None

    @property
    def cache_key(self) -> str:
        site = "" if self.site_id is None else str(self.site_id)
        return f"glossary_{self.locale}_{site}"
