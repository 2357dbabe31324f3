"""
htmlgloss Term Registry Builder
Compiles glossary term rows into ordered match rules
"""

import html
import re
import logging
from re import Pattern
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_BLOCKED_TAGS
from .models import LinkKind, MatchRule, NO_TARGET, RawTermEntry
from .store import DocumentLookup

logger = logging.getLogger(__name__)

# Character references are skipped so a term never matches inside "&amp;"
_ENTITY_SKIP = r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);"


def encode_entities(text: str) -> str:
    """Encode text the way it appears inside serialized markup"""
    return html.escape(text, quote=False)


def build_skip_pattern(blocked_tags: Sequence[str]) -> str:
    """
    Build the alternative that swallows markup which must not be matched

    Blocked elements are consumed together with their content, comments
    and every other tag are consumed on their own.

    Args:
        blocked_tags: Element names whose content is protected

    Returns:
        Regex source without any capturing group other than "skip"
    """
    names = sorted({tag.lower() for tag in blocked_tags}, key=len, reverse=True)
    parts = []
    if names:
        alternation = "|".join(re.escape(name) for name in names)
        parts.append(rf"<(?P<skip>{alternation})\b[^>]*>.*?</(?P=skip)\s*>")
    parts.append(r"<!--.*?-->")
    parts.append(r"<[^>]*>")
    return "|".join(parts)


def is_document_id(link: Union[str, int, None]) -> bool:
    """Numeric links reference documents by id"""
    if isinstance(link, bool) or link is None:
        return False
    if isinstance(link, int):
        return link > 0
    link = str(link).strip()
    return link.isdigit() and int(link) > 0


class TermRegistryBuilder:
    """
    Turns raw glossary rows into an ordered list of match rules
    """

    def __init__(self,
                 documents: Optional[DocumentLookup] = None,
                 css_class: str = "glossary",
                 blocked_tags: Optional[Sequence[str]] = None):
        """
        Initialize the builder

        Args:
            documents: Lookup used to resolve numeric links to document paths
            css_class: Class attribute of generated elements
            blocked_tags: Elements whose content patterns must skip
        """
        self.documents = documents
        self.css_class = css_class
        self.blocked_tags = list(blocked_tags if blocked_tags is not None else DEFAULT_BLOCKED_TAGS)
        self._skip_source = build_skip_pattern(self.blocked_tags)

    def build(self, entries: Iterable[RawTermEntry]) -> List[MatchRule]:
        """
        Build the registry for one locale/site

        Args:
            entries: Terms ordered by descending text length

        Returns:
            Rules in the same order as the input entries
        """
        rules = []

        for entry in self._expand_entities(entries):
            if not entry.has_replacement():
                logger.debug(f"Dropping glossary term without link or abbreviation: {entry.text!r}")
                continue

            try:
                pattern = self._build_pattern(entry)
            except re.error as e:
                logger.error(f"Skipping glossary term {entry.text!r}: invalid pattern ({e})")
                continue

            replacement, link_kind, link_target, href = self._build_replacement(entry)
            rules.append(MatchRule(
                text=entry.text,
                pattern=pattern,
                replacement=replacement,
                link_kind=link_kind,
                link_target=link_target,
                href=href,
            ))

        logger.info(f"Built glossary registry with {len(rules)} rules")
        return rules

    def _expand_entities(self, entries: Iterable[RawTermEntry]) -> List[RawTermEntry]:
        """Add an entity-encoded copy in front of every term that needs one"""
        expanded = []
        for entry in entries:
            encoded = encode_entities(entry.text)
            if encoded != entry.text:
                expanded.append(RawTermEntry(
                    text=encoded,
                    link=entry.link,
                    abbr=entry.abbr,
                    exact_match=entry.exact_match,
                    case_sensitive=entry.case_sensitive,
                    language=entry.language,
                    site=entry.site,
                ))
            expanded.append(entry)
        return expanded

    def _build_replacement(self, entry: RawTermEntry) -> Tuple[str, LinkKind, Union[str, int], str]:
        """
        Build the markup that replaces a match

        Returns:
            Tuple of (markup, link kind, link target, unescaped href)
        """
        css_class = html.escape(self.css_class, quote=True)
        markup = entry.text

        if entry.abbr:
            title = html.escape(str(entry.abbr), quote=True)
            markup = f'<abbr class="{css_class}" title="{title}">{markup}</abbr>'

        link_kind = LinkKind.NONE
        link_target = NO_TARGET
        href = ""

        if entry.link:
            href = str(entry.link).strip()
            link_kind = LinkKind.EXTERNAL
            link_target = href

            if is_document_id(entry.link) and self.documents is not None:
                document = self.documents.get_by_id(int(href))
                if document is not None:
                    href = document.full_path
                    link_kind = LinkKind.INTERNAL
                    link_target = document.id
                else:
                    logger.debug(f"Glossary link {href} does not resolve to a document")

            markup = f'<a class="{css_class}" href="{html.escape(href, quote=True)}">{markup}</a>'

        return markup, link_kind, link_target, href

    def _build_pattern(self, entry: RawTermEntry) -> Pattern:
        """Compile the match pattern for one term"""
        term = re.escape(entry.text)
        if entry.exact_match:
            term = rf"(?<!\w)(?P<term>{term})(?!\w)"
        else:
            term = rf"(?P<term>{term})"

        flags = re.DOTALL
        if not entry.case_sensitive:
            flags |= re.IGNORECASE

        return re.compile(f"{self._skip_source}|{term}|{_ENTITY_SKIP}", flags)
