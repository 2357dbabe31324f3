"""
htmlgloss Content Scanner
Selects the elements of a parsed document whose text may be rewritten
"""

from typing import Iterable, List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .config import DEFAULT_BLOCKED_TAGS


class ContentScanner:
    """
    Finds text-bearing elements outside of protected markup
    """

    def __init__(self, blocked_tags: Optional[Iterable[str]] = None):
        self.blocked_tags = frozenset(
            tag.lower() for tag in (blocked_tags if blocked_tags is not None else DEFAULT_BLOCKED_TAGS)
        )

    def scan(self, soup: BeautifulSoup) -> List[Tag]:
        """
        Eligible elements in document order

        An element is eligible when it has non-blank direct text, is not a
        blocked element nor inside one, and its inner markup is not blank.
        The document root is checked first so text outside of any element
        is rewritten as well.
        """
        nodes = []
        for element in [soup, *soup.find_all(True)]:
            if self.is_blocked(element):
                continue
            if not self.has_direct_text(element):
                continue
            if not element.decode_contents().strip():
                continue
            nodes.append(element)
        return nodes

    def is_blocked(self, element: Tag) -> bool:
        if element.name in self.blocked_tags:
            return True
        return any(parent.name in self.blocked_tags for parent in element.parents)

    @staticmethod
    def has_direct_text(element: Tag) -> bool:
        # Comments, CDATA and doctypes are PreformattedString subclasses
        for child in element.children:
            if isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                if child.strip():
                    return True
        return False
