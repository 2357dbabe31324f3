"""
htmlgloss Substitution Engine
Applies glossary rules to eligible elements and rewrites them in place
"""

import logging
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import Tag

from .config import FRAGMENT_PARSERS
from .models import LinkKind, MatchRule, PageContext

logger = logging.getLogger(__name__)


def _normalize_path(value) -> str:
    return str(value).rstrip(" /")


def is_self_link(rule: MatchRule, context: PageContext) -> bool:
    """
    Whether a rule would link the current page to itself

    Checks the document id for internal links, then the document path and
    the request path against the rule's link target and resolved href.
    """
    targets = {_normalize_path(rule.link_target), _normalize_path(rule.href)}
    targets.discard("")
    if not targets:
        return False

    document = context.document
    if document is not None:
        if rule.link_kind == LinkKind.INTERNAL and str(document.id) == str(rule.link_target):
            return True
        if _normalize_path(document.full_path) in targets:
            return True

    if context.request_path and _normalize_path(context.request_path) in targets:
        return True

    return False


def effective_rules(rules: Sequence[MatchRule], context: PageContext) -> List[MatchRule]:
    """Rules left after removing links to the page being rendered"""
    return [rule for rule in rules if not is_self_link(rule, context)]


class SubstitutionEngine:
    """
    Rewrites element markup with the effective rule set of one document

    A negative limit applies every rule everywhere. A limit of zero or more
    caps the replacements of each rule across the whole document.
    """

    def __init__(self, rules: Sequence[MatchRule], limit: int = -1, parser: str = "html.parser"):
        if parser not in FRAGMENT_PARSERS:
            raise ValueError(f"Unsupported parser: {parser}")
        self.rules = list(rules)
        self.limit = limit
        self.parser = parser
        # Remaining replacements per rule, shared by every node of the document
        self.budget: Optional[List[int]] = [limit] * len(self.rules) if limit >= 0 else None

    def substitute(self, markup: str) -> str:
        """Apply the rules to one markup string, updating the budget"""
        if self.budget is None:
            for rule in self.rules:
                markup, _ = rule.substitute(markup)
            return markup

        for index, rule in enumerate(self.rules):
            remaining = self.budget[index]
            if remaining <= 0:
                continue
            markup, count = rule.substitute(markup, budget=remaining)
            self.budget[index] -= count

        return markup

    def apply(self, soup: BeautifulSoup, nodes: Sequence[Tag]) -> int:
        """
        Rewrite eligible nodes of a parsed document

        Args:
            soup: Document the nodes belong to
            nodes: Eligible nodes in document order

        Returns:
            Number of rewritten nodes
        """
        changed = 0
        for node in nodes:
            # Descendants of a rewritten node were already handled with it
            if node is not soup and not any(parent is soup for parent in node.parents):
                continue

            original = node.decode_contents()
            text = self.substitute(original)
            if text == original:
                continue

            if self._replace_contents(node, text):
                changed += 1

        return changed

    def _replace_contents(self, node: Tag, markup: str) -> bool:
        """Swap the children of a node for a parsed fragment"""
        try:
            fragment = BeautifulSoup(markup, self.parser)
        except ParserRejectedMarkup as e:
            logger.warning(f"Leaving <{node.name}> unchanged, replacement markup rejected: {e}")
            return False

        try:
            # Old children are only detached, later nodes may still point at them
            node.clear()
            node.extend(list(fragment.contents))
        finally:
            fragment.decompose()

        return True
