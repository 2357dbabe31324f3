"""
htmlgloss Glossary Processor
Replaces glossary terms in HTML content with links and abbreviations
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from .cache import FileCacheStore, InMemoryCacheStore, RegistryCache
from .config import HtmlGlossConfig, default_config
from .engine import SubstitutionEngine, effective_rules
from .models import MatchRule, PageContext
from .registry import TermRegistryBuilder
from .scanner import ContentScanner
from .store import DocumentLookup, TermStore

logger = logging.getLogger(__name__)


class GlossaryProcessor:
    """
    Glossary substitution for rendered pages

    Combines the registry builder, cache, scanner and engine. The
    registry for a (locale, site) pair is built once and reused.
    """

    def __init__(self,
                 store: TermStore,
                 documents: Optional[DocumentLookup] = None,
                 cache: Optional[RegistryCache] = None,
                 config: Optional[HtmlGlossConfig] = None,
                 context_provider: Optional[Callable[[], PageContext]] = None):
        """
        Initialize the processor

        Args:
            store: Source of glossary rows
            documents: Resolves numeric links, defaults to the store when it can
            cache: Registry cache, built from the cache config when omitted
            config: Configuration, defaults to the global configuration
            context_provider: Returns the context of the current request
        """
        self.store = store
        self.config = config or default_config
        if documents is None and hasattr(store, "get_by_id"):
            documents = store
        self.documents = documents
        self.cache = cache if cache is not None else self._create_cache()
        self.context_provider = context_provider

        self.builder = TermRegistryBuilder(
            documents=self.documents,
            css_class=self.config.markup.css_class,
            blocked_tags=self.config.markup.blocked_tags,
        )
        self.scanner = ContentScanner(self.config.markup.blocked_tags)

    def _create_cache(self) -> RegistryCache:
        cache_config = self.config.cache
        if cache_config.backend == "file":
            store = FileCacheStore(cache_config.cache_dir, default_ttl=cache_config.ttl)
        else:
            store = InMemoryCacheStore(default_ttl=cache_config.ttl)
        return RegistryCache(store=store, tags=cache_config.tags, ttl=cache_config.ttl)

    def _current_context(self, context: Optional[PageContext]) -> PageContext:
        if context is not None:
            return context
        if self.context_provider is not None:
            return self.context_provider()
        return PageContext()

    def get_registry(self, context: Optional[PageContext] = None) -> List[MatchRule]:
        """
        Rules for the locale and site of a context

        Returns an empty list when the locale is unresolved.
        """
        context = self._current_context(context)
        if not context.locale:
            return []

        def build():
            entries = self.store.query(context.locale, context.site_id)
            return self.builder.build(entries)

        return self.cache.get_or_build(context.cache_key, build)

    def process(self,
                content: str,
                options: Optional[Dict[str, Any]] = None,
                context: Optional[PageContext] = None) -> str:
        """
        Process glossary entries in content string

        Args:
            content: HTML document or fragment
            options: {"limit": int}; negative limit means unlimited
            context: Request context, defaults to the context provider

        Returns:
            Processed HTML, or the content itself when nothing applies
        """
        context = self._current_context(context)

        rules = self.get_registry(context)
        if not rules:
            return content

        options = {"limit": self.config.processing.default_limit, **(options or {})}

        if context.editmode:
            return content

        engine = SubstitutionEngine(
            effective_rules(rules, context),
            limit=int(options["limit"]),
            parser=self.config.processing.parser,
        )

        soup = BeautifulSoup(content, engine.parser)
        try:
            nodes = self.scanner.scan(soup)
            changed = engine.apply(soup, nodes)
            logger.debug(f"Glossary rewrote {changed} of {len(nodes)} elements")

            # Untouched documents are returned verbatim, not re-serialized
            result = str(soup) if changed else content
        finally:
            soup.decompose()

        return result

    def clear_cache(self) -> int:
        """Forget built registries so edited terms take effect"""
        return self.cache.clear()
