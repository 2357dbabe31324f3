"""
Tests for htmlgloss.core.engine module.
"""

import pytest
from bs4 import BeautifulSoup

from htmlgloss.core.engine import SubstitutionEngine, effective_rules, is_self_link
from htmlgloss.core.models import Document, LinkKind, PageContext, RawTermEntry
from htmlgloss.core.registry import TermRegistryBuilder
from htmlgloss.core.scanner import ContentScanner
from htmlgloss.core.store import DocumentDirectory


def build(*entries):
    builder = TermRegistryBuilder(documents=DocumentDirectory({27: "/en/donec", 12: "/en/about/"}))
    return builder.build(entries)


class TestSelfLinkExclusion:

    def test_internal_rule_on_its_document(self):
        rule, = build(RawTermEntry("Donec", link=27))
        assert rule.link_kind == LinkKind.INTERNAL
        assert is_self_link(rule, PageContext(document=Document(id=27, full_path="/other")))
        assert not is_self_link(rule, PageContext(document=Document(id=28, full_path="/other")))

    def test_document_path_normalized(self):
        rule, = build(RawTermEntry("About", link=12))
        assert is_self_link(rule, PageContext(document=Document(id=5, full_path="/en/about")))

    def test_request_path(self):
        rule, = build(RawTermEntry("Example", link="https://example.org/ "))
        assert is_self_link(rule, PageContext(request_path="https://example.org"))
        assert not is_self_link(rule, PageContext(request_path="/en"))

    def test_empty_request_path_never_matches(self):
        rule, = build(RawTermEntry("HTML", abbr="markup"))
        assert not is_self_link(rule, PageContext(request_path="", document=Document(id=1, full_path="")))

    def test_effective_rules_keeps_order(self):
        rules = build(
            RawTermEntry("Donec vitae", link="/a"),
            RawTermEntry("Donec", link=27),
            RawTermEntry("Lorem", link="/c"),
        )
        context = PageContext(document=Document(id=27, full_path="/en/donec"))
        assert [rule.text for rule in effective_rules(rules, context)] == ["Donec vitae", "Lorem"]


class TestSubstitutionEngine:

    def test_unlimited_rules_compound(self):
        rules = build(RawTermEntry("Donec vitae", link="/a"), RawTermEntry("Donec", link="/b"))
        engine = SubstitutionEngine(rules)
        assert engine.budget is None
        assert engine.substitute("Donec vitae, Donec") == (
            '<a class="glossary" href="/a">Donec vitae</a>, <a class="glossary" href="/b">Donec</a>'
        )

    def test_budget_shared_between_calls(self):
        rules = build(RawTermEntry("Donec", link="/b"))
        engine = SubstitutionEngine(rules, limit=2)

        assert engine.substitute("Donec").count("<a") == 1
        assert engine.budget == [1]
        assert engine.substitute("Donec Donec").count("<a") == 1
        assert engine.budget == [0]
        assert engine.substitute("Donec") == "Donec"

    def test_apply_rewrites_in_place(self):
        rules = build(RawTermEntry("Donec", link="/b"))
        soup = BeautifulSoup('<div id="x"><p class="c">Donec</p><p>none</p></div>', "html.parser")
        paragraph = soup.find("p")

        changed = SubstitutionEngine(rules).apply(soup, ContentScanner().scan(soup))

        assert changed == 1
        assert soup.find("p") is paragraph
        assert paragraph["class"] == ["c"]
        assert str(soup) == '<div id="x"><p class="c"><a class="glossary" href="/b">Donec</a></p><p>none</p></div>'

    def test_detached_nodes_skipped(self):
        rules = build(RawTermEntry("Donec", link="/b"))
        soup = BeautifulSoup("<div>Donec <span>Donec</span></div>", "html.parser")
        nodes = ContentScanner().scan(soup)

        engine = SubstitutionEngine(rules, limit=5)
        changed = engine.apply(soup, nodes)

        assert changed == 1
        assert engine.budget == [3]
        assert str(soup).count("<a") == 2

    def test_apply_rewrites_document_root(self):
        rules = build(RawTermEntry("Donec", link="/b"))
        soup = BeautifulSoup("Donec <b>Donec</b>", "html.parser")

        changed = SubstitutionEngine(rules).apply(soup, ContentScanner().scan(soup))

        assert changed == 1
        assert str(soup) == '<a class="glossary" href="/b">Donec</a> <b><a class="glossary" href="/b">Donec</a></b>'

    def test_parser_must_keep_fragments_unwrapped(self):
        with pytest.raises(ValueError):
            SubstitutionEngine([], parser="lxml")
