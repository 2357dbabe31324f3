#!/usr/bin/env python3
"""
htmlgloss CLI Interface
Command-line interface for glossary processing of HTML files
"""

import sys
import argparse
import json
import re
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from htmlgloss.core.config import HtmlGlossConfig, default_config
from htmlgloss.core.models import Document, MatchRule, PageContext
from htmlgloss.core.processor import GlossaryProcessor
from htmlgloss.core.store import YamlTermStore

console = Console()

SELFTEST_HTML = """<div class="content">
<h1>Donec vitae</h1>
<p>Donec vitae amet, Donec est. Written in HTML, not html.</p>
<p>Lorem ipsum <a href="/elsewhere">Donec</a> and <code>Donec vitae</code>.</p>
<p>Donec again, lorem and loremipsum.</p>
</div>"""


def setup_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


class HtmlGlossCLI:
    """Command-line interface for the glossary processor"""

    def __init__(self, store: YamlTermStore, config: Optional[HtmlGlossConfig] = None):
        self.store = store
        self.config = config or default_config
        self.processor = GlossaryProcessor(store, config=self.config)

    def build_context(self,
                      locale: Optional[str],
                      site_id: Optional[str] = None,
                      path: str = "",
                      document_id: Optional[int] = None,
                      editmode: bool = False) -> PageContext:
        """Build the page context from command-line values"""
        document = None
        if document_id is not None:
            document = self.store.get_by_id(document_id)
            if document is None:
                console.print(f"⚠️  Unknown document id {document_id}, using it without a path", style="yellow")
                document = Document(id=document_id, full_path="")
        elif path:
            document = self.store.get_by_path(path)

        return PageContext(
            locale=locale,
            request_path=path,
            editmode=editmode,
            document=document,
            site_id=site_id,
        )

    def process_html(self, content: str, context: PageContext, limit: int) -> str:
        return self.processor.process(content, {"limit": limit}, context=context)

    def show_terms(self, context: PageContext):
        """Display the rules that apply to a context"""
        rules = self.processor.get_registry(context)
        if not rules:
            console.print(f"No glossary terms for locale {context.locale!r}", style="yellow")
            return

        table = Table(title=f"📖 Glossary ({context.locale}, site {context.site_id or '-'})")
        table.add_column("Term", style="green")
        table.add_column("Link", style="cyan")
        table.add_column("Target", style="yellow", overflow="fold")
        table.add_column("Replacement", style="blue", overflow="fold")

        for rule in rules:
            table.add_row(rule.text, rule.link_kind.value, str(rule.link_target), rule.replacement)

        console.print(table)

    def export_terms(self, context: PageContext, output_path: str, format: str = "json"):
        """Export the compiled rules of a context"""
        rows = [self._rule_to_dict(rule) for rule in self.processor.get_registry(context)]

        if format == "json":
            data = json.dumps(rows, indent=2, ensure_ascii=False)
        elif format == "yaml":
            data = yaml.dump(rows, default_flow_style=False, allow_unicode=True, sort_keys=False)
        else:
            raise ValueError(f"Unknown format: {format}")

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(data)

        console.print(f"✅ Exported {len(rows)} rules to {output_path}", style="green")

    @staticmethod
    def _rule_to_dict(rule: MatchRule) -> Dict[str, Any]:
        return {
            "text": rule.text,
            "pattern": rule.pattern.pattern,
            "case_sensitive": not (rule.pattern.flags & re.IGNORECASE),
            "replacement": rule.replacement,
            "link_kind": rule.link_kind.value,
            "link_target": rule.link_target,
            "href": rule.href,
        }

    def selftest(self) -> bool:
        """Process a sample page and check the basic guarantees"""
        console.print(Panel("🧪 Running Self-Test", style="bold magenta"))

        context = PageContext(locale="en", request_path="/en/blog")
        output = self.process_html(SELFTEST_HTML, context, limit=-1)
        console.print(Syntax(output, "html", word_wrap=True))

        linked = f'<a class="{self.config.markup.css_class}" href="/en/products/donec-vitae">'
        checks = [
            ("longest term linked first", f"{linked}Donec vitae</a>" in output),
            ("headings untouched", "<h1>Donec vitae</h1>" in output),
            ("code untouched", "<code>Donec vitae</code>" in output),
            ("no nested links", f"{linked}<a" not in output),
            ("case-sensitive abbreviation", output.count("<abbr") == 1),
        ]

        own_page = PageContext(locale="en", request_path="/en/products/donec-vitae/")
        own_output = self.process_html(SELFTEST_HTML, own_page, limit=-1)
        checks.append(("no self link", "/en/products/donec-vitae" not in own_output))

        limited = self.process_html(SELFTEST_HTML, context, limit=1)
        checks.append(("limit applies per document", limited.count("wiki/Lorem_ipsum") == 1))

        table = Table(title="Self-Test")
        table.add_column("Check", style="cyan")
        table.add_column("Result")
        for name, passed in checks:
            table.add_row(name, "[green]ok[/green]" if passed else "[red]FAILED[/red]")
        console.print(table)

        return all(passed for _, passed in checks)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="htmlgloss - Glossary links and abbreviations for HTML content",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process a page
  htmlgloss --terms glossary.yaml --locale en --input page.html --output out.html

  # One replacement per term, rendered as document 12
  htmlgloss --terms glossary.yaml --locale en --document-id 12 --limit 1 < page.html

  # Show the compiled terms of a site
  htmlgloss --terms glossary.yaml --locale de --site 2 --list-terms

  # Self-test with the bundled sample glossary
  htmlgloss --selftest
        """
    )

    parser.add_argument(
        "--terms", "-t",
        help="Glossary YAML file (terms and documents)"
    )

    parser.add_argument(
        "--config", "-c",
        help="Configuration YAML file"
    )

    parser.add_argument(
        "--input", "-i",
        help="HTML file to process (default: stdin)"
    )

    parser.add_argument(
        "--output", "-o",
        help="Write processed HTML to this file (default: stdout)"
    )

    parser.add_argument(
        "--locale", "-l",
        help="Locale of the rendered page"
    )

    parser.add_argument(
        "--site", "-s",
        help="Site id of the rendered page"
    )

    parser.add_argument(
        "--path", "-p",
        default="",
        help="Request path of the rendered page"
    )

    parser.add_argument(
        "--document-id", "-d",
        type=int,
        help="Id of the rendered document"
    )

    parser.add_argument(
        "--limit", "-n",
        type=int,
        help="Replacements per term and document (default: unlimited)"
    )

    parser.add_argument(
        "--editmode",
        action="store_true",
        help="Treat the page as being edited (no replacements)"
    )

    parser.add_argument(
        "--list-terms",
        action="store_true",
        help="Show the compiled glossary for the locale/site"
    )

    parser.add_argument(
        "--export", "-e",
        help="Export the compiled glossary to file (.json or .yaml)"
    )

    parser.add_argument(
        "--selftest",
        action="store_true",
        help="Run self-test with the sample glossary"
    )

    args = parser.parse_args(argv)

    try:
        config = HtmlGlossConfig.load_from_file(args.config) if args.config else default_config
    except ValueError as e:
        console.print(f"❌ {e}", style="red")
        return 2

    setup_logging(config.log_level)

    if args.selftest:
        cli = HtmlGlossCLI(YamlTermStore.sample(), config)
        if cli.selftest():
            console.print("\n✅ Self-test completed successfully!", style="green")
            return 0
        console.print("\n❌ Self-test failed", style="red")
        return 1

    if not args.terms:
        parser.error("--terms is required")

    try:
        store = YamlTermStore.from_file(args.terms)
    except (OSError, ValueError) as e:
        console.print(f"❌ Could not load glossary: {e}", style="red")
        return 2

    cli = HtmlGlossCLI(store, config)
    context = cli.build_context(
        args.locale,
        site_id=args.site,
        path=args.path,
        document_id=args.document_id,
        editmode=args.editmode,
    )

    if args.list_terms or args.export:
        if not args.locale:
            parser.error("--locale is required to list or export terms")
        if args.list_terms:
            cli.show_terms(context)
        if args.export:
            format = "yaml" if args.export.endswith(('.yaml', '.yml')) else "json"
            cli.export_terms(context, args.export, format)
        return 0

    if args.input:
        content = Path(args.input).read_text(encoding='utf-8')
    else:
        content = sys.stdin.read()

    limit = args.limit if args.limit is not None else config.processing.default_limit
    result = cli.process_html(content, context, limit)

    if args.output:
        Path(args.output).write_text(result, encoding='utf-8')
        console.print(f"✅ Wrote {args.output}", style="green")
    else:
        sys.stdout.write(result)

    return 0


if __name__ == "__main__":
    sys.exit(main())
