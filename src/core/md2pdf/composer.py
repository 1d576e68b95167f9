"""Markdown to styled HTML document composition."""

from __future__ import annotations

from functools import lru_cache

from markdown_it import MarkdownIt

from .models import ConversionOptions

STYLESHEET = """
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  line-height: 1.6;
  color: #333;
  max-width: none;
  margin: 0;
  padding: 20px;
}
h1, h2, h3, h4, h5, h6 {
  margin-top: 1.5em;
  margin-bottom: 0.5em;
  font-weight: 600;
}
h1 { font-size: 2em; border-bottom: 1px solid #eee; padding-bottom: 0.3em; }
h2 { font-size: 1.5em; }
h3 { font-size: 1.25em; }
code {
  background-color: #f6f8fa;
  padding: 0.2em 0.4em;
  border-radius: 3px;
  font-family: 'SFMono-Regular', Consolas, 'Liberation Mono', Menlo, monospace;
}
pre {
  background-color: #f6f8fa;
  padding: 16px;
  border-radius: 6px;
  overflow-x: auto;
}
pre code {
  background-color: transparent;
  padding: 0;
}
blockquote {
  border-left: 4px solid #dfe2e5;
  padding-left: 16px;
  margin-left: 0;
  color: #6a737d;
}
table {
  border-collapse: collapse;
  width: 100%;
  margin: 1em 0;
}
th, td {
  border: 1px solid #dfe2e5;
  padding: 8px 12px;
  text-align: left;
}
th {
  background-color: #f6f8fa;
  font-weight: 600;
}
img {
  max-width: 100%;
  height: auto;
}
a {
  color: #0366d6;
  text-decoration: none;
}
a:hover {
  text-decoration: underline;
}
""".strip()

PAGE_NUMBER_CSS = """
@page {
  @bottom-center {
    content: counter(page) " / " counter(pages);
  }
}
""".strip()


@lru_cache(maxsize=1)
def _markdown_parser() -> MarkdownIt:
    return MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])


def render_markdown(markdown: str) -> str:
    return _markdown_parser().render(markdown)


def build_stylesheet(include_page_numbers: bool) -> str:
    if include_page_numbers:
        return f"{STYLESHEET}\n{PAGE_NUMBER_CSS}"
    return STYLESHEET


def compose_html(sanitized_markdown: str, options: ConversionOptions) -> str:
    """Wrap rendered markdown in a complete document with the fixed stylesheet.

    Header and footer templates are left out on purpose: the engine places
    them outside the page content at print time.
    """

    body = render_markdown(sanitized_markdown)
    css = build_stylesheet(options.include_page_numbers)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<style>\n{css}\n</style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}"
        "</body>\n"
        "</html>\n"
    )


__all__ = ["PAGE_NUMBER_CSS", "STYLESHEET", "build_stylesheet", "compose_html", "render_markdown"]
