from __future__ import annotations

import html

from markdown_it import MarkdownIt
from mdit_py_plugins.texmath import texmath_plugin

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{body}</body>
</html>
"""


def build_markdown_it() -> MarkdownIt:
    # commonmark keeps raw HTML, which the rendered tables and underlines rely on.
    return MarkdownIt("commonmark").use(texmath_plugin).enable(["table", "strikethrough"])


def render_body(markdown: str) -> str:
    return build_markdown_it().render(markdown)


def render_html(markdown: str, title: str = "") -> str:
    """Wrap the rendered Markdown into a standalone HTML page for previewing."""
    return PAGE_TEMPLATE.format(title=html.escape(title), body=render_body(markdown))
