"""
core/markdown.py -- Markdown to sanitized HTML for user-authored post bodies.

Two passes, always in this order:
  1. markdown-it-py renders CommonMark to HTML. The commonmark preset passes
     raw HTML blocks and inline HTML straight through, so the output of this
     step can contain anything the author typed.
  2. bleach.clean() filters that output against an allow-list. Script-capable
     markup (script/style/iframe tags, on* attributes, javascript: URLs) never
     survives; disallowed tags are stripped and their text kept as escaped
     text.

Only post content goes through here. Titles and usernames are rendered as
plain text by Jinja2 autoescape.
"""

from __future__ import annotations

import bleach
from markdown_it import MarkdownIt
from markupsafe import Markup

_md = MarkdownIt("commonmark")

_ALLOWED_TAGS = frozenset(
    {
        "a", "abbr", "b", "blockquote", "br", "code", "del", "em", "h1", "h2",
        "h3", "h4", "h5", "h6", "hr", "i", "li", "ol", "p", "pre", "s",
        "strong", "sub", "sup", "table", "tbody", "td", "th", "thead", "tr", "ul",
    }
)  # fmt: skip
_ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
    "abbr": ["title"],
    "ol": ["start"],
    "td": ["align"],
    "th": ["align"],
}
_ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})


def render_markdown(text: str) -> Markup:
    """Render markdown text to HTML that is safe to embed in a page."""
    html = _md.render(text or "")
    cleaned = bleach.clean(
        html,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRIBUTES,
        protocols=_ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
    return Markup(cleaned)
