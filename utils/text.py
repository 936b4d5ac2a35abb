"""
Plain-text normalisation for RIF-CS descriptions

PROV descriptions arrive as lightly marked-up HTML (paragraphs, line breaks,
lists, emphasis). They are rendered to Markdown-flavoured plain text so the
JSON export stays readable while keeping the structure of the original.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

_WHITESPACE = re.compile(r'\s+')
_BLANK_RUNS = re.compile(r'\n{3,}')

BLOCK_TAGS = {'p', 'div', 'blockquote', 'section', 'article'}
EMPHASIS_TAGS = {'em': '_', 'i': '_', 'strong': '**', 'b': '**'}
HEADING_TAGS = {'h1': 1, 'h2': 2, 'h3': 3, 'h4': 4, 'h5': 5, 'h6': 6}


def _render_children(tag: Tag) -> str:
    return ''.join(_render(child) for child in tag.children)


def _render_list(tag: Tag) -> str:
    ordered = tag.name == 'ol'
    lines = []
    items = [child for child in tag.children if isinstance(child, Tag) and child.name == 'li']
    for index, item in enumerate(items, 1):
        marker = f'{index}. ' if ordered else '- '
        lines.append(marker + _render_children(item).strip())
    return '\n' + '\n'.join(lines) + '\n\n'


def _render(node) -> str:
    if isinstance(node, Comment):
        return ''
    if isinstance(node, NavigableString):
        return _WHITESPACE.sub(' ', str(node))
    if not isinstance(node, Tag):
        return ''

    name = node.name.lower()
    if name == 'br':
        return '\n'
    if name in ('ul', 'ol'):
        return _render_list(node)
    if name == 'li':
        # li outside a list
        return '\n- ' + _render_children(node).strip() + '\n'

    inner = _render_children(node)
    if name in BLOCK_TAGS:
        return '\n\n' + inner.strip(' ') + '\n\n'
    if name in HEADING_TAGS:
        return '\n\n' + '#' * HEADING_TAGS[name] + ' ' + inner.strip() + '\n\n'
    if name in EMPHASIS_TAGS:
        if not inner.strip():
            return inner
        mark = EMPHASIS_TAGS[name]
        # keep surrounding spaces outside the markers
        before = ' ' if inner[:1].isspace() else ''
        after = ' ' if inner[-1:].isspace() else ''
        return f'{before}{mark}{inner.strip()}{mark}{after}'
    return inner


def html_to_text(markup: str) -> str:
    """Render simple HTML to Markdown-flavoured text (no line cleanup)"""
    soup = BeautifulSoup(markup, 'html.parser')
    return _render_children(soup)


def normalize_description(markup: Optional[str]) -> Optional[str]:
    """
    Convert a description's markup to plain text

    Trailing whitespace is removed from every line (leading whitespace and
    line breaks are kept), runs of blank lines are collapsed to one and the
    trailing blank line is dropped.

    Args:
        markup: Raw description text, possibly containing HTML

    Returns:
        Normalised text, or None when no description was supplied
    """
    if markup is None:
        return None

    text = html_to_text(markup)
    text = '\n'.join(line.rstrip() for line in text.split('\n'))
    text = _BLANK_RUNS.sub('\n\n', text)
    # drop blank lines left by a leading block tag; leading spaces stay
    return text.lstrip('\n').rstrip('\n')
