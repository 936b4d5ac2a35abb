"""
Namespace-aware XML helpers for OAI-PMH responses

Queries return None (or an empty list) instead of raising when nothing
matches, and accept None as the node so lookups can be chained against
optional structure.
"""

import logging
from typing import List, Optional

from lxml import etree

from .client import ResponseParseError

logger = logging.getLogger(__name__)

OAI_NAMESPACE = 'http://www.openarchives.org/OAI/2.0/'
RIF_NAMESPACE = 'http://ands.org.au/standards/rif-cs/registryObjects'
XSI_NAMESPACE = 'http://www.w3.org/2001/XMLSchema-instance'

NS = {
    'oai': OAI_NAMESPACE,
    'rif': RIF_NAMESPACE,
}


def make_parser() -> etree.XMLParser:
    """
    Lenient parser for response pages

    Ignorable whitespace is dropped so output can be re-indented. Text is
    always handed over as UTF-8, so the encoding named in the XML declaration
    is overridden.
    """
    return etree.XMLParser(remove_blank_text=True, recover=True, encoding='utf-8')


def parse_page(raw: str) -> etree._Element:
    """
    Parse one raw response page

    Damaged pages (e.g. a truncated body) are recovered as far as libxml2
    can; whatever records survive are kept.

    Args:
        raw: Response body as text

    Returns:
        Root element of the page

    Raises:
        ResponseParseError: If nothing could be recovered from the page
    """
    parser = make_parser()
    try:
        root = etree.fromstring(raw.encode('utf-8'), parser)
    except etree.XMLSyntaxError as e:
        raise ResponseParseError(f"Failed to parse OAI-PMH response: {e}")

    if root is None:
        raise ResponseParseError("Failed to parse OAI-PMH response: no XML content recovered")

    if len(parser.error_log):
        error = parser.error_log[0]
        logger.warning(
            f"Recovered from {len(parser.error_log)} XML error(s) in response page "
            f"(line {error.line}: {error.message})"
        )

    return root


def find_all(node: Optional[etree._Element], path: str) -> List[etree._Element]:
    """All elements matching a namespace-prefixed XPath"""
    if node is None:
        return []
    return node.xpath(path, namespaces=NS)


def find_first(node: Optional[etree._Element], path: str) -> Optional[etree._Element]:
    """First element matching a namespace-prefixed XPath, or None"""
    matches = find_all(node, path)
    return matches[0] if matches else None


def element_text(node: Optional[etree._Element]) -> Optional[str]:
    """All text inside an element, or None for a missing element"""
    if node is None:
        return None
    return ''.join(node.itertext())


def find_text(node: Optional[etree._Element], path: str) -> Optional[str]:
    """Text of the first element matching path, or None"""
    return element_text(find_first(node, path))
