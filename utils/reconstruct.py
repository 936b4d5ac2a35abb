"""
Reconstruction of one combined OAI-PMH document from paged responses

The harvested pages are merged into a single ListRecords response: the
responseDate and request of the first page, every record from every page
sorted by identifier, and no resumption tokens.
"""

import copy
import logging
from typing import Dict, Iterable, List, Optional

from lxml import etree

from oai.extractor import IDENTIFIER_PATH, find_records
from oai.parsing import NS, OAI_NAMESPACE, XSI_NAMESPACE, find_all, find_first, find_text, parse_page

from .sorting import SPLIT_CATEGORIES, sort_key

logger = logging.getLogger(__name__)

SCHEMA_LOCATION = f'{OAI_NAMESPACE} http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd'


def _oai(tag: str) -> str:
    return f'{{{OAI_NAMESPACE}}}{tag}'


def new_envelope() -> etree._Element:
    """Empty OAI-PMH root element with the schema location declared"""
    root = etree.Element(_oai('OAI-PMH'), nsmap={None: OAI_NAMESPACE, 'xsi': XSI_NAMESPACE})
    root.set(f'{{{XSI_NAMESPACE}}}schemaLocation', SCHEMA_LOCATION)
    return root


def record_identifier(record: etree._Element) -> str:
    return find_text(record, IDENTIFIER_PATH) or ''


def reconstruct(raw_pages: Iterable[str], prefix: Optional[str] = None) -> etree._ElementTree:
    """
    Merge raw response pages into one sorted document

    Args:
        raw_pages: Response bodies in page order
        prefix: Keep only records whose identifier starts with this text

    Returns:
        The combined document
    """
    pages = [parse_page(raw) for raw in raw_pages]

    root = new_envelope()
    if pages:
        # Header blocks come from the first page only
        for tag in ('responseDate', 'request'):
            element = find_first(pages[0], f'//oai:{tag}')
            if element is not None:
                root.append(copy.deepcopy(element))
    else:
        logger.warning("No response pages to reconstruct; writing an empty ListRecords")

    pool: List[etree._Element] = []
    for page in pages:
        pool.extend(find_records(page))

    # sorted() is stable, so equal keys keep page order
    pool = sorted(pool, key=lambda record: sort_key(record_identifier(record)))

    list_records = etree.SubElement(root, _oai('ListRecords'))
    for record in pool:
        if prefix is None or record_identifier(record).startswith(prefix):
            list_records.append(copy.deepcopy(record))

    for token in find_all(root, '//oai:resumptionToken'):
        token.getparent().remove(token)

    logger.debug(f"Reconstructed {len(list_records)} of {len(pool)} records (prefix={prefix!r})")
    return etree.ElementTree(root)


def reconstruct_partitions(raw_pages: Iterable[str]) -> Dict[str, etree._ElementTree]:
    """One reconstructed document per split category"""
    raw_pages = list(raw_pages)
    return {name: reconstruct(raw_pages, prefix) for name, prefix in SPLIT_CATEGORIES}


def count_records(document) -> int:
    """Number of oai:record elements in a document"""
    return len(document.xpath('//oai:record', namespaces=NS))


def serialize(document: etree._ElementTree) -> bytes:
    """Pretty-printed UTF-8 bytes with an XML declaration"""
    document = copy.deepcopy(document)
    etree.indent(document, space=' ')
    return etree.tostring(document, pretty_print=True, xml_declaration=True, encoding='UTF-8')
