"""
Record extraction from OAI-PMH ListRecords pages

Each oai:record carries an OAI header (identifier, datestamp) and a RIF-CS
registryObject as its metadata payload. Missing structure degrades the
affected field to None; extraction never aborts a harvest.
"""

import logging
from typing import List

from lxml import etree

from utils.text import normalize_description

from .models import Record
from .parsing import find_all, find_first, find_text

logger = logging.getLogger(__name__)

RECORD_PATH = '//oai:record'
IDENTIFIER_PATH = './/oai:identifier'
DATESTAMP_PATH = './/oai:datestamp'
REGISTRY_OBJECT_PATH = './/rif:registryObject'
TITLE_PATH = './/rif:name/rif:namePart'
DESCRIPTION_PATH = './/rif:description[@type="full"]'


def extract_record(record: etree._Element) -> Record:
    """
    Map one oai:record element to a Record

    Args:
        record: Parsed oai:record subtree

    Returns:
        Record with absent fields set to None
    """
    identifier = find_text(record, IDENTIFIER_PATH)
    datestamp = find_text(record, DATESTAMP_PATH)

    registry_object = find_first(record, REGISTRY_OBJECT_PATH)
    if registry_object is None:
        logger.debug(f"No registryObject in record {identifier}")

    title = find_text(registry_object, TITLE_PATH)
    description = normalize_description(find_text(registry_object, DESCRIPTION_PATH))

    return Record(
        identifier=identifier,
        datestamp=datestamp,
        title=title,
        description=description
    )


def find_records(page: etree._Element) -> List[etree._Element]:
    """All oai:record elements in a parsed page"""
    return find_all(page, RECORD_PATH)


def extract_records(page: etree._Element) -> List[Record]:
    """Extract every record in a parsed page, in document order"""
    return [extract_record(record) for record in find_records(page)]
