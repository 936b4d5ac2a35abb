"""
Data models for OAI-PMH harvesting of the PROV registry
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Record:
    """One harvested registry record, flattened for JSON export"""

    identifier: Optional[str] = None
    datestamp: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary for export"""
        return {
            'identifier': self.identifier,
            'datestamp': self.datestamp,
            'title': self.title,
            'description': self.description
        }


@dataclass(frozen=True)
class Page:
    """A raw OAI-PMH response body, kept exactly as received"""
    raw: str


class Exhausted:
    """Returned by a page source when there are no more pages"""

    def __repr__(self) -> str:
        return 'EXHAUSTED'


EXHAUSTED = Exhausted()


class HarvestState(Enum):
    """States of a harvest run"""
    AWAITING_PAGE = 'AWAITING_PAGE'
    PARSED = 'PARSED'
    CONTINUING = 'CONTINUING'
    DONE = 'DONE'
    ERROR = 'ERROR'


class HarvestEvent(Enum):
    """Inputs that drive the harvest state machine"""
    PAGE_RECEIVED = 'PAGE_RECEIVED'
    SOURCE_EXHAUSTED = 'SOURCE_EXHAUSTED'
    PROTOCOL_ERROR = 'PROTOCOL_ERROR'
    TOKEN_FOUND = 'TOKEN_FOUND'
    NO_TOKEN = 'NO_TOKEN'
    NEXT_REQUEST = 'NEXT_REQUEST'
    PAGE_LIMIT = 'PAGE_LIMIT'


class TerminationReason(Enum):
    """Why a harvest run stopped"""
    COMPLETE = 'COMPLETE'  # resumption token missing or empty
    PROTOCOL_ERROR = 'PROTOCOL_ERROR'
    EXHAUSTED = 'EXHAUSTED'  # replay ran out of saved pages
    MAX_PAGES = 'MAX_PAGES'


@dataclass
class PageProgress:
    """Progress reported to observers after each page"""
    page: int
    page_records: int
    total_records: int


@dataclass
class HarvestResult:
    """Everything a harvest run produced, in page order"""

    records: List[Record] = field(default_factory=list)
    raw_pages: List[str] = field(default_factory=list)
    pages_processed: int = 0
    reason: Optional[TerminationReason] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def total_records(self) -> int:
        return len(self.records)

    @property
    def is_partial(self) -> bool:
        """True when the remote service cut the harvest short"""
        return self.reason in (TerminationReason.PROTOCOL_ERROR, TerminationReason.MAX_PAGES)
