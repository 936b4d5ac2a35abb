"""
Harvest engine - resumption-token driven paging over a page source

A run moves through AWAITING_PAGE -> PARSED -> (ERROR | CONTINUING | DONE).
Records and raw pages are accumulated per run and handed back in a
HarvestResult; nothing carries over between runs.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from utils.logging_config import get_contextual_logger, log_harvest_progress

from .client import BasePageSource
from .extractor import extract_records
from .models import (
    EXHAUSTED, HarvestEvent, HarvestResult, HarvestState, PageProgress, TerminationReason
)
from .parsing import find_first, find_text, parse_page

logger = logging.getLogger(__name__)

ERROR_PATH = '//oai:error'
RESUMPTION_TOKEN_PATH = '//oai:resumptionToken'

TRANSITIONS: Dict[Tuple[HarvestState, HarvestEvent], HarvestState] = {
    (HarvestState.AWAITING_PAGE, HarvestEvent.PAGE_RECEIVED): HarvestState.PARSED,
    (HarvestState.AWAITING_PAGE, HarvestEvent.SOURCE_EXHAUSTED): HarvestState.DONE,
    (HarvestState.PARSED, HarvestEvent.PROTOCOL_ERROR): HarvestState.ERROR,
    (HarvestState.PARSED, HarvestEvent.NO_TOKEN): HarvestState.DONE,
    (HarvestState.PARSED, HarvestEvent.TOKEN_FOUND): HarvestState.CONTINUING,
    (HarvestState.CONTINUING, HarvestEvent.NEXT_REQUEST): HarvestState.AWAITING_PAGE,
    (HarvestState.CONTINUING, HarvestEvent.PAGE_LIMIT): HarvestState.DONE,
}

TERMINAL_STATES = (HarvestState.DONE, HarvestState.ERROR)


class Harvester:
    """
    Drives one harvest over a page source

    Live sources are paced with request_interval seconds between requests;
    replayed pages are read back to back.
    """

    def __init__(self,
                 source: BasePageSource,
                 request_interval: float = 2.0,
                 max_pages: Optional[int] = None,
                 progress_callback: Optional[Callable[[PageProgress], None]] = None):
        """
        Initialize the harvester

        Args:
            source: Page source (live client or replay)
            request_interval: Pause in seconds after each live page
            max_pages: Stop after this many pages (None or 0 = no limit)
            progress_callback: Called with a PageProgress after each page
        """
        self.source = source
        self.request_interval = request_interval
        self.max_pages = max_pages or None
        self.progress_callback = progress_callback
        self.logger = get_contextual_logger(__name__, source=type(source).__name__)

    @staticmethod
    def transition(state: HarvestState, event: HarvestEvent) -> HarvestState:
        """
        Next state for an event

        Raises:
            ValueError: If the event is not valid in the given state
        """
        try:
            return TRANSITIONS[(state, event)]
        except KeyError:
            raise ValueError(f"Invalid harvest transition: {event.value} in state {state.value}")

    def run(self) -> HarvestResult:
        """
        Harvest until the token runs out, the source is exhausted, the
        service reports an error or the page limit is reached

        Returns:
            HarvestResult with records and raw pages in page order

        Raises:
            TransportError: If a live page cannot be fetched
            ResponseParseError: If nothing can be recovered from a page
        """
        result = HarvestResult()
        state = HarvestState.AWAITING_PAGE
        token: Optional[str] = None
        page_index = 0
        page = None
        root = None

        self.logger.info("Starting harvest...")

        while state not in TERMINAL_STATES:
            if state is HarvestState.AWAITING_PAGE:
                page_index += 1
                page = self.source.next_page(token)
                if page is EXHAUSTED:
                    result.reason = TerminationReason.EXHAUSTED
                    state = self.transition(state, HarvestEvent.SOURCE_EXHAUSTED)
                    continue
                root = parse_page(page.raw)
                state = self.transition(state, HarvestEvent.PAGE_RECEIVED)

            elif state is HarvestState.PARSED:
                error = find_first(root, ERROR_PATH)
                if error is not None:
                    result.error_code = error.get('code')
                    result.error_message = (error.text or '').strip()
                    result.reason = TerminationReason.PROTOCOL_ERROR
                    self.logger.error(
                        f"Error encountered on request {page_index}: "
                        f"[{result.error_code}] {result.error_message}"
                    )
                    state = self.transition(state, HarvestEvent.PROTOCOL_ERROR)
                    continue

                records = extract_records(root)
                result.records.extend(records)
                result.raw_pages.append(page.raw)
                result.pages_processed = page_index

                token = (find_text(root, RESUMPTION_TOKEN_PATH) or '').strip()
                self._report_progress(page_index, len(records), result.total_records, token)

                if not token:
                    result.reason = TerminationReason.COMPLETE
                    state = self.transition(state, HarvestEvent.NO_TOKEN)
                else:
                    state = self.transition(state, HarvestEvent.TOKEN_FOUND)

            elif state is HarvestState.CONTINUING:
                if self.max_pages and result.pages_processed >= self.max_pages:
                    self.logger.warning(
                        f"Page limit of {self.max_pages} reached with a resumption token "
                        f"still pending; stopping harvest"
                    )
                    result.reason = TerminationReason.MAX_PAGES
                    state = self.transition(state, HarvestEvent.PAGE_LIMIT)
                    continue

                if self.source.rate_limited and self.request_interval > 0:
                    time.sleep(self.request_interval)
                state = self.transition(state, HarvestEvent.NEXT_REQUEST)

        self.logger.info(
            f"Harvest completed ({result.reason.value}). "
            f"Total records retrieved: {result.total_records}"
        )
        return result

    def _report_progress(self, page: int, page_records: int, total_records: int,
                         token: Optional[str]):
        log_harvest_progress(self.logger, page, page_records, total_records, token)
        if self.progress_callback:
            self.progress_callback(PageProgress(
                page=page,
                page_records=page_records,
                total_records=total_records
            ))
