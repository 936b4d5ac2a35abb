"""
Replay of previously saved OAI-PMH responses

Reads response_1.xml, response_2.xml, ... from a directory, the layout
written by RawPageExporter. The first missing file ends the replay.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .client import BasePageSource, HarvestError
from .models import EXHAUSTED, Page

logger = logging.getLogger(__name__)

RESPONSE_FILENAME = 'response_{index}.xml'


class ReplayError(HarvestError):
    """Raised when saved responses cannot be replayed"""
    pass


def response_path(directory: Union[str, Path], index: int) -> Path:
    """Path of the saved response for a 1-based page index"""
    return Path(directory) / RESPONSE_FILENAME.format(index=index)


class ReplayClient(BasePageSource):
    """Page source backed by saved response files; never touches the network"""

    rate_limited = False

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise ReplayError(f"Saved response directory not found: {self.directory}")
        self.page_index = 0

    def next_page(self, previous_token: Optional[str] = None):
        # Pages come back in file order; the token is only meaningful to a live endpoint
        self.page_index += 1
        path = response_path(self.directory, self.page_index)

        if not path.exists():
            logger.info("No more saved XML files found.")
            return EXHAUSTED

        logger.info(f"Loading saved XML: {path}")
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return Page(raw=f.read())
