"""
OAI-PMH client - polite, sequential access to a ListRecords endpoint
"""

import logging
import time
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from bs4.dammit import EncodingDetector

from utils.logging_config import log_api_request

from .models import Page

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://metadata.prov.vic.gov.au/oai/query?verb=ListRecords&metadataPrefix=rif'
USER_AGENT = 'prov-oai-harvester/0.2 (+https://github.com/prov-oai-harvester)'


class HarvestError(Exception):
    """Base class for errors that end a harvest run"""
    pass


class TransportError(HarvestError):
    """Raised when a page cannot be fetched (network failure or HTTP error)"""
    pass


class ResponseParseError(HarvestError):
    """Raised when a response page is not well-formed XML"""
    pass


def decode_body(content: bytes) -> str:
    """
    Decode a response body using the encoding named in its XML declaration

    OAI-PMH mandates UTF-8, which is also the fallback for bodies without a
    declaration or with an unknown encoding name.
    """
    encoding = EncodingDetector.find_declared_encoding(content, is_html=False) or 'utf-8'
    try:
        return content.decode(encoding, errors='replace')
    except LookupError:
        logger.warning(f"Unknown declared encoding {encoding!r}; decoding as UTF-8")
        return content.decode('utf-8', errors='replace')


class BasePageSource:
    """
    Where the next raw response page comes from

    rate_limited tells the harvester whether to pause between requests.
    """

    rate_limited = True

    def next_page(self, previous_token: Optional[str] = None):
        """Return a Page, or EXHAUSTED when there is nothing more to read"""
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class OAIClient(BasePageSource):
    """
    Live page source for an OAI-PMH ListRecords harvest

    The first request uses the base URL as given. Follow-up requests keep
    only the verb parameter and add the resumption token, as the protocol
    requires. There is no retry: a failed request ends the run.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 60.0):
        """
        Initialize the OAI-PMH client

        Args:
            base_url: ListRecords URL including verb and metadataPrefix
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': 'application/xml, text/xml;q=0.9, */*;q=0.1'
        })

        logger.info(f"Initialized OAI-PMH client for {base_url}")

    def build_url(self, resumption_token: Optional[str] = None) -> str:
        """
        Build the request URL for the next page

        Args:
            resumption_token: Token from the previous page (None for the first)

        Returns:
            Request URL
        """
        if resumption_token is None:
            return self.base_url

        parts = urlsplit(self.base_url)
        query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True)
                 if key == 'verb']
        query.append(('resumptionToken', resumption_token))
        return urlunsplit(parts._replace(query=urlencode(query)))

    def fetch(self, url: str) -> str:
        """
        Fetch one response body

        Raises:
            TransportError: On network failure or an HTTP error status
        """
        logger.info(f"Requesting: {url}")
        start_time = time.time()

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            log_api_request(logger, 'GET', url, 0, time.time() - start_time, error="Request timeout")
            raise TransportError(f"Request timed out: {url}")
        except requests.exceptions.RequestException as e:
            log_api_request(logger, 'GET', url, 0, time.time() - start_time, error=f"Network error: {e}")
            raise TransportError(f"Network error fetching {url}: {e}")

        response_time = time.time() - start_time

        if response.status_code >= 400:
            log_api_request(logger, 'GET', url, response.status_code, response_time,
                            error=f"HTTP {response.status_code}: {response.reason}")
            raise TransportError(f"HTTP {response.status_code} fetching {url}")

        body = decode_body(response.content)
        log_api_request(logger, 'GET', url, response.status_code, response_time,
                        response_size=len(response.content))
        return body

    def next_page(self, previous_token: Optional[str] = None) -> Page:
        return Page(raw=self.fetch(self.build_url(previous_token)))

    def close(self):
        """Close the HTTP session"""
        if self.session:
            self.session.close()
