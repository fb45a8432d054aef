"""
HTTP fetcher for the airport flight-status page.

Downloads the page with a browser-like User-Agent (the site blocks default
client identifiers) and hands the document to the table extractor. There are
no internal retries: the cache decides what a failure means.
"""
import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import httpx
from bs4 import BeautifulSoup

from flightboard.config import DEFAULT_USER_AGENT
from flightboard.errors import PageParseError, SourceUnreachable
from flightboard.models.flight import FlightRecord
from flightboard.scrapers.flight_table import TableLayout, extract_flights

logger = logging.getLogger(__name__)


class FlightBoardFetcher:
    """
    Fetches and parses one flight-status page.

    Usage:
        fetcher = FlightBoardFetcher(url, TABLE_LAYOUTS["combined"], timeout=15.0)
        flights = await fetcher.fetch()
        await fetcher.close()
    """

    def __init__(
        self,
        source_url: str,
        layout: TableLayout,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
        timezone: ZoneInfo = ZoneInfo("UTC"),
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.source_url = source_url
        self.layout = layout
        self.timeout = timeout
        self.user_agent = user_agent
        self.timezone = timezone
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml",
                },
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch(
        self,
        source_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> list[FlightRecord]:
        """
        Fetch the page and extract its flights.

        Raises:
            SourceUnreachable: timeout, connection error or non-2xx response
            PageParseError: the body could not be parsed
        """
        url = source_url or self.source_url
        client = await self._get_client()

        try:
            response = await client.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=timeout if timeout is not None else self.timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Timeout fetching {url}: {e}")
            raise SourceUnreachable(f"Timed out fetching {url}", cause=e) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"HTTP {status} fetching {url}")
            raise SourceUnreachable(f"HTTP {status} from {url}", cause=e, status_code=status) from e
        except httpx.RequestError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise SourceUnreachable(f"Request to {url} failed: {e}", cause=e) from e

        try:
            document = BeautifulSoup(response.text, "html.parser")
        except Exception as e:
            logger.error(f"Failed to parse page from {url}: {e}")
            raise PageParseError(f"Failed to parse page from {url}: {e}", cause=e) from e

        flights = extract_flights(document, self.layout, datetime.now(self.timezone))

        if not flights:
            logger.warning(
                f"No flight rows found at {url} - the page layout may have changed"
            )
        else:
            logger.info(f"Extracted {len(flights)} flights from {url}")

        return flights
