"""
Scryfall catalog client.

Fetches set listings, set details and paginated card searches.

Listing operations never raise on network failures: errors are logged and
callers get an empty or partial result. `fetch_cards_for_set` reports
whether the listing is complete so a broken endpoint is not mistaken for
an empty set.

API docs: https://scryfall.com/docs/api
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any

import httpx

from cardvault.config import settings
from cardvault.models.catalog import CardFetchResult, SetDescriptor, SetGroup

logger = logging.getLogger(__name__)


class CatalogFetchError(Exception):
    """Raised when a catalog request fails or returns a non-success status."""

    pass


class CatalogClient:
    """
    Async client for the catalog API.

    Pass an existing `httpx.AsyncClient` to share a connection pool;
    otherwise the client owns one and closes it on exit.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        page_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self._base_url = (base_url or settings.catalog_base_url).rstrip("/")
        self._page_delay = settings.page_delay if page_delay is None else page_delay
        self._headers = {
            "User-Agent": settings.catalog_user_agent,
            "Accept": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout or settings.request_timeout,
        )

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, params=params, headers=self._headers)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogFetchError(f"GET {url}: HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogFetchError(f"GET {url}: {e}") from e
        return data

    # --- Sets ---

    async def fetch_set_summaries(self) -> list[SetDescriptor]:
        """
        Fetch every set the catalog knows about, in catalog order.

        Returns an empty list if the request fails.
        """
        try:
            data = await self._get_json("/sets")
        except CatalogFetchError as e:
            logger.error("Error fetching sets from catalog: %s", e)
            return []

        return [SetDescriptor.from_api(item) for item in data.get("data", [])]

    async def fetch_set_details(self, code: str) -> SetDescriptor | None:
        """Fetch details for one set, or None if unavailable."""
        try:
            data = await self._get_json(f"/sets/{code}")
        except CatalogFetchError as e:
            logger.error("Error fetching set details for %s: %s", code, e)
            return None

        return SetDescriptor.from_api(data)

    async def fetch_child_set_codes(self, parent_code: str) -> list[str]:
        """Codes of all sets whose parent is `parent_code`."""
        sets = await self.fetch_set_summaries()
        return [s.code for s in sets if s.parent_set_code == parent_code]

    # --- Cards ---

    async def fetch_card(self, card_id: str) -> dict[str, Any] | None:
        """Fetch a single raw card record by catalog id, or None if unavailable."""
        try:
            return await self._get_json(f"/cards/{card_id}")
        except CatalogFetchError as e:
            logger.warning("Error fetching card %s: %s", card_id, e)
            return None

    async def _card_pages(self, code: str) -> AsyncIterator[list[dict[str, Any]]]:
        """
        Yield successive pages of raw card records for a set.

        Raises CatalogFetchError from the page that failed.
        """
        page = 1
        while True:
            # Rate limit: wait between paginated requests (not needed for first page)
            if page > 1:
                await asyncio.sleep(self._page_delay)

            try:
                data = await self._get_json(
                    "/cards/search",
                    params={"q": f"set:{code} unique:prints", "page": page},
                )
            except CatalogFetchError as e:
                # A search with no matches answers 404
                cause = e.__cause__
                if (
                    page == 1
                    and isinstance(cause, httpx.HTTPStatusError)
                    and cause.response.status_code == 404
                ):
                    return
                raise

            yield list(data.get("data", []))
            logger.info("Fetched page %d for set %s", page, code)

            if not data.get("has_more", False):
                return
            page += 1

    async def iter_cards_for_set(self, code: str) -> AsyncIterator[dict[str, Any]]:
        """
        Lazily yield raw card records for a set, paging until exhausted.

        Each call starts again from the first page. A failing page ends the
        sequence; records from earlier pages have already been yielded.
        """
        try:
            async for page in self._card_pages(code):
                for card in page:
                    yield card
        except CatalogFetchError as e:
            logger.error("Stopped fetching cards for set %s: %s", code, e)

    async def fetch_cards_for_set(self, code: str) -> CardFetchResult:
        """
        Fetch all raw card records for a set.

        Returns:
            CardFetchResult with every record fetched. `complete` is False if
            a page failed, in which case `cards` holds the earlier pages.
        """
        cards: list[dict[str, Any]] = []
        try:
            async for page in self._card_pages(code):
                cards.extend(page)
        except CatalogFetchError as e:
            logger.error(
                "Error fetching cards for set %s after %d cards: %s", code, len(cards), e
            )
            return CardFetchResult(cards=cards, complete=False, error=str(e))

        return CardFetchResult(cards=cards)


def group_sets(sets: list[SetDescriptor]) -> list[SetGroup]:
    """
    Group sets under their parents.

    Sets without a parent code become groups; child sets are attached to
    their parent in catalog order. Children whose parent is missing from
    `sets` are dropped.
    """
    children_by_parent: dict[str, list[SetDescriptor]] = {}
    for s in sets:
        if s.parent_set_code:
            children_by_parent.setdefault(s.parent_set_code, []).append(s)

    return [
        SetGroup(parent=s, children=tuple(children_by_parent.get(s.code, [])))
        for s in sets
        if not s.parent_set_code
    ]
