"""Tests for the catalog API client (mocked HTTP)."""

from typing import Any

import httpx
import pytest
import respx

from cardvault.models.catalog import SetDescriptor
from cardvault.services.catalog_client import CatalogClient, group_sets

CATALOG = "https://api.scryfall.com"


def search_pages(*pages: dict[str, Any] | int):
    """Serve /cards/search by page number; an int entry is an error status."""

    def handler(request: httpx.Request) -> httpx.Response:
        page = pages[int(request.url.params["page"]) - 1]
        if isinstance(page, int):
            return httpx.Response(page, json={"object": "error"})
        return httpx.Response(200, json=page)

    return handler


@pytest.fixture
async def catalog():
    async with CatalogClient(page_delay=0) as client:
        yield client


class TestFetchSets:
    @respx.mock
    async def test_fetch_set_summaries(self, catalog: CatalogClient) -> None:
        """Set listing is returned in catalog order."""
        respx.get(f"{CATALOG}/sets").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {"code": "abc", "name": "ABC", "card_count": 2},
                        {"code": "pabc", "name": "ABC Promos", "parent_set_code": "abc"},
                    ]
                },
            )
        )

        sets = await catalog.fetch_set_summaries()

        assert [s.code for s in sets] == ["abc", "pabc"]
        assert sets[1].parent_set_code == "abc"

    @respx.mock
    async def test_fetch_set_summaries_failure_returns_empty(self, catalog: CatalogClient) -> None:
        respx.get(f"{CATALOG}/sets").mock(return_value=httpx.Response(503))

        assert await catalog.fetch_set_summaries() == []

    @respx.mock
    async def test_fetch_set_details(self, catalog: CatalogClient, set_payload) -> None:
        respx.get(f"{CATALOG}/sets/abc").mock(return_value=httpx.Response(200, json=set_payload))

        details = await catalog.fetch_set_details("abc")

        assert details is not None
        assert details.name == "Alpha Beta Charlie"
        assert details.card_count == 2

    @respx.mock
    async def test_fetch_set_details_not_found(self, catalog: CatalogClient) -> None:
        respx.get(f"{CATALOG}/sets/zzz").mock(return_value=httpx.Response(404))

        assert await catalog.fetch_set_details("zzz") is None

    @respx.mock
    async def test_network_error_returns_none(self, catalog: CatalogClient) -> None:
        respx.get(f"{CATALOG}/sets/abc").mock(side_effect=httpx.ConnectError("boom"))

        assert await catalog.fetch_set_details("abc") is None

    @respx.mock
    async def test_sends_identifying_headers(self, catalog: CatalogClient) -> None:
        """Every catalog request carries a User-Agent and JSON Accept header."""
        route = respx.get(f"{CATALOG}/sets").mock(
            return_value=httpx.Response(200, json={"data": []})
        )

        await catalog.fetch_set_summaries()

        request = route.calls.last.request
        assert request.headers["User-Agent"].startswith("CardVault")
        assert request.headers["Accept"] == "application/json"

    @respx.mock
    async def test_fetch_child_set_codes(self, catalog: CatalogClient) -> None:
        respx.get(f"{CATALOG}/sets").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {"code": "abc", "name": "ABC"},
                        {"code": "pabc", "name": "Promos", "parent_set_code": "abc"},
                        {"code": "tabc", "name": "Tokens", "parent_set_code": "abc"},
                        {"code": "xyz", "name": "XYZ"},
                    ]
                },
            )
        )

        assert await catalog.fetch_child_set_codes("abc") == ["pabc", "tabc"]


class TestFetchCards:
    @respx.mock
    async def test_pages_until_has_more_is_false(self, catalog: CatalogClient, make_raw_card):
        """Both pages of a two-page listing are returned."""
        route = respx.get(f"{CATALOG}/cards/search").mock(
            side_effect=search_pages(
                {"data": [make_raw_card("c-1")], "has_more": True},
                {"data": [make_raw_card("c-2")], "has_more": False},
            )
        )

        result = await catalog.fetch_cards_for_set("abc")

        assert result.complete is True
        assert [c["id"] for c in result.cards] == ["c-1", "c-2"]
        assert route.call_count == 2
        assert route.calls[0].request.url.params["q"] == "set:abc unique:prints"

    @respx.mock
    async def test_failing_page_keeps_earlier_pages(self, catalog: CatalogClient, make_raw_card):
        """A failed page stops paging but keeps what was already fetched."""
        respx.get(f"{CATALOG}/cards/search").mock(
            side_effect=search_pages(
                {"data": [make_raw_card("c-1")], "has_more": True},
                500,
            )
        )

        result = await catalog.fetch_cards_for_set("abc")

        assert result.complete is False
        assert [c["id"] for c in result.cards] == ["c-1"]
        assert result.error is not None
        assert "500" in result.error

    @respx.mock
    async def test_first_page_failure_is_incomplete(self, catalog: CatalogClient) -> None:
        """A broken endpoint is distinguishable from an empty set."""
        respx.get(f"{CATALOG}/cards/search").mock(side_effect=httpx.ConnectTimeout("slow"))

        result = await catalog.fetch_cards_for_set("abc")

        assert result.cards == []
        assert result.complete is False

    @respx.mock
    async def test_no_matches_is_complete_and_empty(self, catalog: CatalogClient) -> None:
        """The catalog answers 404 for a search with no results."""
        respx.get(f"{CATALOG}/cards/search").mock(side_effect=search_pages(404))

        result = await catalog.fetch_cards_for_set("abc")

        assert result.cards == []
        assert result.complete is True

    @respx.mock
    async def test_iter_cards_is_lazy_and_restartable(
        self, catalog: CatalogClient, make_raw_card
    ) -> None:
        route = respx.get(f"{CATALOG}/cards/search").mock(
            side_effect=search_pages(
                {"data": [make_raw_card("c-1")], "has_more": True},
                {"data": [make_raw_card("c-2")], "has_more": False},
            )
        )

        first = [card["id"] async for card in catalog.iter_cards_for_set("abc")]
        second = [card["id"] async for card in catalog.iter_cards_for_set("abc")]

        assert first == ["c-1", "c-2"]
        assert second == ["c-1", "c-2"]
        assert route.call_count == 4

    @respx.mock
    async def test_iter_cards_stops_on_failure(self, catalog: CatalogClient, make_raw_card):
        respx.get(f"{CATALOG}/cards/search").mock(
            side_effect=search_pages(
                {"data": [make_raw_card("c-1")], "has_more": True},
                502,
            )
        )

        cards = [card["id"] async for card in catalog.iter_cards_for_set("abc")]

        assert cards == ["c-1"]

    @respx.mock
    async def test_fetch_card(self, catalog: CatalogClient, make_raw_card) -> None:
        respx.get(f"{CATALOG}/cards/c-1").mock(
            return_value=httpx.Response(200, json=make_raw_card("c-1"))
        )

        card = await catalog.fetch_card("c-1")

        assert card is not None
        assert card["id"] == "c-1"

    @respx.mock
    async def test_fetch_card_failure(self, catalog: CatalogClient) -> None:
        respx.get(f"{CATALOG}/cards/gone").mock(return_value=httpx.Response(404))

        assert await catalog.fetch_card("gone") is None


class TestGroupSets:
    def test_children_attached_to_parent(self) -> None:
        sets = [
            SetDescriptor(code="abc", name="ABC"),
            SetDescriptor(code="pabc", name="Promos", parent_set_code="abc"),
            SetDescriptor(code="xyz", name="XYZ"),
            SetDescriptor(code="tabc", name="Tokens", parent_set_code="abc"),
        ]

        groups = group_sets(sets)

        assert [g.parent.code for g in groups] == ["abc", "xyz"]
        assert [c.code for c in groups[0].children] == ["pabc", "tabc"]
        assert groups[1].children == ()

    def test_orphan_children_are_dropped(self) -> None:
        groups = group_sets([SetDescriptor(code="pq", name="Orphan", parent_set_code="q")])

        assert groups == []
