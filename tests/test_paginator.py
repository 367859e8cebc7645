import asyncio

from collectors.collection_paginator import CollectionPaginator
from venues.errors import ProviderUnavailable
from venues.seize.client import NftPage

from conftest import seize_record


class FakeSeize:
    """Serves scripted pages; an Exception entry is raised for that page."""

    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    async def list_nfts(self, page, page_size):
        self.requested.append(page)
        if page > len(self.pages):
            return NftPage(page=page, records=[])
        entry = self.pages[page - 1]
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, NftPage):
            return entry
        return NftPage(page=page, records=entry)


def _paginator(client, **kw):
    kw.setdefault("collection_size", 404)
    kw.setdefault("season_size", 100)
    kw.setdefault("page_size", 2)
    kw.setdefault("max_items", 500)
    kw.setdefault("bad_markers", ("0x0c58ef43ff3032005e472cb5",))
    return CollectionPaginator(client, **kw)


def test_duplicates_across_pages_last_write_wins():
    client = FakeSeize([
        [seize_record(1, name="old"), seize_record(2)],
        [seize_record(1, name="new"), seize_record(3)],
    ])
    snap = asyncio.run(_paginator(client).walk())

    assert snap.ids == (1, 2, 3)
    assert snap.get(1).name == "new"
    assert snap.complete


def test_three_empty_pages_end_walk():
    client = FakeSeize([[seize_record(1)], [], [], [], [seize_record(2)]])
    snap = asyncio.run(_paginator(client).walk())

    assert snap.ids == (1,)
    assert client.requested == [1, 2, 3, 4]
    assert snap.complete


def test_pages_with_only_unusable_records_count_as_empty():
    junk = [seize_record(0), seize_record(9999)]
    client = FakeSeize([[seize_record(1)], junk, junk, junk, [seize_record(2)]])
    snap = asyncio.run(_paginator(client).walk())
    assert snap.ids == (1,)


def test_empty_streak_resets_on_usable_page():
    client = FakeSeize([[seize_record(1)], [], [], [seize_record(2)], [], [], []])
    snap = asyncio.run(_paginator(client).walk())
    assert snap.ids == (1, 2)


def test_failed_page_returns_partial_snapshot():
    client = FakeSeize([[seize_record(1), seize_record(2)], ProviderUnavailable("503")])
    snap = asyncio.run(_paginator(client).walk())

    assert snap.ids == (1, 2)
    assert not snap.complete
    assert snap.pages_walked == 1


def test_has_more_false_ends_walk():
    client = FakeSeize([
        NftPage(page=1, records=[seize_record(1)], has_more=True),
        NftPage(page=2, records=[seize_record(2)], has_more=False),
        [seize_record(3)],
    ])
    snap = asyncio.run(_paginator(client).walk())
    assert snap.ids == (1, 2)
    assert client.requested == [1, 2]


def test_stops_at_item_cap():
    pages = [[seize_record(i), seize_record(i + 1)] for i in range(1, 20, 2)]
    client = FakeSeize(pages)
    snap = asyncio.run(_paginator(client, max_items=4).walk())

    assert len(snap) == 4
    assert client.requested == [1, 2]


def test_max_pages_ceiling_marks_incomplete():
    pages = [[seize_record(i)] for i in range(1, 10)]
    client = FakeSeize(pages)
    snap = asyncio.run(_paginator(client, max_pages=3).walk())

    assert snap.ids == (1, 2, 3)
    assert not snap.complete


def test_overflowing_numbers_keep_the_rest_of_the_page():
    client = FakeSeize([[seize_record(1, supply=1e999), seize_record(2, floor_price="nan")]])
    snap = asyncio.run(_paginator(client).walk())

    assert snap.ids == (1, 2)
    assert snap.get(1).total_supply == 0
    assert snap.get(2).floor_price == 0.0


def test_short_page_without_hint_keeps_walking():
    client = FakeSeize([[seize_record(1)], [seize_record(2), seize_record(3)]])
    snap = asyncio.run(_paginator(client).walk())

    assert snap.ids == (1, 2, 3)
    assert client.requested[:2] == [1, 2]
    assert snap.complete
