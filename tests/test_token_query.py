import pytest

from readers.collection.models import CollectionSnapshot
from readers.collection.token_query import TokenQuery

from conftest import make_token


@pytest.fixture
def query():
    tokens = [
        make_token(1, name="Seize the Memes", artist="6529", floor_price=0.5, highest_offer=0.2, season_size=3),
        make_token(2, name="Freedom", artist="Alice", floor_price=0.1, highest_offer=0.3, season_size=3),
        make_token(3, name="Open Metaverse", artist="Bob", floor_price=0.5, season_size=3),
        make_token(4, name="Apes", artist="alice", floor_price=0.2, season_size=3),
        make_token(12, name="Twelve", artist="Carol", floor_price=0.05, season_size=3),
    ]
    return TokenQuery.from_snapshot(CollectionSnapshot.from_tokens(tokens, fetched_at_ms=0))


def test_season_filter(query):
    assert query.season(1).ids() == (1, 2, 3)
    assert query.season(2, 4).ids() == (4, 12)
    assert query.season().ids() == query.ids()


def test_search_matches_name_artist_or_number(query):
    assert query.search("ALICE").ids() == (2, 4)
    assert query.search("meta").ids() == (3,)
    assert query.search("12").ids() == (12,)
    assert len(query.search("  ")) == len(query)


def test_owned_and_missing_partition(query):
    owned = query.owned_by([2, 4, 99])
    missing = query.missing_from([2, 4, 99])
    assert owned.ids() == (2, 4)
    assert set(owned.ids()) | set(missing.ids()) == set(query.ids())


def test_sort_uses_id_as_tiebreak(query):
    assert query.sort_by("floor", descending=True).ids() == (1, 3, 4, 2, 12)
    assert query.sort_by("floor").ids() == (12, 2, 4, 1, 3)
    assert query.sort_by("name").ids() == (4, 2, 3, 1, 12)
    assert query.sort_by("offer", descending=True).ids()[:2] == (2, 1)

    with pytest.raises(ValueError):
        query.sort_by("rarity")


def test_paging(query):
    ordered = query.sort_by("number")
    assert ordered.page(1, 2).ids() == (1, 2)
    assert ordered.page(3, 2).ids() == (12,)
    assert ordered.page(4, 2).ids() == ()

    with pytest.raises(ValueError):
        ordered.page(0, 2)


def test_df_is_indexed_by_id(query):
    df = query.season(1).df()
    assert list(df.index) == [1, 2, 3]
    assert df.loc[2, "artist"] == "Alice"
    assert df.loc[3, "season"] == 1

    assert query.search("nothing matches").df().empty
