"""Tests for queries over the group cache."""

from __future__ import annotations

import pytest

from models.group_record import Group
from services.errors import InvalidSearchTermError
from services.group_service import GroupStats


def group(group_id, name, participants, admin=False):
    return Group(id=group_id, name=name, participant_count=participants, is_admin=admin)


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("term", ["", " ", "a", "  b  "])
async def test_search_rejects_short_terms(group_service, term):
    with pytest.raises(InvalidSearchTermError):
        await group_service.search(term)


@pytest.mark.asyncio
async def test_search_is_case_insensitive_substring(group_service, group_dal):
    await group_dal.replace_all(
        [group("1@g.us", "Family", 10), group("2@g.us", "Abc", 3), group("3@g.us", "xyz", 4)]
    )

    assert [g.name for g in await group_service.search("ab")] == ["Abc"]
    assert [g.name for g in await group_service.search("  AMI ")] == ["Family"]
    assert await group_service.search("nothing") == []


@pytest.mark.asyncio
async def test_search_on_empty_cache_returns_nothing(group_service):
    assert await group_service.search("team") == []


# ---------------------------------------------------------------------------
# lookups
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_by_id_and_get_all(group_service, group_dal):
    groups = [group("1@g.us", "Family", 10), group("2@g.us", "Abc", 3)]
    await group_dal.replace_all(groups)

    assert await group_service.get_all() == groups
    assert (await group_service.get_by_id("2@g.us")).name == "Abc"
    assert await group_service.get_by_id("missing@g.us") is None


@pytest.mark.asyncio
async def test_clear_empties_cache(group_service, group_dal):
    await group_dal.replace_all([group("1@g.us", "Family", 10)])

    await group_service.clear()

    assert await group_service.get_all() == []


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_stats_on_empty_cache(group_service):
    stats = await group_service.stats()

    assert stats == GroupStats()
    assert stats.to_dict() == {
        "totalGroups": 0,
        "adminGroups": 0,
        "totalParticipants": 0,
        "averageParticipants": 0,
        "largestGroup": None,
        "smallestGroup": None,
    }


@pytest.mark.asyncio
async def test_stats_aggregates_cache(group_service, group_dal):
    await group_dal.replace_all(
        [group("1@g.us", "Family", 10, admin=True), group("2@g.us", "Abc", 3), group("3@g.us", "xyz", 4)]
    )

    stats = (await group_service.stats()).to_dict()

    assert stats["totalGroups"] == 3
    assert stats["adminGroups"] == 1
    assert stats["totalParticipants"] == 17
    assert stats["averageParticipants"] == 6
    assert stats["largestGroup"] == {"name": "Family", "participants": 10}
    assert stats["smallestGroup"] == {"name": "Abc", "participants": 3}


@pytest.mark.asyncio
async def test_stats_average_rounds_half_up(group_service, group_dal):
    await group_dal.replace_all([group("1@g.us", "A", 2), group("2@g.us", "B", 3)])

    assert (await group_service.stats()).average_participants == 3


@pytest.mark.asyncio
async def test_stats_ties_keep_first_group(group_service, group_dal):
    await group_dal.replace_all(
        [group("1@g.us", "First", 5), group("2@g.us", "Second", 5), group("3@g.us", "Third", 5)]
    )

    stats = await group_service.stats()

    assert stats.largest_group["name"] == "First"
    assert stats.smallest_group["name"] == "First"
