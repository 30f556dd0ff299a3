from datetime import datetime

import pytest

from utils import race_session
from utils.errors import NotFoundError

from factories import lap, position, session


@pytest.mark.asyncio
async def test_list_sessions_ordered_by_start(seeded_store):
    result = await race_session.list_sessions(seeded_store)
    assert [s.session_key for s in result] == [50, 100, 200]


@pytest.mark.asyncio
async def test_four_classified_drivers_give_four_entries(seeded_store):
    detail = await race_session.get_session_detail(seeded_store, 100)

    assert [(r.position, r.driver) for r in detail.results] == [
        ("1", "Max Verstappen"),
        ("2", "Charles Leclerc"),
        ("3", "Lando Norris"),
        ("Last", "Oscar Piastri"),
    ]
    assert detail.results[0].team == "Red Bull Racing"
    assert detail.results[0].country == "NED"


@pytest.mark.asyncio
async def test_last_place_appended_after_podium(seeded_store):
    detail = await race_session.get_session_detail(seeded_store, 200)

    assert len(detail.results) == 4
    assert detail.results[-1].position == "Last"
    assert detail.results[-1].driver == "Oscar Piastri"


@pytest.mark.asyncio
async def test_three_drivers_are_not_duplicated(seeded_store):
    seeded_store.seed("sessions", [session(300, "Australia", "Melbourne", datetime(2024, 3, 24, 4, 0))])
    seeded_store.seed("positions", [position(300, 1, 1, 0), position(300, 4, 2, 0), position(300, 16, 3, 0)])

    detail = await race_session.get_session_detail(seeded_store, 300)

    assert [r.position for r in detail.results] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_uncached_driver_is_omitted(seeded_store):
    seeded_store.seed("sessions", [session(300, "Australia", "Melbourne", datetime(2024, 3, 24, 4, 0))])
    seeded_store.seed("positions", [position(300, 99, 1, 0), position(300, 4, 2, 0), position(300, 16, 3, 0)])

    detail = await race_session.get_session_detail(seeded_store, 300)

    assert [r.driver for r in detail.results] == ["Lando Norris", "Charles Leclerc"]


@pytest.mark.asyncio
async def test_fastest_lap_and_top_speed(seeded_store):
    detail = await race_session.get_session_detail(seeded_store, 100)

    assert detail.fastest_lap.driver == "Charles Leclerc"
    assert detail.fastest_lap.total_time == 93.2
    assert (detail.fastest_lap.sector_1, detail.fastest_lap.sector_2, detail.fastest_lap.sector_3) == (29.1, 31.4, 32.7)
    # Top speed counts every lap with a speed trap reading, timed or not
    assert detail.max_speed.driver == "Max Verstappen"
    assert detail.max_speed.speed_kmh == 330


@pytest.mark.asyncio
async def test_fastest_lap_is_minimum_positive_duration(seeded_store):
    for s in await race_session.list_sessions(seeded_store):
        detail = await race_session.get_session_detail(seeded_store, s.session_key)
        durations = [
            row.lap_duration for row in seeded_store.tables["laps"]
            if row.session_key == s.session_key and row.lap_duration
        ]
        assert all(detail.fastest_lap.total_time <= d for d in durations)


@pytest.mark.asyncio
async def test_session_without_rows_degrades(seeded_store):
    seeded_store.seed("sessions", [session(300, "Australia", "Melbourne", datetime(2024, 3, 24, 4, 0))])
    seeded_store.seed("laps", [lap(300, 1, 1, 0, None)])

    detail = await race_session.get_session_detail(seeded_store, 300)

    assert detail.results == []
    assert detail.fastest_lap.driver == ""
    assert detail.fastest_lap.total_time == 0
    assert detail.max_speed.speed_kmh == 0


@pytest.mark.asyncio
async def test_unknown_session(seeded_store):
    with pytest.raises(NotFoundError):
        await race_session.get_session_detail(seeded_store, 12345)


@pytest.mark.asyncio
async def test_final_classification_uses_latest_row(seeded_store):
    standings = await race_session.get_final_classification(seeded_store, 100)
    assert [(p.driver_number, p.position) for p in standings] == [(1, 1), (16, 2), (4, 3), (81, 4)]
