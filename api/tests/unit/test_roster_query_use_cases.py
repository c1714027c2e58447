"""
Tests para las proyecciones de lectura del roster.
"""
from datetime import date

import pytest

from rostersync.application.dto.roster_dto import RosterUploadRequestDTO
from rostersync.application.use_cases.roster_query_use_cases import RosterQueryUseCases
from rostersync.application.use_cases.roster_upload_use_cases import RosterUploadUseCases
from rostersync.shared.exceptions.domain import EntityNotFoundException


OWNER = "user-1"


def _day(day, arr="HKG", check_in="08:00"):
    return {
        "date": day,
        "rawText": f"CX {arr} {check_in}",
        "duties": [
            {"dutyKind": "report", "checkIn": check_in},
            {
                "dutyKind": "flight",
                "notes": ["nota"],
                "sectors": [
                    {"flightNumber": "CX1", "depIATA": "MFM", "arrIATA": arr},
                    {"flightNumber": "CX2", "depIATA": arr, "arrIATA": "MFM"},
                ],
            },
        ],
    }


async def _upload(session_factory, days, version_number=1, period=("2024-01-01", "2024-01-31"), owner=OWNER):
    use_cases = RosterUploadUseCases(session_factory, max_retries=0, retry_backoff=0, timeout=10)
    return await use_cases.upload_roster(owner, RosterUploadRequestDTO(
        crew_id="C1",
        period_start=period[0],
        period_end=period[1],
        version_number=version_number,
        source_file_name=f"v{version_number}.pdf",
        days=days,
    ))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_list_periods_keeps_latest_per_month(session_factory):
    await _upload(session_factory, [_day("2024-01-05")], period=("2024-01-01", "2024-01-31"))
    latest = await _upload(session_factory, [_day("2024-01-05")], period=("2024-01-01", "2024-01-30"))
    february = await _upload(session_factory, [_day("2024-02-02"), _day("2024-02-03")], period=("2024-02-01", "2024-02-29"))

    async with session_factory() as session:
        result = await RosterQueryUseCases(session).list_periods(OWNER)

    assert [p.id for p in result.periods] == [february.period_id, latest.period_id]
    assert result.periods[0].total_days == 2
    assert result.periods[0].latest_version_at is not None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_period_detail_lists_versions_and_changes(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05"), _day("2024-01-06")])
    await _upload(session_factory, [_day("2024-01-05", arr="TPE"), _day("2024-01-06")], version_number=2)

    async with session_factory() as session:
        detail = await RosterQueryUseCases(session).get_period_detail(OWNER, first.period_id)

    assert [v.version_number for v in detail.versions] == [2, 1]
    assert [(c.date, c.version_count) for c in detail.changes] == [(date(2024, 1, 5), 2)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_days_filters_range_and_flags_changes(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05"), _day("2024-01-06"), _day("2024-01-07")])
    await _upload(session_factory, [_day("2024-01-05", arr="TPE")], version_number=2)

    async with session_factory() as session:
        result = await RosterQueryUseCases(session).get_days(
            OWNER, first.period_id, start_date=date(2024, 1, 5), end_date=date(2024, 1, 6)
        )

    assert [d.date for d in result.days] == [date(2024, 1, 5), date(2024, 1, 6)]
    assert result.days[0].has_changes is True
    assert result.days[0].version_number == 2
    assert result.days[1].has_changes is False
    assert result.days[1].source_file_name == "v1.pdf"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_day_history_newest_first(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05")])
    await _upload(session_factory, [_day("2024-01-05", arr="TPE")], version_number=2)

    async with session_factory() as session:
        history = await RosterQueryUseCases(session).get_day_history(OWNER, first.period_id, date(2024, 1, 5))

    assert [v.version_number for v in history.versions] == [2, 1]
    assert [v.is_active_for_date for v in history.versions] == [True, False]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_day_duties_with_sectors(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05")])

    async with session_factory() as session:
        queries = RosterQueryUseCases(session)
        days = await queries.get_days(OWNER, first.period_id)
        duties = await queries.get_day_duties(OWNER, days.days[0].id)

    assert [d.sequence_order for d in duties.duties] == [1, 2]
    assert duties.duties[0].sectors == []
    assert duties.duties[1].notes == ["nota"]
    assert [(s.dep_code, s.arr_code) for s in duties.duties[1].sectors] == [("MFM", "HKG"), ("HKG", "MFM")]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_duties_of_inactive_day_are_not_found(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05")])

    async with session_factory() as session:
        old_day_id = (await RosterQueryUseCases(session).get_days(OWNER, first.period_id)).days[0].id

    await _upload(session_factory, [_day("2024-01-05", arr="TPE")], version_number=2)

    async with session_factory() as session:
        with pytest.raises(EntityNotFoundException):
            await RosterQueryUseCases(session).get_day_duties(OWNER, old_day_id)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_other_owner_cannot_read_period(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05")])

    async with session_factory() as session:
        with pytest.raises(EntityNotFoundException) as exc_info:
            await RosterQueryUseCases(session).get_period_detail("intruso", first.period_id)

    assert exc_info.value.status_code == 404


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_history_survives_period_deletion(session_factory):
    first = await _upload(session_factory, [_day("2024-01-05")])
    await _upload(session_factory, [_day("2024-01-05", arr="TPE")], version_number=2)

    async with session_factory() as session:
        queries = RosterQueryUseCases(session)
        history = await queries.get_sync_history(OWNER, limit=1)
        assert len(history.sync_history) == 1
        assert history.sync_history[0].period_start == date(2024, 1, 1)

        deleted = await queries.delete_period(OWNER, first.period_id)
        await session.commit()

    assert deleted.deleted["crew_id"] == "C1"
    assert deleted.deleted["versions"] == 2
    assert deleted.deleted["days"] == 2

    async with session_factory() as session:
        queries = RosterQueryUseCases(session)
        history = await queries.get_sync_history(OWNER)
        periods = await queries.list_periods(OWNER)

    assert len(history.sync_history) == 2
    assert history.sync_history[0].period_start is None
    assert periods.periods == []
