"""
Tests para RosterUploadUseCases sobre SQLite en memoria.

Verifican que:
- El escenario MFM->HKG produce los contadores esperados
- Un re-upload identico es idempotente
- Solo hay un dia activo por (periodo, fecha), tambien con uploads concurrentes
- Una fecha repetida en el mismo upload cuenta una sola vez
- Un fallo a mitad del upload no deja filas visibles
- Los conflictos se reintentan y luego se reportan como 503
- La validacion ocurre antes de pedir una sesion
"""
import asyncio
from datetime import date

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, OperationalError

from rostersync.application.dto.roster_dto import RosterUploadRequestDTO
from rostersync.application.services.day_materializer import DayMaterializer
from rostersync.application.use_cases.roster_upload_use_cases import (
    RosterUploadUseCases,
    classify_conflict,
)
from rostersync.domain.entities import DayOutcome, UploadResult
from rostersync.infrastructure.database.models import (
    RosterPeriodModel,
    RosterVersionModel,
    RosterDayModel,
    DutyAssignmentModel,
    SectorModel,
    RosterSyncRecordModel,
)
from rostersync.infrastructure.repositories.duty_repository import DutyRepository
from rostersync.infrastructure.repositories.period_repository import PeriodRepository
from rostersync.shared.exceptions.domain import ValidationException
from rostersync.shared.exceptions.sync import (
    ConflictRetryException,
    PersistenceFailureException,
    UploadTimeoutException,
)


OWNER = "user-1"
ALL_MODELS = (
    RosterPeriodModel,
    RosterVersionModel,
    RosterDayModel,
    DutyAssignmentModel,
    SectorModel,
    RosterSyncRecordModel,
)


class _PgError(Exception):
    """Error de driver con SQLSTATE, como los que expone asyncpg."""

    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


def _flight_day(day="2024-01-05", check_in="08:00", dep="MFM", arr="HKG"):
    return {
        "date": day,
        "rawText": f"CX123 {dep}-{arr} C/I {check_in}",
        "duties": [{
            "dutyKind": "flight",
            "ruleId": "R1",
            "checkIn": check_in,
            "sectors": [{"flightNumber": "CX123", "depIATA": dep, "arrIATA": arr}],
        }],
    }


def _request(days, version_number=1, **extra) -> RosterUploadRequestDTO:
    return RosterUploadRequestDTO(
        crew_id="C1",
        period_start="2024-01-01",
        period_end="2024-01-31",
        version_number=version_number,
        source_file_name="roster.pdf",
        days=days,
        **extra
    )


def _use_cases(session_factory, **kwargs) -> RosterUploadUseCases:
    kwargs.setdefault("max_retries", 2)
    kwargs.setdefault("retry_backoff", 0)
    kwargs.setdefault("timeout", 10)
    return RosterUploadUseCases(session_factory, **kwargs)


async def _count(session_factory, model, *where) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model).where(*where))
        return result.scalar_one()


# ============================================================================
# Escenario principal
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_mfm_hkg_scenario(session_factory):
    use_cases = _use_cases(session_factory)

    first = await use_cases.upload_roster(OWNER, _request([_flight_day()]))
    assert first.days_written == 1
    assert first.sectors_written == 1

    again = await use_cases.upload_roster(OWNER, _request([_flight_day()]))
    assert again.days_written == 0
    assert again.days_unchanged == 1
    assert again.sectors_written == 0
    assert again.period_id == first.period_id
    assert again.version_id == first.version_id

    changed = await use_cases.upload_roster(OWNER, _request([_flight_day(check_in="09:15")], version_number=2))
    assert changed.days_written == 1
    assert changed.version_id != first.version_id

    async with session_factory() as session:
        result = await session.execute(
            select(RosterDayModel.source_version_id, RosterDayModel.is_active_for_date)
            .where(RosterDayModel.date == date(2024, 1, 5))
            .order_by(RosterDayModel.id)
        )
        rows = result.all()

    assert [(r.source_version_id, bool(r.is_active_for_date)) for r in rows] == [
        (first.version_id, False),
        (changed.version_id, True),
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_identical_reupload_leaves_store_unchanged(session_factory):
    use_cases = _use_cases(session_factory)
    days = [_flight_day("2024-01-05"), _flight_day("2024-01-06", arr="TPE")]

    await use_cases.upload_roster(OWNER, _request(days))
    counts_before = [await _count(session_factory, m) for m in ALL_MODELS if m is not RosterSyncRecordModel]

    result = await use_cases.upload_roster(OWNER, _request(days))
    counts_after = [await _count(session_factory, m) for m in ALL_MODELS if m is not RosterSyncRecordModel]

    assert result.days_written == 0
    assert result.days_unchanged == 2
    assert counts_before == counts_after
    # Cada upload confirmado deja su registro de auditoria
    assert await _count(session_factory, RosterSyncRecordModel) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_key_order_change_is_not_a_new_version_of_the_day(session_factory):
    use_cases = _use_cases(session_factory)
    await use_cases.upload_roster(OWNER, _request([_flight_day()]))

    reordered = {
        "rawText": "CX123 MFM-HKG C/I 08:00",
        "duties": [{
            "sectors": [{"arrIATA": "HKG", "depIATA": "MFM", "flightNumber": "CX123"}],
            "checkIn": "08:00",
            "ruleId": "R1",
            "dutyKind": "flight",
        }],
        "date": "2024-01-05",
    }
    result = await use_cases.upload_roster(OWNER, _request([reordered], version_number=2))

    assert result.days_written == 0
    assert await _count(session_factory, RosterDayModel) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_active_day_after_many_versions(session_factory):
    use_cases = _use_cases(session_factory)
    for version, check_in in enumerate(["06:00", "07:00", "08:00", "09:00"], start=1):
        await use_cases.upload_roster(OWNER, _request([_flight_day(check_in=check_in)], version_number=version))

    assert await _count(session_factory, RosterDayModel) == 4
    assert await _count(
        session_factory, RosterDayModel, RosterDayModel.is_active_for_date.is_(True)
    ) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_sector_is_dropped_but_duty_persists(session_factory):
    use_cases = _use_cases(session_factory)
    day = {
        "date": "2024-01-05",
        "rawText": "X",
        "duties": [{"dutyKind": "flight", "sectors": [{"depCode": "AB", "arrCode": "HKG"}]}],
    }

    result = await use_cases.upload_roster(OWNER, _request([day]))

    assert result.sectors_written == 0
    assert result.sectors_skipped == 1
    assert await _count(session_factory, DutyAssignmentModel) == 1
    assert await _count(session_factory, SectorModel) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_record_is_appended(session_factory):
    use_cases = _use_cases(session_factory)
    result = await use_cases.upload_roster(OWNER, _request([_flight_day()]))

    async with session_factory() as session:
        record = (await session.execute(select(RosterSyncRecordModel))).scalar_one()

    assert record.owner_id == OWNER
    assert record.period_id == result.period_id
    assert record.direction == "upload"
    assert record.status == "success"
    assert record.days_synced == 1
    assert record.sectors_synced == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_field_naming_switch_is_not_a_new_version_of_the_day(session_factory):
    use_cases = _use_cases(session_factory)
    await use_cases.upload_roster(OWNER, _request([_flight_day()]))

    snake_case = {
        "iso_date": "2024-01-05",
        "raw_text": "CX123 MFM-HKG C/I 08:00",
        "parsed": [{
            "duty_kind": "flight",
            "rule_id": "R1",
            "check_in": "08:00",
            "legs": [{"flight_number": "CX123", "dep_iata": "MFM", "arr_iata": "HKG"}],
        }],
    }
    result = await use_cases.upload_roster(OWNER, _request([snake_case], version_number=2))

    assert result.days_written == 0
    assert result.days_unchanged == 1
    assert await _count(session_factory, RosterDayModel) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_repeated_date_in_one_upload_counts_once(session_factory):
    use_cases = _use_cases(session_factory)
    days = [_flight_day(check_in="08:00"), _flight_day(check_in="09:15", arr="TPE")]

    result = await use_cases.upload_roster(OWNER, _request(days))

    assert result.days_written == 1
    assert result.days_unchanged == 0
    assert result.sectors_written == 1
    assert await _count(session_factory, RosterDayModel) == 1
    assert await _count(session_factory, SectorModel) == 1

    async with session_factory() as session:
        arr_codes = (await session.execute(select(SectorModel.arr_code))).scalars().all()
        record = (await session.execute(select(RosterSyncRecordModel))).scalar_one()

    assert arr_codes == ["TPE"]
    assert record.days_synced == 1
    assert record.sectors_synced == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_identical_repeated_date_counts_once(session_factory):
    use_cases = _use_cases(session_factory)

    result = await use_cases.upload_roster(OWNER, _request([_flight_day(), _flight_day()]))

    assert result.days_written == 1
    assert result.days_unchanged == 0
    assert result.sectors_written == 1
    assert await _count(session_factory, SectorModel) == 1


def test_upload_result_repeated_date_replaces_unchanged_entry():
    result = UploadResult(period_id=1, version_id=2)
    result.add(DayOutcome(date=date(2024, 1, 5), written=False, day_id=10))
    result.add(DayOutcome(date=date(2024, 1, 5), written=True, day_id=11, sectors_written=2, sectors_skipped=1))
    result.add(DayOutcome(date=date(2024, 1, 6), written=True, day_id=12, sectors_written=1))

    assert result.days_written == 2
    assert result.days_unchanged == 0
    assert result.sectors_written == 3
    assert result.sectors_skipped == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_uploads_for_same_date_keep_one_active_row(file_session_factory):
    use_cases = _use_cases(file_session_factory, max_retries=5, retry_backoff=0.01, timeout=60)
    check_ins = ["06:00", "07:00", "08:00", "09:00", "10:00", "11:00"]

    results = await asyncio.gather(*(
        use_cases.upload_roster(OWNER, _request([_flight_day(check_in=check_in)], version_number=number))
        for number, check_in in enumerate(check_ins, start=1)
    ))

    assert all(isinstance(result, UploadResult) for result in results)
    assert len({result.period_id for result in results}) == 1
    assert sum(result.days_written for result in results) == len(check_ins)

    assert await _count(file_session_factory, RosterPeriodModel) == 1
    assert await _count(file_session_factory, RosterDayModel) == len(check_ins)
    assert await _count(
        file_session_factory, RosterDayModel, RosterDayModel.is_active_for_date.is_(True)
    ) == 1
    assert await _count(file_session_factory, RosterSyncRecordModel) == len(check_ins)


# ============================================================================
# Atomicidad y fallos
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_failure_on_third_day_rolls_back_everything(session_factory, monkeypatch):
    use_cases = _use_cases(session_factory)
    days = [_flight_day(f"2024-01-0{i}") for i in range(1, 6)]

    original = DutyRepository.create_sector
    calls = {"n": 0}

    async def failing_create_sector(self, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 3:
            raise OperationalError("INSERT INTO sectors", {}, Exception("disk I/O error"))
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(DutyRepository, "create_sector", failing_create_sector)

    with pytest.raises(PersistenceFailureException) as exc_info:
        await use_cases.upload_roster(OWNER, _request(days))

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "No se pudo sincronizar el roster"
    assert exc_info.value.details == {}
    for model in ALL_MODELS:
        assert await _count(session_factory, model) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_conflict_is_retried_transparently(session_factory, monkeypatch):
    use_cases = _use_cases(session_factory, max_retries=2)

    original = PeriodRepository.resolve_period
    calls = {"n": 0}

    async def flaky_resolve(self, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT", {}, _PgError("could not serialize access", "40001"))
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(PeriodRepository, "resolve_period", flaky_resolve)

    result = await use_cases.upload_roster(OWNER, _request([_flight_day()]))

    assert calls["n"] == 2
    assert result.days_written == 1
    assert await _count(session_factory, RosterPeriodModel) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exhausted_retries_raise_conflict(session_factory, monkeypatch):
    use_cases = _use_cases(session_factory, max_retries=2)
    calls = {"n": 0}

    async def always_deadlock(self, *args, **kwargs):
        calls["n"] += 1
        raise OperationalError("INSERT", {}, _PgError("deadlock detected", "40P01"))

    monkeypatch.setattr(PeriodRepository, "resolve_period", always_deadlock)

    with pytest.raises(ConflictRetryException) as exc_info:
        await use_cases.upload_roster(OWNER, _request([_flight_day()]))

    assert calls["n"] == 3
    assert exc_info.value.status_code == 503
    assert exc_info.value.error_code == "CONFLICT_RETRY"
    assert await _count(session_factory, RosterPeriodModel) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_timeout_rolls_back(session_factory, monkeypatch):
    use_cases = _use_cases(session_factory, timeout=0.05)

    async def slow_materialize(self, *args, **kwargs):
        await asyncio.sleep(1)

    monkeypatch.setattr(DayMaterializer, "materialize", slow_materialize)

    with pytest.raises(UploadTimeoutException):
        await use_cases.upload_roster(OWNER, _request([_flight_day()]))

    for model in ALL_MODELS:
        assert await _count(session_factory, model) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_validation_happens_before_acquiring_a_session():
    def exploding_factory():
        raise AssertionError("no se debe pedir sesion")

    use_cases = RosterUploadUseCases(exploding_factory, max_retries=0, retry_backoff=0, timeout=1)

    with pytest.raises(ValidationException):
        await use_cases.upload_roster(OWNER, RosterUploadRequestDTO(crew_id="C1", days=[_flight_day()]))


# ============================================================================
# Clasificacion de conflictos
# ============================================================================

def test_classify_conflict_sqlstates():
    assert classify_conflict(OperationalError("x", {}, _PgError("serialize", "40001")))
    assert classify_conflict(OperationalError("x", {}, _PgError("deadlock", "40P01")))
    assert classify_conflict(OperationalError("x", {}, _PgError("syntax", "42601"))) is None


def test_classify_conflict_active_date_index():
    pg = IntegrityError("x", {}, Exception('duplicate key value violates unique constraint "uq_roster_days_active_date"'))
    sqlite = IntegrityError("x", {}, Exception("UNIQUE constraint failed: roster_days.period_id, roster_days.date"))
    other = IntegrityError(
        "x", {}, Exception("UNIQUE constraint failed: roster_days.period_id, roster_days.date, roster_days.source_version_id")
    )

    assert classify_conflict(pg)
    assert classify_conflict(sqlite)
    assert classify_conflict(other) is None


def test_classify_conflict_sqlite_locked_and_non_db_errors():
    assert classify_conflict(OperationalError("x", {}, Exception("database is locked")))
    assert classify_conflict(RuntimeError("boom")) is None
