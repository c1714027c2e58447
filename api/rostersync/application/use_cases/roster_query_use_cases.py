"""
Casos de uso de consulta y borrado de rosters.
"""
from datetime import date
from typing import Optional, List, Dict, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from rostersync.application.dto.roster_dto import (
    RosterPeriodDTO,
    RosterPeriodListDTO,
    RosterVersionDTO,
    DateChangeDTO,
    RosterPeriodDetailDTO,
    RosterDayDTO,
    RosterDayListDTO,
    RosterDayHistoryDTO,
    SectorDTO,
    DutyAssignmentDTO,
    DutyListDTO,
    SyncRecordDTO,
    SyncHistoryDTO,
    DeletedPeriodDTO,
)
from rostersync.core.config import settings
from rostersync.infrastructure.database.models import RosterPeriodModel
from rostersync.infrastructure.repositories.day_repository import DayRepository
from rostersync.infrastructure.repositories.duty_repository import DutyRepository
from rostersync.infrastructure.repositories.period_repository import PeriodRepository
from rostersync.infrastructure.repositories.sync_record_repository import SyncRecordRepository
from rostersync.shared.exceptions.domain import EntityNotFoundException
from rostersync.shared.utils.audit_logger import AuditLogger


class RosterQueryUseCases:
    """
    Proyecciones de lectura del roster de un usuario.

    Todas las operaciones filtran por owner_id: un periodo ajeno se
    reporta como inexistente.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.periods = PeriodRepository(db)
        self.days = DayRepository(db)
        self.duties = DutyRepository(db)
        self.sync_records = SyncRecordRepository(db)

    async def list_periods(self, owner_id: str) -> RosterPeriodListDTO:
        """
        Ultimo periodo por (tripulante, mes de inicio), segun last_updated_at.

        Los periodos vienen ordenados por period_start descendente.
        """
        rows = await self.periods.list_with_stats(owner_id)

        latest: Dict[Tuple[str, int, int], Tuple[RosterPeriodModel, int, object]] = {}
        for period, total_days, latest_version_at in rows:
            key = (period.crew_id, period.period_start.year, period.period_start.month)
            current = latest.get(key)
            if current is None or _updated_key(period) > _updated_key(current[0]):
                latest[key] = (period, total_days, latest_version_at)

        selected = sorted(latest.values(), key=lambda row: row[0].period_start, reverse=True)
        return RosterPeriodListDTO(
            periods=[_period_dto(period, total, latest_at) for period, total, latest_at in selected]
        )

    async def get_period_detail(self, owner_id: str, period_id: int) -> RosterPeriodDetailDTO:
        """Periodo con sus versiones y las fechas que cambiaron entre versiones."""
        period = await self._get_period(owner_id, period_id)
        versions = await self.periods.list_versions(period.id)
        changes = await self.days.list_changed_dates(period.id)

        return RosterPeriodDetailDTO(
            period=_period_dto(period),
            versions=[RosterVersionDTO.model_validate(v) for v in versions],
            changes=[DateChangeDTO(date=d, version_count=count) for d, count in changes],
        )

    async def get_days(
        self,
        owner_id: str,
        period_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> RosterDayListDTO:
        """Dias activos del periodo en el rango indicado."""
        period = await self._get_period(owner_id, period_id)
        rows = await self.days.list_active(period.id, start_date, end_date)
        return RosterDayListDTO(days=[RosterDayDTO(**row) for row in rows])

    async def get_day_history(self, owner_id: str, period_id: int, day: date) -> RosterDayHistoryDTO:
        """Todas las versiones materializadas de una fecha."""
        period = await self._get_period(owner_id, period_id)
        rows = await self.days.list_history(period.id, day)
        return RosterDayHistoryDTO(versions=[RosterDayDTO(**row) for row in rows])

    async def get_day_duties(self, owner_id: str, day_id: int) -> DutyListDTO:
        """Duties de un dia activo con sus sectores."""
        log = AuditLogger.request_logger("get-day-duties", owner_id=owner_id)

        day = await self.days.get_active_for_owner(day_id, owner_id)
        if day is None:
            raise EntityNotFoundException("RosterDay", day_id)

        rows = await self.duties.list_with_sectors(day.id)
        duties: List[DutyAssignmentDTO] = []
        for row in rows:
            dto = DutyAssignmentDTO.model_validate(row["duty"])
            dto.sectors = [SectorDTO.model_validate(s) for s in row["sectors"]]
            duties.append(dto)

        log.info(f"Duties obtenidos: dia={day_id} cantidad={len(duties)}")
        return DutyListDTO(duties=duties)

    async def get_sync_history(self, owner_id: str, limit: Optional[int] = None) -> SyncHistoryDTO:
        """Historial de sincronizaciones, mas reciente primero."""
        rows = await self.sync_records.list_for_owner(
            owner_id, limit or settings.SYNC_HISTORY_DEFAULT_LIMIT
        )
        return SyncHistoryDTO(
            sync_history=[
                SyncRecordDTO(
                    id=record.id,
                    period_id=record.period_id,
                    direction=record.direction,
                    days_synced=record.days_synced,
                    sectors_synced=record.sectors_synced,
                    status=record.status,
                    created_at=record.created_at,
                    period_start=period_start,
                    period_end=period_end,
                )
                for record, period_start, period_end in rows
            ]
        )

    async def delete_period(self, owner_id: str, period_id: int) -> DeletedPeriodDTO:
        """Elimina un periodo del usuario y todo lo que cuelga de el."""
        log = AuditLogger.request_logger("delete-period", owner_id=owner_id)

        period = await self._get_period(owner_id, period_id)
        window = {
            "crew_id": period.crew_id,
            "period_start": period.period_start.isoformat(),
            "period_end": period.period_end.isoformat(),
        }
        counts = await self.periods.delete_period(period)

        log.info(f"Periodo eliminado: id={period_id} {counts}")
        return DeletedPeriodDTO(deleted={**window, **counts})

    async def _get_period(self, owner_id: str, period_id: int) -> RosterPeriodModel:
        period = await self.periods.get_by_id(period_id, owner_id)
        if period is None:
            raise EntityNotFoundException("RosterPeriod", period_id)
        return period


def _updated_key(period: RosterPeriodModel):
    # Sin last_updated_at se ordena primero
    return (period.last_updated_at is not None, period.last_updated_at or 0, period.id)


def _period_dto(period: RosterPeriodModel, total_days: int = 0, latest_version_at=None) -> RosterPeriodDTO:
    return RosterPeriodDTO(
        id=period.id,
        crew_id=period.crew_id,
        period_start=period.period_start,
        period_end=period.period_end,
        created_at=period.created_at,
        last_updated_at=period.last_updated_at,
        total_days=total_days,
        latest_version_at=latest_version_at,
    )
