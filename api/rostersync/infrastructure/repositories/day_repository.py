"""
Repositorio de dias del roster (roster_days).

Mantiene la invariante de un unico dia activo por (periodo, fecha):
desactivar siempre ocurre antes de insertar o reactivar la fila nueva.
"""
from datetime import date
from typing import Optional, List, Tuple, Any, Dict

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from rostersync.domain.entities import ActiveDaySnapshot, DayEntry
from rostersync.infrastructure.database.dialect import upsert_insert
from rostersync.infrastructure.database.models import (
    RosterDayModel,
    RosterPeriodModel,
    RosterVersionModel,
)
from rostersync.shared.utils.date_utils import utc_now


class DayRepository:
    """Acceso a roster_days."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Escritura (upload)
    # =========================================================================

    async def get_active_snapshot(self, period_id: int, day: date) -> Optional[ActiveDaySnapshot]:
        """Lee el dia activo de la fecha, si existe."""
        result = await self.db.execute(
            select(
                RosterDayModel.id,
                RosterDayModel.source_version_id,
                RosterDayModel.raw_text,
                RosterDayModel.content_digest,
            ).where(
                RosterDayModel.period_id == period_id,
                RosterDayModel.date == day,
                RosterDayModel.is_active_for_date.is_(True),
            )
        )
        row = result.first()
        if row is None:
            return None
        return ActiveDaySnapshot(
            id=row.id,
            source_version_id=row.source_version_id,
            raw_text=row.raw_text or "",
            content_digest=row.content_digest,
        )

    async def deactivate_active(self, period_id: int, day: date) -> int:
        """
        Marca como inactivo todo dia activo de la fecha.

        Returns:
            int: Filas desactivadas
        """
        result = await self.db.execute(
            update(RosterDayModel)
            .where(
                RosterDayModel.period_id == period_id,
                RosterDayModel.date == day,
                RosterDayModel.is_active_for_date.is_(True),
            )
            .values(is_active_for_date=False, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def upsert_day(
        self,
        period_id: int,
        version_id: int,
        entry: DayEntry,
        content_digest: str,
    ) -> Tuple[int, bool]:
        """
        Inserta el dia como activo para la version.

        Si la version ya habia materializado la fecha (re-upload del mismo
        version_number) la fila se sobrescribe y se reactiva.

        Returns:
            Tuple[int, bool]: (ID del dia, True si la fila ya existia)
        """
        existing = await self.db.execute(
            select(RosterDayModel.id).where(
                RosterDayModel.period_id == period_id,
                RosterDayModel.date == entry.date,
                RosterDayModel.source_version_id == version_id,
            )
        )
        existed = existing.first() is not None

        now = utc_now()
        values = {
            "day_number": entry.day_number,
            "weekday": entry.weekday,
            "iso_date": entry.iso_date,
            "raw_text": entry.raw_text,
            "parsed_data": entry.raw_duties,
            "content_digest": content_digest,
            "is_active_for_date": True,
            "updated_at": now,
        }
        stmt = upsert_insert(self.db, RosterDayModel.__table__).values(
            period_id=period_id,
            source_version_id=version_id,
            date=entry.date,
            created_at=now,
            **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["period_id", "date", "source_version_id"],
            set_=values,
        ).returning(RosterDayModel.__table__.c.id)

        result = await self.db.execute(stmt)
        return result.scalar_one(), existed

    # =========================================================================
    # Lectura
    # =========================================================================

    async def list_active(
        self,
        period_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Dias activos del periodo en el rango, con datos de su version.

        has_changes es True cuando la fecha tiene mas de una fila.
        """
        other = aliased(RosterDayModel)
        row_count = (
            select(func.count(other.id))
            .where(other.period_id == RosterDayModel.period_id, other.date == RosterDayModel.date)
            .correlate(RosterDayModel)
            .scalar_subquery()
        )

        stmt = (
            select(
                RosterDayModel,
                RosterVersionModel.version_number,
                RosterVersionModel.source_file_name,
                RosterVersionModel.parsed_at,
                row_count.label("row_count"),
            )
            .join(RosterVersionModel, RosterVersionModel.id == RosterDayModel.source_version_id)
            .where(
                RosterDayModel.period_id == period_id,
                RosterDayModel.is_active_for_date.is_(True),
            )
        )
        if start_date:
            stmt = stmt.where(RosterDayModel.date >= start_date)
        if end_date:
            stmt = stmt.where(RosterDayModel.date <= end_date)
        stmt = stmt.order_by(RosterDayModel.date.asc())

        result = await self.db.execute(stmt)
        return [
            _day_row(day, version_number, file_name, parsed_at, has_changes=count > 1)
            for day, version_number, file_name, parsed_at, count in result.all()
        ]

    async def list_history(self, period_id: int, day: date) -> List[Dict[str, Any]]:
        """Todas las filas de la fecha, version mas reciente primero."""
        stmt = (
            select(
                RosterDayModel,
                RosterVersionModel.version_number,
                RosterVersionModel.source_file_name,
                RosterVersionModel.parsed_at,
            )
            .join(RosterVersionModel, RosterVersionModel.id == RosterDayModel.source_version_id)
            .where(RosterDayModel.period_id == period_id, RosterDayModel.date == day)
            .order_by(RosterVersionModel.version_number.desc())
        )
        result = await self.db.execute(stmt)
        rows = result.all()
        return [
            _day_row(day_model, version_number, file_name, parsed_at, has_changes=len(rows) > 1)
            for day_model, version_number, file_name, parsed_at in rows
        ]

    async def list_changed_dates(self, period_id: int) -> List[Tuple[date, int]]:
        """Fechas con mas de una version materializada."""
        version_count = func.count(func.distinct(RosterDayModel.source_version_id))
        result = await self.db.execute(
            select(RosterDayModel.date, version_count)
            .where(RosterDayModel.period_id == period_id)
            .group_by(RosterDayModel.date)
            .having(version_count > 1)
            .order_by(RosterDayModel.date)
        )
        return [(row[0], int(row[1])) for row in result.all()]

    async def get_active_for_owner(self, day_id: int, owner_id: str) -> Optional[RosterDayModel]:
        """Dia activo si pertenece a un periodo del usuario."""
        result = await self.db.execute(
            select(RosterDayModel)
            .join(RosterPeriodModel, RosterPeriodModel.id == RosterDayModel.period_id)
            .where(
                RosterDayModel.id == day_id,
                RosterPeriodModel.owner_id == owner_id,
                RosterDayModel.is_active_for_date.is_(True),
            )
        )
        return result.scalar_one_or_none()


def _day_row(day: RosterDayModel, version_number, file_name, parsed_at, has_changes: bool) -> Dict[str, Any]:
    return {
        "id": day.id,
        "date": day.date,
        "day_number": day.day_number,
        "weekday": day.weekday,
        "iso_date": day.iso_date,
        "raw_text": day.raw_text or "",
        "parsed_data": day.parsed_data,
        "is_active_for_date": bool(day.is_active_for_date),
        "updated_at": day.updated_at,
        "version_number": version_number,
        "source_file_name": file_name,
        "version_parsed_at": parsed_at,
        "has_changes": has_changes,
    }
