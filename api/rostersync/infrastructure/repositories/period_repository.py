"""
Repositorio de periodos y versiones del roster.

resolve_period y upsert_version usan upserts atomicos en una sola
sentencia, de modo que dos uploads concurrentes nunca crean duplicados
ni fallan por violacion de unicidad.
"""
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from rostersync.domain.entities import RosterUpload
from rostersync.infrastructure.database.dialect import upsert_insert
from rostersync.infrastructure.database.models import (
    RosterPeriodModel,
    RosterVersionModel,
    RosterDayModel,
    DutyAssignmentModel,
    SectorModel,
)
from rostersync.shared.utils.date_utils import utc_now


class PeriodRepository:
    """
    Acceso a roster_periods y roster_versions.

    Todas las consultas de lectura filtran por owner_id.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Escritura (upload)
    # =========================================================================

    async def resolve_period(self, owner_id: str, crew_id: str, period_start, period_end) -> int:
        """
        Obtiene o crea el periodo de la ventana y actualiza last_updated_at.

        Returns:
            int: ID del periodo
        """
        now = utc_now()
        stmt = upsert_insert(self.db, RosterPeriodModel.__table__).values(
            owner_id=owner_id,
            crew_id=crew_id,
            period_start=period_start,
            period_end=period_end,
            created_at=now,
            last_updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["owner_id", "crew_id", "period_start", "period_end"],
            set_={"last_updated_at": now},
        ).returning(RosterPeriodModel.__table__.c.id)

        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def upsert_version(self, period_id: int, upload: RosterUpload, payload_digest: str) -> int:
        """
        Obtiene o crea la version; en conflicto sobrescribe payload y metadatos.

        Returns:
            int: ID de la version
        """
        now = utc_now()
        values = {
            "source_file_name": upload.source_file_name,
            "source_file_size": upload.source_file_size,
            "json_data": upload.payload,
            "payload_digest": payload_digest,
            "name": upload.name,
            "flight_time": upload.flight_time,
            "generated_at": upload.generated_at,
            "app_version": upload.app_version,
            "device_model": upload.device_model,
            "os_version": upload.os_version,
            "parsed_at": now,
        }
        stmt = upsert_insert(self.db, RosterVersionModel.__table__).values(
            period_id=period_id,
            version_number=upload.version_number,
            **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["period_id", "version_number"],
            set_=values,
        ).returning(RosterVersionModel.__table__.c.id)

        result = await self.db.execute(stmt)
        return result.scalar_one()

    # =========================================================================
    # Lectura
    # =========================================================================

    async def get_by_id(self, period_id: int, owner_id: str) -> Optional[RosterPeriodModel]:
        """Obtiene un periodo del usuario o None."""
        result = await self.db.execute(
            select(RosterPeriodModel).where(
                RosterPeriodModel.id == period_id,
                RosterPeriodModel.owner_id == owner_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_with_stats(self, owner_id: str) -> List[Tuple[RosterPeriodModel, int, Any]]:
        """
        Lista los periodos del usuario con sus agregados.

        Returns:
            Lista de (periodo, dias activos, parsed_at de la ultima version)
        """
        active_days = (
            select(
                RosterDayModel.period_id.label("period_id"),
                func.count(RosterDayModel.id).label("total_days"),
            )
            .where(RosterDayModel.is_active_for_date.is_(True))
            .group_by(RosterDayModel.period_id)
            .subquery()
        )
        latest_version = (
            select(
                RosterVersionModel.period_id.label("period_id"),
                func.max(RosterVersionModel.parsed_at).label("latest_version_at"),
            )
            .group_by(RosterVersionModel.period_id)
            .subquery()
        )

        stmt = (
            select(
                RosterPeriodModel,
                func.coalesce(active_days.c.total_days, 0),
                latest_version.c.latest_version_at,
            )
            .outerjoin(active_days, active_days.c.period_id == RosterPeriodModel.id)
            .outerjoin(latest_version, latest_version.c.period_id == RosterPeriodModel.id)
            .where(RosterPeriodModel.owner_id == owner_id)
            .order_by(RosterPeriodModel.period_start.desc())
        )
        result = await self.db.execute(stmt)
        return [(row[0], int(row[1] or 0), row[2]) for row in result.all()]

    async def list_versions(self, period_id: int) -> List[RosterVersionModel]:
        """Versiones del periodo, la mas reciente primero."""
        result = await self.db.execute(
            select(RosterVersionModel)
            .where(RosterVersionModel.period_id == period_id)
            .order_by(RosterVersionModel.version_number.desc())
        )
        return list(result.scalars().all())

    # =========================================================================
    # Borrado
    # =========================================================================

    async def delete_period(self, period: RosterPeriodModel) -> Dict[str, int]:
        """
        Elimina el periodo con versiones, dias, duties y sectores.

        Se borra de hojas a raiz con sentencias explicitas para no depender
        de que el motor tenga activado ON DELETE CASCADE (SQLite no lo hace
        sin PRAGMA foreign_keys).

        Returns:
            Dict con la cantidad de filas borradas por tabla
        """
        day_ids = select(RosterDayModel.id).where(RosterDayModel.period_id == period.id)
        duty_ids = select(DutyAssignmentModel.id).where(DutyAssignmentModel.roster_day_id.in_(day_ids))

        statements = [
            ("sectors", delete(SectorModel).where(SectorModel.duty_assignment_id.in_(duty_ids))),
            ("duties", delete(DutyAssignmentModel).where(DutyAssignmentModel.roster_day_id.in_(day_ids))),
            ("days", delete(RosterDayModel).where(RosterDayModel.period_id == period.id)),
            ("versions", delete(RosterVersionModel).where(RosterVersionModel.period_id == period.id)),
            ("periods", delete(RosterPeriodModel).where(RosterPeriodModel.id == period.id)),
        ]
        counts: Dict[str, int] = {}
        for name, statement in statements:
            result = await self.db.execute(statement.execution_options(synchronize_session=False))
            counts[name] = result.rowcount

        counts.pop("periods")
        logger.info(f"Periodo {period.id} eliminado: {counts}")
        return counts
