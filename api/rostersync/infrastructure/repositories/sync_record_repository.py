"""
Repositorio del historial de sincronizaciones (append-only).
"""
from typing import List, Tuple, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rostersync.infrastructure.database.models import RosterSyncRecordModel, RosterPeriodModel
from rostersync.shared.utils.date_utils import utc_now


class SyncRecordRepository:
    """Acceso a roster_sync_records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        owner_id: str,
        period_id: int,
        days_synced: int,
        sectors_synced: int,
        direction: str = "upload",
        status: str = "success",
    ) -> int:
        """
        Agrega un registro de sincronizacion.

        Returns:
            int: ID del registro
        """
        record = RosterSyncRecordModel(
            owner_id=owner_id,
            period_id=period_id,
            direction=direction,
            days_synced=days_synced,
            sectors_synced=sectors_synced,
            status=status,
            created_at=utc_now(),
        )
        self.db.add(record)
        await self.db.flush()
        return record.id

    async def list_for_owner(self, owner_id: str, limit: int) -> List[Tuple[RosterSyncRecordModel, Any, Any]]:
        """
        Registros del usuario, mas reciente primero, con la ventana del periodo.

        Si el periodo fue borrado la ventana viene en None.
        """
        result = await self.db.execute(
            select(
                RosterSyncRecordModel,
                RosterPeriodModel.period_start,
                RosterPeriodModel.period_end,
            )
            .outerjoin(RosterPeriodModel, RosterPeriodModel.id == RosterSyncRecordModel.period_id)
            .where(RosterSyncRecordModel.owner_id == owner_id)
            .order_by(RosterSyncRecordModel.created_at.desc(), RosterSyncRecordModel.id.desc())
            .limit(limit)
        )
        return [(row[0], row[1], row[2]) for row in result.all()]
