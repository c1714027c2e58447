"""
Endpoints de sincronizacion y consulta de rosters.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from rostersync.application.dto.roster_dto import (
    RosterUploadRequestDTO,
    RosterUploadResponseDTO,
    RosterPeriodListDTO,
    RosterPeriodDetailDTO,
    RosterDayListDTO,
    RosterDayHistoryDTO,
    DutyListDTO,
    SyncHistoryDTO,
    DeletedPeriodDTO,
)
from rostersync.application.use_cases.roster_upload_use_cases import RosterUploadUseCases
from rostersync.application.use_cases.roster_query_use_cases import RosterQueryUseCases
from rostersync.api.v1.dependencies.auth_deps import get_current_owner_id
from rostersync.api.v1.dependencies.use_case_deps import (
    get_roster_upload_use_cases,
    get_roster_query_use_cases,
)


router = APIRouter(prefix="/roster", tags=["Roster"])


@router.post(
    "/upload",
    response_model=RosterUploadResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Sincronizar una version del roster"
)
async def upload_roster(
    dto: RosterUploadRequestDTO,
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterUploadUseCases = Depends(get_roster_upload_use_cases),
) -> RosterUploadResponseDTO:
    """
    Guarda la version y materializa solo los dias cuyo contenido cambio.

    Todo el upload es atomico: o se aplica completo o no se aplica nada.
    """
    result = await use_cases.upload_roster(owner_id, dto)
    return RosterUploadResponseDTO(
        period_id=result.period_id,
        version_id=result.version_id,
        days_written=result.days_written,
        days_unchanged=result.days_unchanged,
        sectors_written=result.sectors_written,
        sectors_skipped=result.sectors_skipped,
    )


@router.get(
    "/periods",
    response_model=RosterPeriodListDTO,
    summary="Listar periodos (ultimo por mes y tripulante)"
)
async def list_periods(
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> RosterPeriodListDTO:
    return await use_cases.list_periods(owner_id)


@router.get(
    "/periods/{period_id}",
    response_model=RosterPeriodDetailDTO,
    summary="Detalle de un periodo"
)
async def get_period(
    period_id: int,
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> RosterPeriodDetailDTO:
    return await use_cases.get_period_detail(owner_id, period_id)


@router.delete(
    "/periods/{period_id}",
    response_model=DeletedPeriodDTO,
    summary="Eliminar un periodo y todas sus versiones"
)
async def delete_period(
    period_id: int,
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> DeletedPeriodDTO:
    return await use_cases.delete_period(owner_id, period_id)


@router.get(
    "/days",
    response_model=RosterDayListDTO,
    summary="Dias activos de un periodo"
)
async def get_days(
    period_id: int = Query(..., description="ID del periodo"),
    start_date: Optional[date] = Query(None, description="Desde (inclusive)"),
    end_date: Optional[date] = Query(None, description="Hasta (inclusive)"),
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> RosterDayListDTO:
    return await use_cases.get_days(owner_id, period_id, start_date, end_date)


@router.get(
    "/days/{period_id}/{day}/history",
    response_model=RosterDayHistoryDTO,
    summary="Historial de versiones de una fecha"
)
async def get_day_history(
    period_id: int,
    day: date,
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> RosterDayHistoryDTO:
    return await use_cases.get_day_history(owner_id, period_id, day)


@router.get(
    "/days/{day_id}/duties",
    response_model=DutyListDTO,
    summary="Duties de un dia activo"
)
async def get_day_duties(
    day_id: int,
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> DutyListDTO:
    return await use_cases.get_day_duties(owner_id, day_id)


@router.get(
    "/sync-history",
    response_model=SyncHistoryDTO,
    summary="Historial de sincronizaciones"
)
async def get_sync_history(
    limit: Optional[int] = Query(None, ge=1, le=500, description="Cantidad maxima de registros"),
    owner_id: str = Depends(get_current_owner_id),
    use_cases: RosterQueryUseCases = Depends(get_roster_query_use_cases),
) -> SyncHistoryDTO:
    return await use_cases.get_sync_history(owner_id, limit)
