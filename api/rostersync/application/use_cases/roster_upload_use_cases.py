"""
Caso de uso de upload de rosters.

Orquesta un upload completo dentro de una unica transaccion por intento:
periodo -> version -> dias (comparar/materializar) -> duties/sectores ->
registro de sincronizacion. Cualquier fallo revierte el intento entero.
"""
import asyncio
from typing import Optional

from loguru import logger
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rostersync.application.dto.roster_dto import RosterUploadRequestDTO
from rostersync.application.services.content_comparator import payload_digest
from rostersync.application.services.day_materializer import DayMaterializer
from rostersync.application.services.roster_normalizer import RosterNormalizer
from rostersync.core.config import settings
from rostersync.domain.entities import RosterUpload, UploadResult
from rostersync.infrastructure.repositories.day_repository import DayRepository
from rostersync.infrastructure.repositories.duty_repository import DutyRepository
from rostersync.infrastructure.repositories.period_repository import PeriodRepository
from rostersync.infrastructure.repositories.sync_record_repository import SyncRecordRepository
from rostersync.shared.exceptions.base import AppException
from rostersync.shared.exceptions.sync import (
    ConflictRetryException,
    PersistenceFailureException,
    UploadTimeoutException,
)
from rostersync.shared.utils.audit_logger import AuditLogger


# SQLSTATE de PostgreSQL que indican carrera con otra transaccion
RETRYABLE_SQLSTATES = {
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
}

ACTIVE_DATE_INDEX = "uq_roster_days_active_date"


def classify_conflict(exc: BaseException) -> Optional[str]:
    """
    Determina si un error de BD es un conflicto reintentable.

    Returns:
        Motivo del conflicto, o None si el error no es reintentable
    """
    if not isinstance(exc, DBAPIError):
        return None

    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return f"sqlstate {sqlstate}"

    message = str(orig)
    if isinstance(exc, IntegrityError):
        # PostgreSQL reporta el nombre del indice; SQLite solo las columnas
        if ACTIVE_DATE_INDEX in message or message.rstrip().endswith(
            "roster_days.period_id, roster_days.date"
        ):
            return "active date index violation"

    if "database is locked" in message.lower():
        return "database is locked"

    return None


class RosterUploadUseCases:
    """
    Upload transaccional de rosters.

    Recibe la fabrica de sesiones (no una sesion abierta): cada intento
    usa su propia sesion y su propia transaccion.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.normalizer = RosterNormalizer()
        self.max_retries = settings.UPLOAD_MAX_RETRIES if max_retries is None else max_retries
        self.retry_backoff = (
            settings.UPLOAD_RETRY_BACKOFF_SECONDS if retry_backoff is None else retry_backoff
        )
        self.timeout = settings.UPLOAD_TIMEOUT_SECONDS if timeout is None else timeout

    async def upload_roster(self, owner_id: str, request: RosterUploadRequestDTO) -> UploadResult:
        """
        Sincroniza una version del roster.

        Args:
            owner_id: Usuario autenticado
            request: Payload del cliente

        Returns:
            UploadResult con los contadores del upload

        Raises:
            ValidationException: Request invalido (sin tocar la base)
            ConflictRetryException: Conflictos agotaron los reintentos
            UploadTimeoutException: El intento excedio el timeout
            PersistenceFailureException: Cualquier otro fallo
        """
        log = AuditLogger.request_logger("roster-upload", owner_id=owner_id)

        # La validacion ocurre antes de pedir una sesion
        upload = self.normalizer.normalize_upload(request)
        digest = payload_digest(upload.payload)

        log.info(
            f"Upload iniciado: crew={upload.crew_id} "
            f"{upload.period_start}..{upload.period_end} v{upload.version_number} "
            f"dias={len(upload.days)}"
        )

        attempts = self.max_retries + 1
        last_reason: Optional[str] = None

        for attempt in range(1, attempts + 1):
            try:
                result = await asyncio.wait_for(
                    self._run_attempt(owner_id, upload, digest),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                log.error(f"Upload excedio el timeout de {self.timeout}s (intento {attempt})")
                raise UploadTimeoutException(self.timeout)
            except AppException:
                raise
            except Exception as e:
                reason = classify_conflict(e)
                if reason is None:
                    log.exception(f"Upload fallido en intento {attempt}: {e}")
                    raise PersistenceFailureException(
                        internal_detail=str(e),
                        expose_detail=settings.EXPOSE_ERROR_DETAILS,
                    ) from e

                last_reason = reason
                log.warning(f"Conflicto en intento {attempt}/{attempts}: {reason}")
                if attempt < attempts:
                    await asyncio.sleep(self.retry_backoff * attempt)
                continue

            log.info(
                f"Upload completado: period={result.period_id} version={result.version_id} "
                f"escritos={result.days_written} sin_cambios={result.days_unchanged} "
                f"sectores={result.sectors_written} omitidos={result.sectors_skipped}"
            )
            return result

        log.error(f"Upload abortado tras {attempts} intentos por conflicto: {last_reason}")
        raise ConflictRetryException(attempts=attempts, reason=last_reason)

    async def _run_attempt(self, owner_id: str, upload: RosterUpload, digest: str) -> UploadResult:
        """Un intento completo: commit al final o rollback ante cualquier salida."""
        async with self.session_factory() as session:
            async with session.begin():
                return await self._sync(session, owner_id, upload, digest)

    async def _sync(
        self,
        session: AsyncSession,
        owner_id: str,
        upload: RosterUpload,
        digest: str,
    ) -> UploadResult:
        periods = PeriodRepository(session)
        days = DayRepository(session)
        materializer = DayMaterializer(days, DutyRepository(session))

        period_id = await periods.resolve_period(
            owner_id, upload.crew_id, upload.period_start, upload.period_end
        )
        version_id = await periods.upsert_version(period_id, upload, digest)

        result = UploadResult(period_id=period_id, version_id=version_id)
        for entry in upload.days:
            outcome = await materializer.materialize(period_id, version_id, entry)
            if not outcome.written:
                logger.debug(f"Dia {entry.date} sin cambios, se omite")
            result.add(outcome)

        await SyncRecordRepository(session).append(
            owner_id=owner_id,
            period_id=period_id,
            days_synced=result.days_written,
            sectors_synced=result.sectors_written,
        )
        return result
