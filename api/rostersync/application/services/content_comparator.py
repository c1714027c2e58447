"""
Deteccion de cambios entre el dia activo y el dia entrante.

La comparacion de duties es estructural y se hace sobre los registros
canonicos (alias ya resueltos), serializados de forma canonica (claves
ordenadas, separadores fijos). Ni el orden de claves ni el nombre de
campo que use el cliente cuentan como cambio.
"""
import hashlib
import json
from dataclasses import asdict
from typing import Any, List, Optional, Sequence

from rostersync.domain.entities import ActiveDaySnapshot, DutyEntry


def canonical_json(value: Any) -> str:
    """Serializacion canonica y determinista de una estructura JSON."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def duty_material(duties: Sequence[DutyEntry]) -> List[dict]:
    """Forma comparable de los duties canonicos de un dia."""
    return [asdict(duty) for duty in duties]


def content_digest(raw_text: str, duties: Any) -> str:
    """sha256 hex del contenido de un dia (texto crudo + duties canonicos)."""
    material = f"{raw_text or ''}\x1f{canonical_json(duties)}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def payload_digest(payload: Any) -> str:
    """sha256 hex del payload completo de una version."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def has_changed(previous: Optional[ActiveDaySnapshot], raw_text: str, duties: Any) -> bool:
    """
    True si el dia entrante difiere del activo.

    Sin dia activo siempre hay cambio. raw_text se compara como string
    opaco; duties por el digest de su forma canonica, guardado en la
    fila activa.
    """
    if previous is None:
        return True
    if (previous.raw_text or "") != (raw_text or ""):
        return True
    return previous.content_digest != content_digest(raw_text, duties)
