import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from incident_desk.core.config import settings
from incident_desk.core.database import Database, get_db
from incident_desk.core.errors import BadRequest, NotFound
from incident_desk.core.procedures import (
    call_procedure,
    first_not_none,
    numeric_column,
    require_affected,
    require_row,
)
from incident_desk.core.results import ProcedureResult
from incident_desk.core.validation import (
    first_present,
    parse_int,
    parse_text,
    parse_timestamp,
    resolve_timezone,
)
from incident_desk.schemas.incident import IncidentContentIn, IncidentStateIn, MarkOldIn

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/incidencias",
    tags=["incidencias"],
    responses={404: {"description": "Not found"}},
)

MAX_TEXT_LENGTH = 100
TIMESTAMP_HINT = "Formato válido: ISO 8601 o 'YYYY-MM-DD HH:mm:ss'"


def _update_response(incident_id: int, result: ProcedureResult) -> dict:
    """Shared tail of the state/content updates: 500 on missing row or count, 404 on zero rows."""
    row = require_row(result)
    affected = require_affected(result)
    if affected == 0:
        raise NotFound("Incidencia no encontrada o sin cambios", id=incident_id)

    returned_id = first_not_none(row, "id_incidencia", default=incident_id)
    return {
        "id": returned_id,
        "id_incidencia": returned_id,
        "message": row.get("message"),
        "affectedRows": affected,
    }


async def _count_by_type(type_id_raw, db: Database) -> dict:
    type_id = parse_int(type_id_raw)
    if type_id is None:
        raise BadRequest("Parámetro 'typeId' inválido. Debe ser entero.", received=type_id_raw)

    result = await call_procedure(
        db, "sp_countIncidenciasByType", [type_id],
        failure_message="Error al contar incidencias",
    )
    return {"typeId": type_id, "total": numeric_column(result.first_row, "total")}


@router.get("/count/{typeId}")
async def count_incidencias_by_type(typeId: str, db: Database = Depends(get_db)):
    return await _count_by_type(typeId, db)


@router.get("/count")
async def count_incidencias_by_type_query(
    typeId: Optional[str] = Query(None),
    db: Database = Depends(get_db),
):
    return await _count_by_type(typeId, db)


@router.post("/{id}/state")
async def update_incidencia_state(
    id: str,
    payload: Optional[IncidentStateIn] = None,
    db: Database = Depends(get_db),
):
    payload = payload or IncidentStateIn()
    incident_id = parse_int(id)
    new_state_id = parse_int(payload.newStateId)

    if incident_id is None or new_state_id is None:
        raise BadRequest(
            "Parámetros inválidos. 'id' (URL) y 'newStateId' (body) deben ser enteros.",
            received={"id": id, "newStateId": payload.newStateId},
        )

    result = await call_procedure(
        db, "sp_updateIncidenciaState", [incident_id, new_state_id],
        failure_message="Error al actualizar el estado de la incidencia",
    )
    return _update_response(incident_id, result)


@router.get("/recent")
async def get_recent_incidencias(
    from_: Optional[str] = Query(None, alias="from"),
    date: Optional[str] = Query(None),
    db: Database = Depends(get_db),
):
    from_raw = first_present(from_, date)
    if not from_raw:
        raise BadRequest(
            "Falta el parámetro 'from' en query.",
            hint="Usa ?from=2025-09-01 00:00:00 o ?from=2025-09-01T00:00:00Z",
        )

    from_ts = parse_timestamp(from_raw, resolve_timezone(settings.TIMESTAMP_TIMEZONE))
    if from_ts is None:
        raise BadRequest("Fecha inválida en 'from'.", received=from_raw, hint=TIMESTAMP_HINT)

    result = await call_procedure(
        db, "sp_getRecentIncidencias", [from_ts],
        failure_message="Error al obtener incidencias recientes",
    )
    return {"from": from_ts, "count": len(result.rows), "data": result.rows}


@router.post("/{id}/content")
async def update_incidencia_content(
    id: str,
    payload: Optional[IncidentContentIn] = None,
    db: Database = Depends(get_db),
):
    payload = payload or IncidentContentIn()
    incident_id = parse_int(id)
    if incident_id is None:
        raise BadRequest("Parámetro 'id' inválido. Debe ser entero.", received=id)

    description = parse_text(payload.description, MAX_TEXT_LENGTH)
    if description.reason == "empty":
        raise BadRequest("Campo 'description' inválido. Debe ser texto no vacío.")
    if description.reason == "too_long":
        raise BadRequest(
            f"Campo 'description' excede {MAX_TEXT_LENGTH} caracteres.",
            length=description.length,
        )

    result = await call_procedure(
        db, "sp_updateIncidenciaContent", [incident_id, description.value],
        failure_message="Error al actualizar el contenido de la incidencia",
    )
    return _update_response(incident_id, result)


@router.get("/countEmpty")
async def count_empty_content_incidencias(db: Database = Depends(get_db)):
    result = await call_procedure(
        db, "sp_countEmptyContentIncidencias",
        failure_message="Error al contar incidencias sin contenido",
    )
    return {"total": numeric_column(result.first_row, "total")}


@router.get("/longest-content")
async def get_longest_incidencia(db: Database = Depends(get_db)):
    result = await call_procedure(
        db, "sp_getLongestIncidencia",
        failure_message="Error al obtener la incidencia con contenido más largo",
    )
    row = result.first_row
    if row is None:
        raise NotFound("No hay incidencias registradas")

    return {"length": len(row.get("tDescripcionIncidencia") or ""), "data": row}


async def _deactivate_by_state(state_id_raw, db: Database) -> dict:
    inactive_state_id = parse_int(state_id_raw)
    if inactive_state_id is None:
        raise BadRequest("Parámetro 'stateId' inválido. Debe ser entero.", received=state_id_raw)

    result = await call_procedure(
        db, "sp_deleteInactiveIncidencias", [inactive_state_id],
        failure_message="Error al desactivar incidencias",
    )
    total = first_not_none(result.first_row or {}, "total_desactivadas", "total")
    logger.info("Deactivated %s incidents with state %s", total, inactive_state_id)
    return {"inactiveStateId": inactive_state_id, "total_desactivadas": total}


@router.delete("/inactive/{stateId}")
async def delete_inactive_incidencias(stateId: str, db: Database = Depends(get_db)):
    return await _deactivate_by_state(stateId, db)


@router.delete("/inactive")
async def delete_inactive_incidencias_query(
    stateId: Optional[str] = Query(None),
    db: Database = Depends(get_db),
):
    return await _deactivate_by_state(stateId, db)


@router.post("/mark-old-inactive")
async def mark_old_incidencias_as_inactive(
    payload: Optional[MarkOldIn] = None,
    db: Database = Depends(get_db),
):
    payload = payload or MarkOldIn()
    days_old = parse_int(payload.daysOld, positive=True)
    inactive_state_id = parse_int(payload.inactiveStateId)

    if days_old is None or inactive_state_id is None:
        raise BadRequest(
            "Parámetros inválidos. 'daysOld' debe ser entero > 0 y 'inactiveStateId' entero.",
            received={"daysOld": payload.daysOld, "inactiveStateId": payload.inactiveStateId},
        )

    result = await call_procedure(
        db, "sp_markOldIncidenciasAsInactive", [days_old, inactive_state_id],
        failure_message="Error al marcar incidencias antiguas como inactivas",
    )
    total = first_not_none(result.first_row or {}, "total_actualizadas", "total")
    logger.info("Marked %s incidents older than %s days as state %s", total, days_old, inactive_state_id)
    return {
        "daysOld": days_old,
        "inactiveStateId": inactive_state_id,
        "total_actualizadas": total,
    }


@router.get("")
async def get_all_incidencias(db: Database = Depends(get_db)):
    result = await call_procedure(db, "sp_getAllIncidencias", failure_message="Error al listar incidencias")
    if not result.rows:
        raise NotFound("No se encontraron incidencias")
    return {"count": len(result.rows), "data": result.rows}


@router.get("/search")
async def search_incidencias_by_text(
    q: Optional[str] = Query(None),
    db: Database = Depends(get_db),
):
    query = parse_text(q, MAX_TEXT_LENGTH)
    if not query.ok:
        raise BadRequest(
            f"Parámetro 'q' inválido. Debe ser texto (1–{MAX_TEXT_LENGTH} caracteres).",
            received=q,
        )

    result = await call_procedure(
        db, "sp_searchIncidenciasByText", [query.value],
        failure_message="Error al buscar incidencias por texto",
    )
    if not result.rows:
        raise NotFound("No se encontraron incidencias que coincidan", q=query.value)
    return {"q": query.value, "count": len(result.rows), "data": result.rows}
