import logging

from fastapi import APIRouter, Depends, status

from incident_desk.core.database import Database, get_db
from incident_desk.core.errors import BadRequest, NotFound
from incident_desk.core.procedures import call_procedure, run_query, unexpected_format
from incident_desk.core.security import get_password_hash
from incident_desk.core.validation import parse_int
from incident_desk.schemas.user import UserIn

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)

USER_COLUMNS = (
    "eCodUser, tNombreCompletoUsuario, eMatricula, eEdad, tGenero, "
    "tCorreoInstitucional, tTelefono, tDireccion"
)
USER_NOT_FOUND = "Usuario no encontrado"


def _user_id(raw: str) -> int:
    user_id = parse_int(raw)
    if user_id is None:
        raise BadRequest("Parámetro 'id' inválido. Debe ser entero.", received=raw)
    return user_id


def _rows(result) -> list:
    if not isinstance(result, list):
        raise unexpected_format(result)
    return result


def _status(result) -> dict:
    if not isinstance(result, dict) or not isinstance(result.get("affectedRows"), int):
        raise unexpected_format(result)
    return result


# Stored-procedure variants: rows are returned as the procedures shape them

@router.get("/sp/all")
async def get_all_users_sp(db: Database = Depends(get_db)):
    result = await call_procedure(db, "getAllUsers", failure_message="Error al obtener usuarios")
    return result.rows


@router.get("/sp/{id}")
async def get_user_by_id_sp(id: str, db: Database = Depends(get_db)):
    user_id = _user_id(id)
    result = await call_procedure(db, "getUserById", [user_id], failure_message="Error al obtener el usuario")
    return result.rows


@router.post("/sp", status_code=status.HTTP_201_CREATED)
async def create_user_sp(user_in: UserIn, db: Database = Depends(get_db)):
    hashed_password = await get_password_hash(user_in.tContrasena)
    result = await call_procedure(
        db, "postInsertUser", user_in.as_params(hashed_password),
        failure_message="Error al crear el usuario",
    )
    row = result.first_row or {}
    user_id = row.get("userId") or 0
    logger.info("User %s created through postInsertUser", user_id)
    return {"message": "Usuario creado correctamente", "userId": user_id}


# Direct-query handlers

@router.get("")
async def get_users(db: Database = Depends(get_db)):
    rows = _rows(await run_query(
        db, f"SELECT {USER_COLUMNS} FROM users",
        failure_message="Error al obtener usuarios",
    ))
    if not rows:
        raise NotFound("No se encontraron usuarios")
    return rows


@router.get("/{id}")
async def get_user_by_id(id: str, db: Database = Depends(get_db)):
    user_id = _user_id(id)
    rows = _rows(await run_query(
        db, f"SELECT {USER_COLUMNS} FROM users WHERE eCodUser = %s", [user_id],
        failure_message="Error al obtener el usuario",
    ))
    if not rows:
        raise NotFound(USER_NOT_FOUND)
    return rows[0]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(user_in: UserIn, db: Database = Depends(get_db)):
    hashed_password = await get_password_hash(user_in.tContrasena)
    result = _status(await run_query(
        db,
        "INSERT INTO users (tNombreCompletoUsuario, eMatricula, tContraseña, eEdad, tGenero, "
        "tCorreoInstitucional, tTelefono, tDireccion, bStateUser) "
        "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
        user_in.as_params(hashed_password),
        failure_message="Error al crear el usuario",
    ))
    logger.info("User %s created", result.get("insertId"))
    return {"message": "Usuario creado correctamente", "userId": result.get("insertId")}


@router.put("/{id}")
async def update_user(id: str, user_in: UserIn, db: Database = Depends(get_db)):
    user_id = _user_id(id)
    hashed_password = await get_password_hash(user_in.tContrasena)
    result = _status(await run_query(
        db,
        "UPDATE users SET tNombreCompletoUsuario = %s, eMatricula = %s, tContraseña = %s, "
        "eEdad = %s, tGenero = %s, tCorreoInstitucional = %s, tTelefono = %s, "
        "tDireccion = %s, bStateUser = %s WHERE eCodUser = %s",
        (*user_in.as_params(hashed_password), user_id),
        failure_message="Error al actualizar el usuario",
    ))
    if result["affectedRows"] == 0:
        raise NotFound(USER_NOT_FOUND)
    return {"message": "Usuario actualizado correctamente"}


async def _set_user_state(db: Database, user_id: int, active: bool, failure_message: str) -> None:
    result = _status(await run_query(
        db,
        "UPDATE users SET bStateUser = %s, fhUpdateUser = CURRENT_TIMESTAMP WHERE eCodUser = %s",
        [1 if active else 0, user_id],
        failure_message=failure_message,
    ))
    if result["affectedRows"] == 0:
        raise NotFound(USER_NOT_FOUND)
    logger.info("User %s %s", user_id, "reinstated" if active else "soft-deleted")


@router.delete("/{id}")
async def delete_user(id: str, db: Database = Depends(get_db)):
    await _set_user_state(db, _user_id(id), False, "Error al eliminar usuario")
    return {"message": "Usuario eliminado correctamente"}


@router.patch("/{id}/reinstate")
async def reinstate_user(id: str, db: Database = Depends(get_db)):
    await _set_user_state(db, _user_id(id), True, "Error al reinstaurar usuario")
    return {"message": "Usuario reinstaurado correctamente"}
