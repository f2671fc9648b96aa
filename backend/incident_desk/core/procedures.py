import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from .database import Database, DatabaseError, Row, StatusPacket
from .errors import DatabaseFailure, FormattingFailure
from .logging_config import LogContext
from .results import ProcedureResult, ResultFormatError, decode_procedure_result, preview

logger = logging.getLogger(__name__)

UNEXPECTED_FORMAT = "Formato inesperado de resultados del procedimiento"


def _database_failure(error: DatabaseError, target: str, failure_message: str) -> DatabaseFailure:
    logger.error("MySQL error in %s: %s", target, error.log_details())
    return DatabaseFailure(failure_message, details=error.public_details())


def unexpected_format(raw: Any) -> FormattingFailure:
    snippet = preview(raw)
    logger.warning("Unexpected procedure result format: %s", snippet)
    return FormattingFailure(UNEXPECTED_FORMAT, details={"preview": snippet})


async def call_procedure(db: Database, procedure: str, params: Sequence[Any] = (),
                         failure_message: str = "Error en la base de datos") -> ProcedureResult:
    """Call ``procedure`` and decode its output, mapping every failure to an ApiError."""
    with LogContext(procedure=procedure):
        try:
            raw = await db.call(procedure, params)
        except DatabaseError as e:
            raise _database_failure(e, procedure, failure_message) from e

        try:
            return decode_procedure_result(raw)
        except ResultFormatError as e:
            raise unexpected_format(e.raw) from e


async def run_query(db: Database, sql: str, params: Sequence[Any] = (),
                    failure_message: str = "Error en la base de datos") -> Union[List[Row], StatusPacket]:
    try:
        return await db.query(sql, params)
    except DatabaseError as e:
        raise _database_failure(e, "query", failure_message) from e


def require_row(result: ProcedureResult) -> Dict[str, Any]:
    row = result.first_row
    if row is None:
        raise unexpected_format(result.raw)
    return row


def require_affected(result: ProcedureResult) -> int:
    if result.affected is None:
        raise unexpected_format(result.raw)
    return result.affected


def numeric_column(row: Optional[Dict[str, Any]], column: str):
    value = row.get(column) if isinstance(row, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise FormattingFailure(
            f"El procedimiento no devolvió la columna '{column}'",
            details=row,
        )
    return value


def first_not_none(row: Dict[str, Any], *columns: str, default: Any = 0) -> Any:
    for column in columns:
        if row.get(column) is not None:
            return row[column]
    return default
