import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import pymysql
from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from pymysql.constants import CLIENT, CR, ER
from pymysql.cursors import DictCursor

from .config import settings

logger = logging.getLogger(__name__)

# A result set is a list of row dicts; a status packet reports affected rows / insert id
Row = Dict[str, Any]
StatusPacket = Dict[str, int]
RawResult = List[Union[List[Row], StatusPacket]]


def _error_names() -> Dict[int, str]:
    names = {}
    for name, value in vars(ER).items():
        if name.isupper() and isinstance(value, int) and not name.startswith("ERROR_"):
            names.setdefault(value, f"ER_{name}")
    for name, value in vars(CR).items():
        if name.startswith("CR_") and isinstance(value, int) and name not in ("CR_ERROR_FIRST", "CR_ERROR_LAST"):
            names.setdefault(value, name)
    return names


_ERROR_NAMES = _error_names()


class DatabaseError(Exception):
    """A driver-level failure, carrying the MySQL diagnostics."""

    def __init__(self, code: Optional[str], errno: Optional[int], sql_state: Optional[str],
                 message: str, sql: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.errno = errno
        self.sql_state = sql_state
        self.message = message
        self.sql = sql

    @classmethod
    def from_driver(cls, exc: Exception, sql: Optional[str] = None) -> "DatabaseError":
        errno = None
        message = str(exc)
        if len(exc.args) >= 2 and isinstance(exc.args[0], int):
            errno, message = exc.args[0], str(exc.args[1])
        code = _ERROR_NAMES.get(errno) if errno is not None else None
        return cls(code=code, errno=errno, sql_state=None, message=message, sql=sql)

    def public_details(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "errno": self.errno,
            "sqlState": self.sql_state,
            "sqlMessage": self.message,
        }

    def log_details(self) -> Dict[str, Any]:
        return {**self.public_details(), "sql": self.sql}


class Database:
    """Single long-lived MySQL connection shared by every request."""

    def __init__(self, host: str, user: str, password: str, name: str, port: int = 3306):
        self.host = host
        self.user = user
        self.password = password
        self.name = name
        self.port = port
        self.connection = None
        self._lock = asyncio.Lock()

    async def connect(self):
        try:
            self.connection = await run_in_threadpool(
                pymysql.connect,
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.name,
                charset="utf8mb4",
                autocommit=True,
                # report matched rows, so re-applying the same value still counts
                client_flag=CLIENT.FOUND_ROWS,
                cursorclass=DictCursor,
            )
            logger.info("Connected to MySQL %s@%s:%s/%s", self.user, self.host, self.port, self.name)
        except pymysql.MySQLError as e:
            error = DatabaseError.from_driver(e)
            logger.error("Database connection failed: %s", error.log_details())

    async def disconnect(self):
        if self.connection is not None:
            await run_in_threadpool(self.connection.close)
            self.connection = None
            logger.info("Disconnected from MySQL")

    async def query(self, sql: str, params: Sequence[Any] = ()) -> Union[List[Row], StatusPacket]:
        """Run one parameterized statement; rows for SELECT, a status packet otherwise."""
        results = await self._run(sql, tuple(params))
        return results[0] if results else {"affectedRows": 0, "insertId": 0}

    async def call(self, procedure: str, params: Sequence[Any] = ()) -> RawResult:
        """CALL a stored procedure and return every result set and status packet it produced."""
        placeholders = ", ".join(["%s"] * len(params))
        return await self._run(f"CALL {procedure}({placeholders})", tuple(params))

    async def _run(self, sql: str, params: tuple) -> RawResult:
        if self.connection is None:
            raise DatabaseError(
                code="NOT_CONNECTED", errno=None, sql_state=None,
                message="Database connection is not open", sql=sql,
            )
        async with self._lock:
            # the worker thread owns the connection until it returns, even if the caller is cancelled
            task = asyncio.ensure_future(run_in_threadpool(self._execute, sql, params))
            try:
                return await asyncio.shield(task)
            except pymysql.MySQLError as e:
                raise DatabaseError.from_driver(e, sql=sql) from e
            finally:
                if not task.done():
                    await asyncio.wait({task})
                if not task.cancelled() and task.exception() is not None:
                    logger.debug("Statement finished with %r", task.exception())

    def _execute(self, sql: str, params: tuple) -> RawResult:
        results: RawResult = []
        with self.connection.cursor() as cursor:
            cursor.execute(sql, params)
            while True:
                if cursor.description is not None:
                    results.append(list(cursor.fetchall()))
                else:
                    results.append({"affectedRows": cursor.rowcount, "insertId": cursor.lastrowid})
                if not cursor.nextset():
                    break
        return results


def create_database() -> Database:
    return Database(
        host=settings.DBHOST,
        user=settings.DBUSER,
        password=settings.DBPASS,
        name=settings.DBNAME,
        port=settings.DBPORT,
    )


def get_db(request: Request) -> Database:
    return request.app.state.db
