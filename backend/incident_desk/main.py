import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from incident_desk.core.config import settings
from incident_desk.core.database import create_database
from incident_desk.core.errors import ApiError
from incident_desk.core.logging_config import LogContext, setup_logging
from incident_desk.routers import incidents, users

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Incident Desk API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(incidents.router)

app.state.db = create_database()


@app.middleware("http")
async def request_log_context(request: Request, call_next):
    with LogContext(method=request.method, path=request.url.path):
        return await call_next(request)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({
            "message": "Cuerpo o parámetros de la petición inválidos",
            "details": [
                {key: value for key, value in error.items() if key != "input"}
                for error in exc.errors()
            ],
        }),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Error interno del servidor"},
    )


@app.on_event("startup")
async def startup():
    await app.state.db.connect()


@app.on_event("shutdown")
async def shutdown():
    await app.state.db.disconnect()


@app.get("/")
async def root():
    return {"message": "Incident Desk API is running"}


def run():
    uvicorn.run("incident_desk.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
