from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from symbol_oracle.api.routes import router
from symbol_oracle.config import settings
from symbol_oracle.core.errors import (
    ActionNotAllowed, InvalidSymbol, MalformedBatchInput, OracleError, PersistenceWriteError,
)
from symbol_oracle.logging_config import setup_logging
from symbol_oracle.services import build_coordinator

_STATUS = {
    InvalidSymbol: 400,
    MalformedBatchInput: 400,
    ActionNotAllowed: 409,
    PersistenceWriteError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(json_mode=settings.log_json, level=settings.log_level)
    if getattr(app.state, "coordinator", None) is None:
        app.state.coordinator = build_coordinator(settings)
    yield

app = FastAPI(title="Symbol Oracle", lifespan=lifespan)
app.include_router(router)


@app.exception_handler(OracleError)
async def oracle_error(request: Request, exc: OracleError):
    status = next((code for kind, code in _STATUS.items() if isinstance(exc, kind)), 500)
    return JSONResponse({"error": type(exc).__name__, "detail": str(exc)}, status_code=status)

@app.get("/")
def home():
    return {"ok": True, "app": "Symbol Oracle"}
