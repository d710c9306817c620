# NG-HEADER: Nombre de archivo: api.py
# NG-HEADER: Ubicación: services/api.py
# NG-HEADER: Descripción: Aplicación FastAPI: logging, middleware, manejo de errores y routers
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Aplicación FastAPI principal del inventario."""

import logging
import os
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi import HTTPException as FastHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from core.config import settings
from db.base import Base
from db.session import engine, is_memory_db
import db.models  # noqa: F401  asegura que la metadata tenga todas las tablas
from services.inventory.errors import InventoryError, ValidationFailed, pydantic_errors
from .routers import (
    admin,
    customers,
    dashboard,
    health,
    product_categories,
    products,
    sales,
    suppliers,
    watches,
)

raw_level = os.getenv("LOG_LEVEL", settings.log_level) or "INFO"
level_name = raw_level.strip().upper()
if level_name not in logging._nameToLevel:
    level_name = "INFO"
logger = logging.getLogger("watchstock")
logger.setLevel(level_name)
LOG_DIR = Path(__file__).resolve().parents[1] / "logs"
try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
except OSError:
    pass
fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
stream_handler = logging.StreamHandler()
stream_handler.setFormatter(fmt)

file_handler = None
log_path = LOG_DIR / "backend.log"
try:
    # delay=True evita abrir el archivo hasta el primer log (locking en Windows)
    file_handler = RotatingFileHandler(
        str(log_path), maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8", delay=True
    )
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)
except OSError:
    # Sin permisos: continuar solo con consola
    file_handler = None

logger.addHandler(stream_handler)

handlers = [h for h in (file_handler, stream_handler) if h is not None]
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).handlers = handlers
    logging.getLogger(_name).setLevel(level_name)

# `redirect_slashes=False` evita redirecciones 307 entre `/ruta` y `/ruta/`,
# lo que rompe las solicitudes *preflight* de CORS.
app = FastAPI(title="Watchstock", redirect_slashes=False)

logger.info("DB effective URL: %s", engine.url.render_as_string(hide_password=True))


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Registra cada solicitud y captura excepciones con un correlation-id."""
    start = time.perf_counter()
    corr = request.headers.get("x-correlation-id") or request.headers.get("x-request-id")
    if not corr:
        corr = f"req-{int(time.time() * 1000):x}-{os.getpid():x}"
    try:
        resp = await call_next(request)
    except (FastHTTPException, StarletteHTTPException):
        # Deja que FastAPI maneje HTTPException (403/404/400, etc.)
        raise
    except Exception:
        dur = (time.perf_counter() - start) * 1000
        logger.exception("EXC %s %s cid=%s (%.2fms)", request.method, request.url.path, corr, dur)
        return JSONResponse(
            {"detail": "Error interno del servidor"},
            status_code=500,
            headers={"X-Correlation-Id": corr},
        )
    dur = (time.perf_counter() - start) * 1000
    resp.headers["X-Correlation-Id"] = corr
    logger.info("%s %s -> %s cid=%s (%.2fms)", request.method, request.url.path, resp.status_code, corr, dur)
    return resp


# --- Exception Handlers Específicos ---
@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):  # type: ignore[override]
    """Errores de dominio: validación/invariante -> 400, inexistente -> 404."""
    if isinstance(exc, ValidationFailed):
        logger.warning("Validación fallida %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.payload(), status_code=exc.status_code)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):  # type: ignore[override]
    """Carrera sobre columnas únicas u otra restricción de la base -> 409.

    No se filtra el mensaje del motor; sólo se identifica el campo cuando es el
    código de producto.
    """
    raw = str(exc.orig) if getattr(exc, "orig", None) else str(exc)
    logger.warning("Conflicto de integridad %s %s: %s", request.method, request.url.path, raw)
    payload = {"detail": "conflict", "code": "conflict"}
    if "product_code" in raw:
        payload.update(detail="Código de producto ya existente", code="duplicate_product_code", field="productCode")
    return JSONResponse(payload, status_code=409)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
    """Entrada inválida -> 400 con la lista de errores por campo {loc, msg, type}."""
    flat = pydantic_errors(exc)
    logger.warning("Validación fallida 400 %s %s: %s", request.method, request.url.path, flat)
    return JSONResponse(status_code=400, content={"detail": flat})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(customers.router)
app.include_router(suppliers.router)
app.include_router(watches.router)
app.include_router(sales.router)
app.include_router(product_categories.router)
app.include_router(product_categories.fields_router)
app.include_router(products.router)
app.include_router(admin.router)
app.include_router(dashboard.router)


@app.on_event("startup")
async def _init_inmemory_db():
    """Auto-crea el esquema cuando usamos SQLite en memoria (tests)."""
    if is_memory_db():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info("Watchstock listo (env=%s)", settings.env)
