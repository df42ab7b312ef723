import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.errors import ServiceError, StorageFault
from app.db.session import SessionLocal, init_db
from app.api.auth import router as auth_router
from app.api.accounts import router as accounts_router
from app.api.products import router as products_router
from app.api.purchases import router as purchases_router
from app.services.seed import ensure_admin_user, ensure_demo_products

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with SessionLocal() as db:
        ensure_admin_user(db)
        if settings.SEED_DEMO_PRODUCTS:
            ensure_demo_products(db)
    logger.info("Bank & Shop API started")
    yield
    logger.info("Bank & Shop API stopped")


app = FastAPI(title="Bank & Shop API", version="1.0.0", lifespan=lifespan)


def _error(status_code: int, code: str, detail) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code, "detail": detail})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, StorageFault):
        logger.error("Storage fault on %s %s", request.method, request.url.path)
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    # extract first error message nicely
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid input"
    return _error(422, "invalid_request", message)


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled storage error on %s %s", request.method, request.url.path, exc_info=exc)
    fault = StorageFault()
    return _error(fault.status_code, fault.code, fault.message)


app.include_router(auth_router, tags=["auth"])
app.include_router(accounts_router, tags=["accounts"])
app.include_router(products_router, tags=["products"])
app.include_router(purchases_router, tags=["purchases"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}
