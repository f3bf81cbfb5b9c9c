import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import create_tables
from app.core.logging import configure_logging
from app.api.v1.auth import router as auth_router
from app.api.v1.employees import router as employees_router
from app.api.v1.health import router as health_router, SERVICE_NAME, VERSION
from app.api.v1.pay_periods import router as pay_periods_router
from app.api.v1.payroll import router as payroll_router
from app.api.v1.quickbooks import router as quickbooks_router
from app.api.v1.time_entries import router as time_entries_router
from app.services.overtime_service import InvalidTimeRecordError
from app.services.payroll_service import PayPeriodLockedError
from app.services.quickbooks_client import QuickBooksAPIError, QuickBooksClient, QuickBooksNotConnectedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Create tables on startup (SQLite / local development)
    await create_tables()
    app.state.quickbooks = QuickBooksClient()
    logger.info("QuickBooks client ready (%s)", settings.quickbooks_base_url)
    try:
        yield
    finally:
        await app.state.quickbooks.aclose()


app = FastAPI(
    title=SERVICE_NAME,
    description="QuickBooks time import, overtime classification and payroll",
    version=VERSION,
    lifespan=lifespan,
    # Swagger UI only in development – set DEBUG=false in production
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidTimeRecordError)
async def invalid_time_record_handler(request: Request, exc: InvalidTimeRecordError):
    logger.warning("Rejected time data on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": f"Invalid time data: {exc}"})


@app.exception_handler(QuickBooksNotConnectedError)
async def quickbooks_not_connected_handler(request: Request, exc: QuickBooksNotConnectedError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(QuickBooksAPIError)
async def quickbooks_api_error_handler(request: Request, exc: QuickBooksAPIError):
    return JSONResponse(
        status_code=502,
        content={"detail": "QuickBooks request failed", "status_code": exc.status_code, "error": exc.detail},
    )


@app.exception_handler(PayPeriodLockedError)
async def pay_period_locked_handler(request: Request, exc: PayPeriodLockedError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(employees_router, prefix=API_PREFIX)
app.include_router(pay_periods_router, prefix=API_PREFIX)
app.include_router(time_entries_router, prefix=API_PREFIX)
app.include_router(quickbooks_router, prefix=API_PREFIX)
app.include_router(payroll_router, prefix=API_PREFIX)
app.include_router(health_router)  # public, no auth prefix
