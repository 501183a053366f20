import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import (
    ALLOWED_ORIGINS,
    BOOTSTRAP_ADMIN_EMAIL,
    BOOTSTRAP_ADMIN_NAME,
    BOOTSTRAP_ADMIN_PASSWORD,
    REDIS_URL,
)
from .database import Base, SessionLocal, engine
from .domain.accounts import clients_router
from .domain.accounts import router as auth_router
from .domain.accounts.service import AccountService
from .domain.applications import router as applications_router
from .domain.consultations import router as consultations_router
from .domain.notifications import router as notifications_router
from .domain.onboarding import router as onboarding_router
from .domain.payments import router as payments_router
from .domain.registration import router as registration_router
from .exceptions import ServiceError
from .rate_limiter import build_rate_limit_store
from .services.notification_service import NotificationDispatcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def bootstrap_admin() -> None:
    if not (BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD):
        logger.info("No bootstrap admin configured")
        return

    db = SessionLocal()
    try:
        AccountService(db).bootstrap_admin(
            BOOTSTRAP_ADMIN_EMAIL, BOOTSTRAP_ADMIN_PASSWORD, BOOTSTRAP_ADMIN_NAME
        )
    except Exception as e:
        logger.error(f"Failed to bootstrap admin account: {e}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    bootstrap_admin()

    app.state.rate_limit_store = build_rate_limit_store(REDIS_URL)
    app.state.notifier = NotificationDispatcher()

    yield

    app.state.rate_limit_store.close()
    logger.info("Application shutting down...")


app = FastAPI(title="Client Onboarding API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Invalid request",
            "code": "VALIDATION_ERROR",
            "detail": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic puts the raw exception in ctx for custom validators
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


# CORS Configuration
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(clients_router)
app.include_router(consultations_router)
app.include_router(payments_router)
app.include_router(registration_router)
app.include_router(onboarding_router)
app.include_router(applications_router)
app.include_router(notifications_router)


@app.get("/")
def root():
    return {"message": "Client Onboarding API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
