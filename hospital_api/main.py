import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hospital_api.core import config
from hospital_api.core.scheduler import shutdown_scheduler, start_scheduler
from hospital_api.database import Base, engine
from hospital_api.models import appointment, billing, department, inventory, medical_record, prescription, user  # noqa: F401
from hospital_api.routers import (
    admin,
    appointments,
    auth,
    billing as billing_router,
    doctor,
    inventory as inventory_router,
    patient,
    patients,
    pharmacist,
    receptionist,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title=config.API_TITLE, version=config.API_VERSION)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    message = "; ".join(f"{e['field']}: {e['message']}" if e["field"] else e["message"] for e in errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message, "errors": errors},
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"success": False, "message": "Resource already exists or conflicts with existing data"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


# Include routers
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(doctor.router)
app.include_router(patient.router)
app.include_router(pharmacist.router)
app.include_router(receptionist.router)
app.include_router(appointments.router)
app.include_router(billing_router.router)
app.include_router(inventory_router.router)
app.include_router(patients.router)


@app.on_event("startup")
async def startup_event():
    if config.SEED_DEMO_DATA:
        from hospital_api.seed import seed
        seed()
    if config.SCHEDULER_ENABLED:
        start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    shutdown_scheduler()


@app.get("/")
async def root():
    return {"message": f"Welcome to {config.API_TITLE}"}


@app.get("/api/health")
async def health():
    return {"success": True, "message": "Server is running", "version": config.API_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("hospital_api.main:app", host=config.HOST, port=config.PORT)
