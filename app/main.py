# app/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.config import settings
from app.database import engine, Base
from app.core.errors import AttendanceError
from app.models.gym import Gym
from app.models.user import User
from app.models.member import Member
from app.models.attendance import AttendanceSession
from app.models.qr_config import QrConfig
from app.routers import auth, attendance, member_attendance, admin, dashboard
import logging
from sqlalchemy import exc as sa_exc

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Gym Attendance Service", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(attendance.router)
app.include_router(member_attendance.router)
app.include_router(admin.router)
app.include_router(dashboard.router)


@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(sa_exc.SQLAlchemyError)
async def storage_error_handler(request: Request, exc: sa_exc.SQLAlchemyError):
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "code": "STORAGE_UNAVAILABLE",
            "message": "Attendance storage is temporarily unavailable. Please try again.",
        },
    )


# Create DB Tables (for demo only, use Alembic in prod)
@app.on_event("startup")
async def startup_event():
    # create tables (async). ignore duplicate-object errors from previous partial runs.
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logging.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise
    logger.info("Gym attendance service started (stale after %sh)", settings.SESSION_STALE_AFTER_HOURS)

@app.get("/")
def read_root():
    return {"message": "Welcome to the Gym Attendance Service"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
