# appraisal/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from appraisal.config import settings
from appraisal.core.exceptions import AppraisalError
from appraisal.core.logging_config import setup_logging
from appraisal.database import engine, Base
from appraisal.models import assessment, department, notification, rubric, user  # noqa: F401
from appraisal.routers import admin, assessments, auth, notifications, rubrics

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Performance Appraisal Service", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(rubrics.router)
app.include_router(assessments.router)
app.include_router(notifications.router)
app.include_router(admin.router)


@app.exception_handler(AppraisalError)
async def appraisal_error_handler(request: Request, exc: AppraisalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


@app.get("/")
def read_root():
    return {"message": "Welcome to the Performance Appraisal API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("appraisal.main:app", host="0.0.0.0", port=8000, reload=True)
