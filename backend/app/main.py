# Timebill backend entrypoint: reporting, dashboard and invoicing over logged work hours.

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api import dashboard
from backend.app.api import invoices
from backend.app.api import reports
from backend.app.api import work_hours
from backend.app.core.exceptions import DuplicateBillingError, TimebillError
from backend.app.core.settings import get_settings

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports.router)
app.include_router(dashboard.router)
app.include_router(invoices.router)
app.include_router(work_hours.router)


@app.exception_handler(TimebillError)
async def handle_timebill_error(request: Request, exc: TimebillError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message}
    if isinstance(exc, DuplicateBillingError):
        body["work_hour_ids"] = exc.work_hour_ids
        body["invoice_ids"] = exc.invoice_ids
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/")
def read_root():
    return {"app": "Timebill backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
