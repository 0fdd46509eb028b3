# backend/main.py
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

load_dotenv()

from config import settings
from database import init_db

# Routers
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.products import router as products_router
from routes.locations import router as locations_router
from routes.vendors import router as vendors_router
from routes.receipts import router as receipts_router
from routes.deliveries import router as deliveries_router
from routes.transfers import router as transfers_router
from routes.adjustments import router as adjustments_router
from routes.move_history import router as move_history_router
from routes.alerts import router as alerts_router
from routes.dashboard import router as dashboard_router
from routes.reports import router as reports_router
from routes.audit import router as audit_router
from routes.settings import router as settings_router
from routes.company import router as company_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("stockmaster")

# Initialization
init_db()
Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)

app = FastAPI(title="StockMaster API", version="1.0.0")

# CORS: local dev servers plus the configured frontend
origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# A concurrent writer won a unique or check constraint race
@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=409,
        content={"detail": "Conflicting update, please retry"},
    )


# Router registration
for router in (
    auth_router,
    users_router,
    products_router,
    locations_router,
    vendors_router,
    receipts_router,
    deliveries_router,
    transfers_router,
    adjustments_router,
    move_history_router,
    alerts_router,
    dashboard_router,
    reports_router,
    audit_router,
    settings_router,
    company_router,
):
    app.include_router(router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "StockMaster API is running"}


@app.get("/api/health")
def health():
    return {"status": "ok"}
