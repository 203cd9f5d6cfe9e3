import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, CREATE_TABLES, LOG_LEVEL
from .db import init_db
from .routers import dashboard, financial_health, health, installments, ledger, payments, payouts, reports

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if CREATE_TABLES:
        init_db()
        logger.info("Database tables ensured")
    yield


app = FastAPI(title="Consignment Ledger API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(reports.router)
app.include_router(financial_health.router)
app.include_router(dashboard.router)
app.include_router(payouts.router)
app.include_router(payments.router)
app.include_router(installments.router)
app.include_router(ledger.router)


@app.get("/")
def root():
    return {"status": "ok"}
