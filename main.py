from __future__ import annotations

import logging

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might need env vars
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes.sheets import router as sheets_router
from services.reader_config import get_reader_settings


logging.basicConfig(
    level=get_reader_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="XLSX Table Reader")

# Allow any origin in local dev mode.
# This should be tightened for production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sheets_router)


@app.get("/")
async def root():
    return {"status": "ok"}
