from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv

from .analyzer import assess
from .errors import ParseError, SellerUnavailableError
from .logging_config import setup_logging
from .models import Assessment, RateSellerRequest


# Load environment variables from the repo root .env (proxy credentials live there in local dev)
_HERE = Path(__file__).resolve()
_REPO_ROOT = _HERE.parents[1]
load_dotenv(_REPO_ROOT / ".env", override=False)
load_dotenv(override=False)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Handlers are installed by the running server, not by importing this module.
    setup_logging()
    logger.info("SellerCheck agent starting")
    yield


app = FastAPI(title="SellerCheck Agent", version="0.1.0", lifespan=lifespan)
router = APIRouter(prefix="/api")

_PLAYWRIGHT_CONCURRENCY = max(1, int(os.getenv("PLAYWRIGHT_CONCURRENCY", "1")))
_PLAYWRIGHT_ACQUIRE_TIMEOUT_S = float(os.getenv("PLAYWRIGHT_ACQUIRE_TIMEOUT_S", "0.25"))
_playwright_semaphore = asyncio.Semaphore(_PLAYWRIGHT_CONCURRENCY)


@asynccontextmanager
async def _playwright_slot():
    try:
        await asyncio.wait_for(_playwright_semaphore.acquire(), timeout=_PLAYWRIGHT_ACQUIRE_TIMEOUT_S)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=503,
            detail="Agent busy (too many concurrent browser jobs). Please retry.",
            headers={"Retry-After": "2"},
        )
    try:
        yield
    finally:
        _playwright_semaphore.release()


def _cors_allow_origins() -> list[str]:
    raw = os.getenv("SELLERCHECK_CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True}


@router.post("/rate-seller", response_model=Assessment)
async def rate_seller_endpoint(req: RateSellerRequest):
    async with _playwright_slot():
        try:
            return await assess(req.username)
        except SellerUnavailableError as e:
            logger.warning("Seller unavailable: %s", e)
            raise HTTPException(status_code=502, detail=f"Seller page could not be loaded: {req.username}")
        except ParseError as e:
            logger.exception("Unexpected page content while assessing %s", req.username)
            raise HTTPException(status_code=502, detail=f"Unexpected seller page content: {e}")
        except Exception as e:
            logger.exception("Assessment failed for %s", req.username)
            raise HTTPException(status_code=502, detail=f"Seller assessment failed: {e}")


app.include_router(router)
