import logging
import time

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, is_connected
from .routers import search

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="Matrimony Profile Search API")
settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


# Simple slow-request logger
@app.middleware("http")
async def log_slow_requests(request, call_next):
    t0 = time.perf_counter()
    response = await call_next(request)
    dt = (time.perf_counter() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        logger.warning(
            "[perf] slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


@app.on_event("startup")
async def startup():
    await connect_to_mongo()


@app.on_event("shutdown")
async def shutdown():
    await close_mongo_connection()


app.include_router(search.router, prefix="/api", tags=["search"])


@app.get("/")
async def root():
    return {"status": "search-api-ok"}


@app.get("/api/health/db")
async def db_health():
    current = get_settings()
    return {
        "mongo": "connected" if is_connected() else "disconnected",
        "db": current.mongo_db,
        "datingDb": current.mongo_dating_db,
    }


def run() -> None:
    uvicorn.run("matrimony_search.main:app", host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    run()
