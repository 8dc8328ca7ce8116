"""
Backend entry point for the study reader API.

One Python process, one asyncio event loop running FastAPI. The lifespan
hook reports configuration problems at startup and waits for pending
annotation tasks at shutdown.

Run with: python main.py [--dev] [--port PORT]
"""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from study_core.config import check_env_vars, get_allowed_origins, get_sentry_dsn
from study_core.reader import persistence

# Import routes using full paths (don't add web_api to sys.path to avoid main.py conflict)
from web_api.routes.reader import router as reader_router

if get_sentry_dsn():
    sentry_sdk.init(dsn=get_sentry_dsn(), traces_sample_rate=0.0)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Checks the environment on startup and drains background annotation
    tasks on shutdown.
    """
    ok, warnings = check_env_vars()
    for warning in warnings:
        print(warning)
    if not ok:
        raise RuntimeError("Invalid reader configuration, refusing to start")

    yield

    pending = list(persistence._running_tasks)
    if pending:
        print(f"Waiting for {len(pending)} annotation task(s)...")
        await asyncio.gather(*pending, return_exceptions=True)


app = FastAPI(
    title="Study Reader API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reader_router)


@app.get("/")
async def root():
    return {"status": "ok"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "pending_annotation_tasks": len(persistence._running_tasks),
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Study Reader API Server")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (relaxed environment checks)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("API_PORT", "8000")),
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Set env var so it persists across uvicorn reloads
    if args.dev:
        os.environ["DEV_MODE"] = "true"

    logging.basicConfig(
        level=logging.DEBUG if args.dev else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
