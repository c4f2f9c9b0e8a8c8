import uvicorn
import asyncio
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded

from logger import logger
from limiter import limiter, rate_limit_handler
from utils.exceptions import EngineError
from utils.exception_handler import (
    handle_validation_error,
    handle_engine_error,
    custom_http_exception_handler,
)

from router import CommonRouter, StatusRouter
from components.shipping_engine import build_engine

from database.db import init_models  # sync DB init

app = FastAPI(title="Courier Orchestrator")

# Routers
app.include_router(CommonRouter)
app.include_router(StatusRouter)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

# Exception handlers
app.add_exception_handler(RequestValidationError, handle_validation_error)
app.add_exception_handler(EngineError, handle_engine_error)
app.add_exception_handler(HTTPException, custom_http_exception_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------
# Startup event
# -------------------------------
@app.on_event("startup")
async def startup_event():
    loop = asyncio.get_running_loop()
    # Initialize DB safely in executor
    await loop.run_in_executor(None, init_models)

    # tests install their own engine before the app starts
    if getattr(app.state, "engine", None) is None:
        app.state.engine = build_engine()
    logger.info(msg="Startup complete")


# -------------------------------
# Shutdown event
# -------------------------------
@app.on_event("shutdown")
async def shutdown_event():
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.aclose()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
