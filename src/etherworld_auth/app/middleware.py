# src/etherworld_auth/app/middleware.py
from fastapi import FastAPI, Request
import time
import logging

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI):

    @app.middleware("http")
    async def log_request_time(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} | {duration:.2f} ms")
        return response

    return app
