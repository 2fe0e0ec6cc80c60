import logging
import time
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import api_router
from app.config import Settings, settings as default_settings
from app.services.student_records import INVALID_CREATE_BODY
from app.services.student_store import create_store
from app.utils.logger import RequestLogger, decode_body, format_access_line, setup_logging

BASE_DIR = Path(__file__).resolve().parent

access_log = logging.getLogger("app.access")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around the store named in ``settings``."""
    settings = settings or default_settings
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Manage student records kept in a JSON file",
        version="1.0.0",
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.store = create_store(settings.students_file, base_dir=BASE_DIR)
    app.state.request_logger = (
        RequestLogger(settings.log_dir) if settings.request_log_enabled else None
    )

    app.include_router(api_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def body_error_handler(request: Request, exc: RequestValidationError):
        message = INVALID_CREATE_BODY if request.method == "POST" else "Invalid Body. Expected a JSON object."
        return JSONResponse(status_code=400, content={"error": message})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        body = await request.body()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        url = request.url.path + (f"?{request.url.query}" if request.url.query else "")
        access_log.info(
            format_access_line(
                request.method,
                url,
                response.status_code,
                response.headers.get("content-length"),
                elapsed_ms,
            )
        )

        request_logger = request.app.state.request_logger
        if request_logger is not None:
            await run_in_threadpool(
                request_logger.log_request,
                method=request.method,
                url=url,
                headers=dict(request.headers),
                body=decode_body(body),
                status_code=response.status_code,
                elapsed_ms=round(elapsed_ms, 3),
            )
        return response

    @app.get("/")
    async def root():
        return {
            "message": "Student API is Running",
            "endpoints": ["/students (GET, POST)", "/students/:id (GET, PUT)"],
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    logging.getLogger(__name__).info(
        "Server is listening on http://%s:%s", default_settings.host, default_settings.port
    )
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
