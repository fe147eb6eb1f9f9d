from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from dotenv import load_dotenv

from persistence import StoreError
from presentation import DocumentDriver
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    from endpoints.mcp_endpoints import bind_driver, mcp

    settings: Settings = app.state.settings
    driver = DocumentDriver.for_address(settings.document_store_url)
    # Mount: connect and load the list. Failures end up in driver.status, not here.
    await driver.on_start()
    app.state.driver = driver
    bind_driver(driver)
    try:
        async with mcp.session_manager.run():
            yield
    finally:
        # Unmount.
        bind_driver(None)
        app.state.driver = None
        await driver.on_stop()


def create_app() -> FastAPI:
    load_dotenv("local.env")
    settings = get_settings()

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    from endpoints.document_endpoints import router as documents_router
    from endpoints.mcp_endpoints import mcp

    mcp.settings.streamable_http_path = "/"

    app = FastAPI(title="Document Desk", lifespan=lifespan)
    app.state.settings = settings
    app.state.driver = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug_log_requests:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            logger.info(
                "%s %s -> %s in %.3fs",
                request.method,
                request.url.path,
                response.status_code,
                time.perf_counter() - started,
            )
            return response

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(exc.to_payload(), status_code=exc.status)

    @app.post("/mcp")
    async def mcp_redirect_post():
        return RedirectResponse(url="/mcp/", status_code=307)

    @app.get("/mcp")
    async def mcp_redirect_get():
        return RedirectResponse(url="/mcp/", status_code=307)

    app.include_router(documents_router)

    app.mount("/mcp", mcp.streamable_http_app())

    return app


app = create_app()
