import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from file_converter.common.logging import configure_logging
from file_converter.common.settings import settings
from file_converter.fastapi_app.routes import router as main_router
from file_converter.utils.environment import environment_detector
from file_converter.utils.files import ensure_dir
from file_converter.utils.httpx_manager.httpx_manager import httpx_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Server is starting...")

    ensure_dir(settings.TEMP_DIR)

    profile = await environment_detector.detect()
    logger.info(
        "Runtime: %s, LibreOffice available: %s, remote API configured: %s",
        profile.runtime.value,
        profile.libreoffice_available,
        profile.remote_api_configured,
    )

    yield

    logger.info("Server is shutting down...")
    await httpx_manager.aclose()


app = FastAPI(
    title="File Converter",
    description="Convert documents, spreadsheets, presentations and images between formats",
    lifespan=lifespan,
)

app.include_router(main_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


def run() -> None:
    uvicorn.run(
        "file_converter.fastapi_app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.IS_DEBUG,
    )


if __name__ == "__main__":
    run()
