from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from file_repository import FileRepository
from metadata_store import MetadataStore
from routers import files as files_router
from logging_config import get_logger
from config import settings

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("File Share Service starting up...")
    repository = FileRepository(settings.STORAGE_BASE_PATH)
    repository.ensure_directory()
    store = MetadataStore(settings.METADATA_FILE)
    store.load()
    app.state.file_repository = repository
    app.state.metadata_store = store
    logger.info(f"File storage path configured at: {settings.STORAGE_BASE_PATH}")
    logger.info(f"Metadata document configured at: {settings.METADATA_FILE}")
    yield
    logger.info("File Share Service shutting down...")
    del app.state.metadata_store
    del app.state.file_repository

app = FastAPI(
    title="File Share Service",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(files_router.router)

@app.get("/ping", tags=["Health"])
async def ping():
    logger.debug("Ping endpoint was called")
    return {"message": "File Share Service is alive!"}

if settings.STATIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
else:
    logger.info(f"Static directory {settings.STATIC_DIR} not found, web page disabled")

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting File Share Service on {settings.FSS_HOST}:{settings.FSS_PORT}")
    uvicorn.run("main:app", host=settings.FSS_HOST, port=settings.FSS_PORT, reload=True)
