from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import campotrack.models  # registra todos los modelos en Base.metadata
from campotrack.api.router import api_router
from campotrack.config.settings import settings
from campotrack.utils.db import Base, engine
from campotrack.utils.errors import install_error_handlers
from campotrack.utils.logging import get_logger, setup_logging

setup_logging(
    level=settings.LOG_LEVEL,
    json_logs=settings.LOG_JSON,
    log_file=settings.LOG_TO_FILE,
    log_dir=settings.LOG_DIR,
)
logger = get_logger(module="main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Crea las tablas si no existen
    Base.metadata.create_all(bind=engine)
    logger.info("API iniciada", db=engine.dialect.name)
    yield
    logger.info("API detenida")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["health"])
def health():
    return {"ok": True, "status": "ok"}
