"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from buildsmith.api.builds import router as builds_router
from buildsmith.api.health import router as health_router
from buildsmith.config import settings
from buildsmith.core.engine import load_engine
from buildsmith.core.logging import get_logger, setup_logging
from buildsmith.db.database import SessionLocal, engine as db_engine
from buildsmith.db.models import Base
from buildsmith.services.build_service import BuildService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # DB 테이블 생성
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # 빌드 엔진 초기화 (카탈로그 + 규칙 테이블)
    logger.info("Initializing build engine...")
    build_engine = load_engine(
        catalog_path=settings.catalog_path(),
        data_dir=settings.data_dir(),
        max_alternatives=settings.MAX_ALTERNATIVES,
    )
    logger.info("Build engine initialized (%d catalog items).", build_engine.catalog.count())

    # BuildService 초기화
    db_session = SessionLocal()
    app.state.build_service = BuildService(db_session, build_engine)
    logger.info("BuildService initialized.")

    yield

    # 종료 시 정리
    logger.info("Shutting down...")
    db_session.close()


app = FastAPI(title="Buildsmith", lifespan=lifespan)

app.include_router(health_router)
app.include_router(builds_router)
