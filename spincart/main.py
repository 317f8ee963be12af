# spincart/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from spincart.api import register
from spincart.data.database import Base, engine
from spincart.utils.logging import get_logger

# import wszystkich modeli przed create_all
import spincart.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created (or already exist)")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    yield

    engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Spin Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    return register(app)


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
