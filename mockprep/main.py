import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from mockprep.core.config import settings
from mockprep.application.exams.question_sources import ArticleMaterialLoader
from mockprep.infrastructure.ai.huggingface_client import HuggingFaceChatClient
from mockprep.infrastructure.ai.llm_client import LLMClient
from mockprep.infrastructure.cache.source_material_cache import SourceMaterialCache
from mockprep.infrastructure.db.base import Base
from mockprep.infrastructure.db import models  # noqa: F401  registers tables on Base.metadata
from mockprep.infrastructure.db.session import SessionLocal
from mockprep.presentation.api.routers.admin_router import router as admin_router
from mockprep.presentation.api.routers.mock_test_router import router as mock_test_router

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def _default_llm_client() -> Optional[LLMClient]:
    if not settings.HF_TOKEN:
        logger.warning("HF_TOKEN is not set, generative sourcing and AI feedback are disabled")
        return None

    return HuggingFaceChatClient.from_settings()


def create_app(
    session_factory: Optional[sessionmaker] = None,
    llm_client: Optional[LLMClient] = None,
    source_material_cache: Optional[SourceMaterialCache] = None,
) -> FastAPI:
    session_factory = session_factory or SessionLocal

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables
        Base.metadata.create_all(bind=session_factory.kw["bind"])
        yield

    app = FastAPI(title="MockPrep API", lifespan=lifespan)

    app.state.session_factory = session_factory
    app.state.llm_client = llm_client if llm_client is not None else _default_llm_client()
    app.state.source_material_cache = source_material_cache or SourceMaterialCache(
        ArticleMaterialLoader(session_factory, settings.SOURCE_ARTICLE_LIMIT),
        ttl_seconds=settings.SOURCE_MATERIAL_TTL_SECONDS,
    )

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal server error occurred."}
        )

    # Include routers
    app.include_router(admin_router)
    app.include_router(mock_test_router)

    @app.get("/")
    def root():
        return {"message": "Welcome to MockPrep API"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mockprep.main:app", host="0.0.0.0", port=8000, reload=True)
