import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statement_pipeline.config import settings
from statement_pipeline.routes import health, statements
from statement_pipeline.services.document.ocr import close_client as close_ocr_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Shutdown - cleanup SDK clients
    await close_ocr_client()


app = FastAPI(
    title="Statement Pipeline API",
    description="Bank statement parsing with Document AI OCR",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(statements.router, prefix="/api/statements", tags=["statements"])
app.include_router(health.router, prefix="/api/health", tags=["health"])
