import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsletter_admin.config import settings
from newsletter_admin.db.mongodb import init_mongodb, close_mongodb
from newsletter_admin.middleware.error_handler import ErrorHandlerMiddleware
from newsletter_admin.routes import invites

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_mongodb()
    logging.getLogger(__name__).info("Database connection established")
    yield
    await close_mongodb()
    logging.getLogger(__name__).info("Database connection closed")


app = FastAPI(title="Discover Newsletters Admin", version="0.1.0", lifespan=lifespan)

# Middleware (order matters: outermost first)
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(invites.router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}
