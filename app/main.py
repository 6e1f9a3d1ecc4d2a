from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorClient
from app.core.config import settings
from app.core.auth_config import get_auth_config
from app.core.cors import CORSMiddleware, get_cors_options
from app.core.database_indexes import ensure_indexes
from app.api.endpoints import auth, users, chat, messages, streams
import logging

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="OpenChat API")

# Configure CORS
app.add_middleware(CORSMiddleware, options=get_cors_options())

# Include routers
app.include_router(auth.router, prefix="/auth")
app.include_router(users.router, prefix="/users")
app.include_router(chat.router, prefix="/chats")
app.include_router(messages.router, prefix="/messages")
app.include_router(streams.router, prefix="/streams")


@app.get("/")
async def root():
    return {"message": "OpenChat API", "environment": settings.ENVIRONMENT}

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.on_event("startup")
async def startup_db_client():
    # Fail fast on missing auth configuration in strict mode
    get_auth_config()

    app.mongodb_client = AsyncIOMotorClient(settings.MONGODB_URL)
    app.mongodb = app.mongodb_client[settings.DATABASE_NAME]

    try:
        await ensure_indexes(app.mongodb)
    except Exception as e:
        logger.warning(f"Failed to create database indexes: {e}")

@app.on_event("shutdown")
async def shutdown_db_client():
    if hasattr(app, "mongodb_client"):
        app.mongodb_client.close()
