import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from core.logging import setup_logging
from database import init_models, create_tables

setup_logging()
init_models()

logger = logging.getLogger(__name__)

# Routers
from routers import posts, relationships, notifications, push, player, growth, users

app = FastAPI(
    title="TuneCircle API",
    description="Music posts, follows, listening presence and notifications.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Posts", "description": "Feed, posts and engagement"},
        {"name": "Relationships", "description": "Follows and follower lists"},
        {"name": "Notifications", "description": "In-app notifications"},
        {"name": "Push", "description": "Browser push subscriptions"},
        {"name": "Player", "description": "Playback state and listening presence"},
        {"name": "Growth", "description": "Onboarding of new accounts"},
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    create_tables()
    logger.info("Database tables ready")


app.include_router(posts.router)
app.include_router(relationships.router)
app.include_router(notifications.router)
app.include_router(push.router)
app.include_router(player.router)
app.include_router(growth.router)
app.include_router(users.router)


@app.get("/health", include_in_schema=False)
async def health_check():
    return {"status": "ok", "message": "Service is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
