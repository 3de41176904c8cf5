import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from trustroute.config import Settings, settings as default_settings
from trustroute.database import Base, build_engine, build_session_factory, get_db
from trustroute.logging_config import configure_logging
from trustroute.clock import utcnow
from trustroute import models  # noqa: F401
from trustroute.auth.router import router as auth_router, user_router
from trustroute.operators.router import router as operators_router
from trustroute.buses.router import router as buses_router
from trustroute.bookings.router import router as bookings_router
from trustroute.chat.router import router as chat_router
from trustroute.chat.client import ChatClient

logger = logging.getLogger(__name__)

def create_app(
    settings: Optional[Settings] = None,
    chat_client: Optional[ChatClient] = None,
    redis_client: Optional[redis.Redis] = None,
) -> FastAPI:
    """Build the API with its database, cache and chat clients"""
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.database_url)
    if redis_client is None and settings.REDIS_URL:
        redis_client = redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
    chat_client = chat_client or ChatClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)
        yield
        app.state.chat_client.close()
        if app.state.redis is not None:
            app.state.redis.close()
        engine.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Bus ticket booking and refund tracking API",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.redis = redis_client
    app.state.chat_client = chat_client

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        auth_router,
        prefix=f"{settings.API_V1_STR}/auth",
        tags=["Authentication"]
    )

    app.include_router(
        user_router,
        prefix=f"{settings.API_V1_STR}/user",
        tags=["User Profile"]
    )

    app.include_router(
        operators_router,
        prefix=f"{settings.API_V1_STR}/operators",
        tags=["Operators & Refund Policies"]
    )

    app.include_router(
        buses_router,
        prefix=f"{settings.API_V1_STR}/buses",
        tags=["Bus Search"]
    )

    app.include_router(
        bookings_router,
        prefix=f"{settings.API_V1_STR}/bookings",
        tags=["Bookings & Refunds"]
    )

    app.include_router(
        chat_router,
        prefix=f"{settings.API_V1_STR}/chat",
        tags=["Chat Assistant"]
    )

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": "TrustRoute API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check(request: Request, db: Session = Depends(get_db)):
        """Probe the database and the cache"""
        health_status = {
            "status": "ok",
            "timestamp": utcnow().isoformat(),
            "services": {
                "backend": "ok",
                "database": "down",
                "redis": "disabled",
            },
        }

        try:
            db.execute(text("SELECT 1"))
            health_status["services"]["database"] = "ok"
        except Exception:
            logger.exception("Database health check failed")
            health_status["services"]["database"] = "error"
            health_status["status"] = "error"

        cache = request.app.state.redis
        if cache is not None:
            try:
                cache.ping()
                health_status["services"]["redis"] = "ok"
            except redis.RedisError:
                logger.exception("Redis health check failed")
                health_status["services"]["redis"] = "error"
                health_status["status"] = "error"

        return JSONResponse(
            health_status,
            status_code=200 if health_status["status"] == "ok" else 500
        )

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
