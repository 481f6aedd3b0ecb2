import uvicorn
from fastapi import FastAPI

from app.api.routes.health import router as health_router
from app.api.routes.sessions import router as sessions_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.game.sessions.observers import SessionObserverHub
from app.game.sessions.service_facade import GameSessionFacade


def create_app(*, session_facade: GameSessionFacade | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")

    app = FastAPI(
        title="Duo Challenge Sessions API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.session_facade = session_facade or GameSessionFacade(
        SessionLocal,
        observers=SessionObserverHub(),
    )
    app.include_router(health_router)
    app.include_router(sessions_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
