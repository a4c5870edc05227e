import uvicorn
from fastapi import FastAPI

from integral_rush.api.routes.duels import router as duels_router
from integral_rush.api.routes.health import router as health_router
from integral_rush.api.routes.matchmaking import router as matchmaking_router
from integral_rush.api.routes.tournaments import router as tournaments_router
from integral_rush.core.config import get_settings
from integral_rush.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")

    app = FastAPI(
        title="Integral Rush Multiplayer API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(health_router)
    app.include_router(duels_router)
    app.include_router(matchmaking_router)
    app.include_router(tournaments_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "integral_rush.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
