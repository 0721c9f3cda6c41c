"""
POS core main application.
Entry point for the FastAPI server.
"""

from fastapi import FastAPI

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware
from pos_core.core.cors import configure_cors
from pos_core.core.lifespan import lifespan
from pos_core.routers.health import router as health_router
from pos_core.routers.inventory import router as inventory_router
from pos_core.routers.offers import router as offers_router
from pos_core.routers.orders import router as orders_router
from pos_core.routers.recipes import router as recipes_router


def create_app() -> FastAPI:
    """Build the FastAPI application with middlewares and routers."""
    app = FastAPI(
        title="POS Core API",
        description="Orders, inventory costing and offers for multi-business point of sale",
        version="0.1.0",
        lifespan=lifespan,
    )

    configure_cors(app)
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(health_router)
    app.include_router(inventory_router)
    app.include_router(recipes_router)
    app.include_router(offers_router)
    app.include_router(orders_router)

    return app


app = create_app()


def run() -> None:
    """Development server (the `pos-core` console script)."""
    import uvicorn

    uvicorn.run(
        "pos_core.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    run()
