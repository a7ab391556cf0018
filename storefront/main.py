# storefront/main.py
from fastapi import FastAPI
import uvicorn

from storefront.api import register_error_handlers
from storefront.api.routers import carts, health, orders, products, users
from storefront.data.database import Base, init_db
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    init_db()
    logger.info(f"Database ready, tables: {sorted(Base.metadata.tables.keys())}")

    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
    )

    register_error_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
