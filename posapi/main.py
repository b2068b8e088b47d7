import logging
from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from posapi import containers
from posapi.config import settings
from posapi.core.exception_handlers import register_exception_handlers
from posapi.core.logging_middleware import LoggingMiddleware
from posapi.logging_config import setup_logging
from posapi.routers import (
    auth_router,
    checkout_router,
    customer_router,
    debt_router,
    health_router,
    inventory_router,
    order_router,
    product_router,
    report_router,
    savings_router,
)

load_dotenv("posapi/.env")
setup_logging(settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT != "local")
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    if settings.AUTO_CREATE_TABLES:
        from posapi.database.connection import engine
        from posapi.models import Base

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

    prefix = settings.API_V1_STR
    app.include_router(health_router.router, prefix=prefix)
    app.include_router(auth_router.router, prefix=prefix)
    app.include_router(product_router.router, prefix=prefix)
    app.include_router(product_router.category_router, prefix=prefix)
    app.include_router(customer_router.router, prefix=prefix)
    app.include_router(savings_router.router, prefix=prefix)
    app.include_router(checkout_router.router, prefix=prefix)
    app.include_router(checkout_router.sales_router, prefix=prefix)
    app.include_router(debt_router.router, prefix=prefix)
    app.include_router(inventory_router.router, prefix=prefix)
    app.include_router(order_router.router, prefix=prefix)
    app.include_router(report_router.router, prefix=prefix)

    @app.get("/")
    def hello() -> dict:
        return {"message": f"{settings.APP_NAME} is running"}

    return app


app = create_app()

handler = Mangum(app)
