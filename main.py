import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import customers, inventory, items, phones, sales
from src.core.config import Settings
from src.core.database import Database

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the API application.

    The database handle is opened when the app starts and disposed when it
    stops; pass one in to reuse an existing engine.
    """
    settings = settings or Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.database_url)
        if settings.create_tables:
            db.create_all()
        app.state.database = db
        logger.info("PhoneFix backend started")
        try:
            yield
        finally:
            db.dispose()

    app = FastAPI(
        title="PhoneFix Backend",
        description="Customers, catalog, inventory, sales and phone resale for a repair shop",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Request validation failures answer 400, like ledger ValidationError
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    # Include routers
    app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
    app.include_router(items.router, prefix="/api/items", tags=["items"])
    app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
    app.include_router(sales.router, prefix="/api/sales", tags=["sales"])
    app.include_router(phones.router, prefix="/api/phones", tags=["phones"])

    @app.get("/")
    async def root():
        return {"message": "PhoneFix Backend API"}

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
