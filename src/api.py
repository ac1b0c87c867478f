from fastapi import FastAPI
from src.config import settings
from src.auth.controller import router as auth_router
from src.categories.controller import router as categories_router
from src.products.controller import router as products_router
from src.activity_logs.controller import router as activity_logs_router
from src.storefront.controller import router as storefront_router


def register_routes(app: FastAPI, prefix: str = settings.API_PREFIX):
    app.include_router(auth_router, prefix=prefix)
    app.include_router(categories_router, prefix=prefix)
    app.include_router(products_router, prefix=prefix)
    app.include_router(activity_logs_router, prefix=prefix)
    app.include_router(storefront_router, prefix=prefix)
