from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings
from src.database.core import engine, Base
from src.entities.admin import Admin  # Import models to register them
from src.entities.category import Category  # Import models to register them
from src.entities.product import Product  # Import models to register them
from src.entities.activity_log import ActivityLog  # Import models to register them
from src.api import register_routes
from src.exceptions.handlers import register_exception_handlers
from src.rate_limiting import limiter
from src.utils.cache import CategoryCache, TTLSlot

from src.logging import configure_logging

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Cria tabelas ausentes; mudanças de schema passam pelo alembic
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


app = FastAPI(title="Storefront CMS API", lifespan=lifespan)

# Um único cache por aplicação, injetado nos handlers via CategoryCacheDep
app.state.category_cache = CategoryCache(ttl=settings.CATEGORY_CACHE_TTL_SECONDS)
app.state.category_stats_cache = TTLSlot(settings.CATEGORY_CACHE_TTL_SECONDS)
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
register_routes(app)
