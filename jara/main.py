# jara/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jara.api.routers.checkout import router as checkout_router
from jara.api.routers.health import router as health_router
from jara.api.routers.logistics import router as logistics_router
from jara.api.routers.orders import router as orders_router
from jara.api.routers.payments import router as payments_router
from jara.api.routers.stores import router as stores_router
from jara.core.config import get_settings
from jara.core.logging import setup_logging
from jara.core.security import assert_secure_settings
from jara.db.base import init_models
from jara.db.session import close_engines
from jara.http_problem_handlers import register_exception_handlers
from jara.metrics import router as metrics_router

settings = get_settings()
setup_logging(settings.LOG_LEVEL)
assert_secure_settings(settings)
init_models()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await close_engines()


app = FastAPI(
    title="Jara Market Orders",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ===========================
#   buyer / seller surface
# ===========================
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(stores_router)
app.include_router(logistics_router)

# ===========================
#   collaborators / ops
# ===========================
app.include_router(payments_router)
app.include_router(health_router)
app.include_router(metrics_router)
