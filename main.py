from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shared.config import settings
from shared.config.database import engine, Base
from shared.errors import register_exception_handlers
from shared.observability import setup_observability
from shared.security import EdgeMiddleware, exempt_non_api_routes, limiter, rate_limit_exceeded_handler

# IMPORTANT: import models so they register with Base
from services.order_service import models as order_models  # noqa: F401

from services.address_service.router import router as address_router
from services.health_service.router import router as health_router
from services.order_service.router import router as order_router
from services.payment_service.router import router as payment_router
from services.product_service.router import router as product_router

app = FastAPI(title="Storefront API", version=settings.APP_VERSION)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, "storefront")

register_exception_handlers(app)

# --- SECURITY SETUP ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(EdgeMiddleware)  # outermost: headers land on 429s too

app.include_router(health_router, prefix="/api")
app.include_router(product_router, prefix="/api")
app.include_router(address_router, prefix="/api")
app.include_router(order_router, prefix="/api")
app.include_router(payment_router, prefix="/api")

exempt_non_api_routes(app, limiter)


@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
