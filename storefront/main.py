import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.exceptions import register_exception_handlers
from storefront.routes import health, orders

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
        logger.info("Local database tables ensured")
    yield


app = FastAPI(title="Storefront Orders API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "order_endpoints": [
            "/api/orders/create", "/api/orders/{order_id}",
            "/api/orders/{order_id}/pay"
        ],
        "health": ["/health/check"]
    }
