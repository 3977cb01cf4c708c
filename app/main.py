import logging

from fastapi import FastAPI
from app.database import create_db_and_tables
from app.config import settings
from app.exceptions import StorefrontError, storefront_error_handler
from app.routes import (
    admin_keys,
    admin_orders,
    admin_users,
    content,
    health,
    keys,
    units_admin,
    units_public,
    user_orders,
    users,
)

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Course Notes Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StorefrontError, storefront_error_handler)

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(units_public.router, prefix="/units", tags=["Public Units"])
app.include_router(user_orders.router, prefix="/orders", tags=["Orders"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(keys.router, prefix="/keys", tags=["Manual Keys"])
app.include_router(content.router, prefix="/content", tags=["Unlocked Content"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(admin_keys.router, prefix="/admin/keys", tags=["Admin Manual Keys"])
app.include_router(units_admin.router, prefix="/admin/units", tags=["Admin Units"])
app.include_router(admin_users.router, prefix="/admin/users", tags=["Admin Users"])


@app.get("/")
def root():
    return {
        "order_endpoints": [
            "/orders", "/orders/me", "/orders/{order_id}", "/orders/{order_id}/receipt"
        ],
        "content_endpoints": [
            "/content", "/content/download-link", "/content/consume"
        ],
        "user_endpoints": [
            "/users/me", "/users/update-profile", "/users/me/token"
        ],
        "key_endpoints": [
            "/keys/redeem"
        ],
        "admin_endpoints": [
            "/admin/orders", "/admin/orders/fulfill", "/admin/orders/{order_id}/status",
            "/admin/orders/{order_id}/events", "/admin/keys", "/admin/units",
            "/admin/users", "/admin/users/{uid}/role"
        ],
        "public_units": [
            "/units"
        ]
    }
