# Import all routes
from .auth import router as auth_router
from .orders import router as orders_router
from .products import router as products_router
from .health import router as health_router

# All routers that should be included in main app
__all__ = [
    "auth_router",
    "orders_router",
    "products_router",
    "health_router",
]
