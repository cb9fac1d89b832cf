from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.config import Settings, get_settings
from app.database import build_engine, build_session_factory, create_tables
from app.exceptions import MoyoClubError
from app.routes import auth_router, orders_router, products_router, health_router
from app.services.email_service import build_notifier

# Enable logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PUBLIC_PATHS = ["/api/auth/request-otp", "/api/auth/verify-otp", "/api/products", "/api/health", "/docs", "/redoc", "/openapi.json"]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="MoyoClub Backend")

    # Everything a request needs hangs off app.state; no module globals
    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.notifier = build_notifier(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600
    )

    @app.exception_handler(MoyoClubError)
    async def moyoclub_error_handler(request: Request, exc: MoyoClubError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=app.title,
            version="1.0.0",
            description="MoyoClub API - OTP sign-in, catalog and order lifecycle",
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
        openapi_schema["components"]["securitySchemes"]["BearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter the session token in the format: Bearer <token>"
        }

        for path_name, path_item in openapi_schema["paths"].items():
            if any(path_name.startswith(public_path) for public_path in PUBLIC_PATHS):
                continue
            for method_name, method_item in path_item.items():
                if method_name in ["get", "post", "put", "delete", "patch"]:
                    method_item.setdefault("security", []).append({"BearerAuth": []})

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    for router in [auth_router, orders_router, products_router, health_router]:
        app.include_router(router)
        logger.info(f"Included router: {router.prefix}")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "status": "ok",
            "message": "Welcome to the MoyoClub Backend API",
            "version": "1.0.0",
            "docs": "/docs",
            "endpoints": [
                "/api/auth/* - OTP sign-in and current account",
                "/api/orders/* - Order placement and status",
                "/api/products/* - Meal catalog",
                "/api/health - System health check"
            ]
        }

    @app.on_event("startup")
    async def startup_event():
        logger.info("🚀 MoyoClub Backend starting up...")
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("✅ Database connection successful!")
        except Exception as e:
            logger.error(f"❌ Database connection failed: {e}")
            raise
        create_tables(engine)
        if not settings.DEBUG and settings.SECRET_KEY == Settings.model_fields["SECRET_KEY"].default:
            logger.warning("⚠️ SECRET_KEY is the built-in default; set it before going live")
        logger.info(f"🌐 CORS enabled for origins: {settings.CORS_ORIGINS}")
        logger.info("✅ Server is ready to handle requests")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("🛑 MoyoClub Backend shutting down...")
        engine.dispose()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )
