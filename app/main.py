"""
ASGI entry point: `uvicorn app.main:app --reload`.

create_app() wires logging, the exception envelope, slowapi, the course
cache, CORS and the routers. Tests call it directly to get a fresh app.
Outside production the OpenAPI UI is served at /docs and /redoc.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.cache import CacheBackend
from app.core.error_handlers import register_exception_handlers
from app.core.rate_limiter import limiter
from app.routers import auth, users, admin, courses, enrollments, payments, dashboard


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Course Marketplace API",
        description=(
            "Backend for an online course marketplace. "
            "Supports OTP-verified accounts, instructor course management, "
            "free enrollment and Razorpay checkout for paid courses."
        ),
        version="1.0.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    # ── Rate Limiter ──────────────────────────────────────────────────────────
    # slowapi reads the limiter from app.state; the 429 handler lives in
    # register_exception_handlers so it uses the common error envelope.
    app.state.limiter = limiter
    register_exception_handlers(app)

    # ── Course cache ──────────────────────────────────────────────────────────
    app.state.course_cache = CacheBackend(
        ttl_seconds=settings.course_cache_ttl_seconds,
        max_entries=settings.course_cache_max_entries,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    # CORS_ORIGINS in .env should only list the frontend domain in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    # Public auth endpoints
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(users.router, prefix="/users", tags=["Users"])

    # Catalogue and learning
    app.include_router(courses.router, prefix="/courses", tags=["Courses"])
    app.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
    app.include_router(payments.router, prefix="/payments", tags=["Payments"])
    app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])

    # Admin panel (all endpoints gated by get_current_admin inside the router)
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])

    # Liveness check for the load balancer; touches neither DB nor provider
    @app.get("/health", tags=["Health"])
    def health_check():
        return {"status": "ok", "version": app.version}

    return app


app = create_app()
