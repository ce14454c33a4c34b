# enrollment_portal/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from enrollment_portal.core.config import settings
from enrollment_portal.api.routers import auth as auth_router
from enrollment_portal.api.routers import registrations as registrations_router
from enrollment_portal.api.routers import catalog as catalog_router
from enrollment_portal.api.routers import fees as fees_router
from enrollment_portal.api.routers import students as students_router
from enrollment_portal.api.routers import enrollments as enrollments_router
from enrollment_portal.api.routers import payments as payments_router
from enrollment_portal.api.routers import notifications as notifications_router
from enrollment_portal.api.routers import dashboard as dashboard_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Student Enrollment Portal", version="0.3.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    app.include_router(auth_router.router, prefix="/api")

    # Admissions
    app.include_router(registrations_router.router, prefix="/api")
    app.include_router(students_router.router, prefix="/api")
    app.include_router(enrollments_router.router, prefix="/api")

    # Curriculum and billing
    app.include_router(catalog_router.router, prefix="/api")
    app.include_router(fees_router.router, prefix="/api")
    app.include_router(payments_router.router, prefix="/api")

    app.include_router(notifications_router.router, prefix="/api")
    app.include_router(dashboard_router.router, prefix="/api")

    logger.info(f"Portal started ({settings.ENV}) with {len(app.routes)} routes")

    @app.get("/healthz")
    def health():
        return {"ok": True}

    return app


app = create_app()
