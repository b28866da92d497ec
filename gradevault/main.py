# GradeVault backend entrypoint: FastAPI app factory.

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gradevault.api import auth, classes, grades
from gradevault.core.errors import register_exception_handlers
from gradevault.core.logging import setup_logging
from gradevault.core.settings import Settings
from gradevault.db.base import Base
from gradevault.db.session import build_engine, build_session_factory
from gradevault.services.mailer import EmailService


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    logger = setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=settings.api_version)
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.email_service = EmailService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(classes.router)
    app.include_router(grades.router)

    @app.get("/")
    def read_root():
        return {"app": settings.app_name, "status": "ok"}

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    Base.metadata.create_all(bind=app.state.engine)
    logger.info("%s started (%s)", settings.app_name, settings.environment)
    return app
