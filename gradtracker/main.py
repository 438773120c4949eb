
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from gradtracker.middleware.auth import auth_middleware
from gradtracker.middleware.request_logging import RequestLoggingMiddleware
from gradtracker.config import Settings, settings
from gradtracker.db.session import init_db
from gradtracker.documents.storage import DocumentStore
from gradtracker.errors import register_exception_handlers
from gradtracker.logging_config import setup_logging
from gradtracker.utils.security import TokenIssuer
from gradtracker.auth.routes import router as users_router
from gradtracker.programs.routes import router as programs_router
from gradtracker.documents.routes import router as documents_router
from gradtracker.program_documents.routes import router as links_router
from gradtracker.dashboard.routes import router as dashboard_router

logger = logging.getLogger(__name__)

def create_app(app_settings: Settings = settings, create_tables: bool = True) -> FastAPI:
    setup_logging(app_settings)
    app = FastAPI(title=app_settings.app_name)

    # fails fast when SECRET_KEY is not configured
    app.state.token_issuer = TokenIssuer(app_settings.secret_key, app_settings.access_token_expire_minutes)
    app.state.document_store = DocumentStore(app_settings.upload_dir, app_settings.max_upload_bytes)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(auth_middleware)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(users_router)
    app.include_router(programs_router)
    app.include_router(documents_router)
    app.include_router(links_router)
    app.include_router(dashboard_router)

    @app.on_event("startup")
    def on_startup():
        if create_tables:
            init_db()
        logger.info("%s started (env=%s)", app_settings.app_name, app_settings.app_env)

    @app.get("/health", tags=["root"])
    def health():
        return {"status": "ok"}

    @app.get("/", tags=["root"])
    def root():
        return {"name": app_settings.app_name, "env": app_settings.app_env}

    return app

app = create_app()
