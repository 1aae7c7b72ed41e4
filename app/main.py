from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.api.activity import router as activity_router
from app.api.annotations import router as annotations_router
from app.api.auth import router as auth_router
from app.api.departments import router as departments_router
from app.api.documents import router as documents_router
from app.api.notifications import router as notifications_router
from app.api.rbac import router as rbac_router
from app.api.users import router as users_router
from app.config import settings
from app.logging import configure_logging
from app.observability import ObservabilityMiddleware
from app.errors import register_error_handlers

app = FastAPI(title=f"{settings.brand_name} API")

configure_logging()
app.add_middleware(ObservabilityMiddleware)
register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(auth_router)
_include_api_router(documents_router)
_include_api_router(annotations_router)
_include_api_router(notifications_router)
_include_api_router(activity_router)
_include_api_router(users_router)
_include_api_router(departments_router)
_include_api_router(rbac_router)

app.mount(
    settings.upload_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
