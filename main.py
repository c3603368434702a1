import logging
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pymongo.database import Database

from cache import ViewCache
from config import Settings
from database import (
    PropertyNotFound,
    PropertyRepository,
    StoreUnavailable,
    connect,
    get_database,
    to_public,
)
from forms import SubmissionError
from identity import AuthorizationError, SessionUser, get_session_user, require_user
from services import create_property, delete_property
from uploads import AssetUploadError, CloudinaryUploader

logger = logging.getLogger(__name__)


def build_uploader(settings: Settings) -> Optional[CloudinaryUploader]:
    if not settings.uploads_configured:
        logger.warning("Cloudinary credentials not set; image uploads disabled")
        return None
    return CloudinaryUploader(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
        timeout=settings.upload_timeout,
    )


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None,
               uploader: Optional[CloudinaryUploader] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Property Listings API")
    app.state.settings = settings
    app.state.db = db if db is not None else connect(settings)
    app.state.uploader = uploader if uploader is not None else build_uploader(settings)
    app.state.view_cache = ViewCache()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(router)
    return app


# Error translation

def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthorizationError)
    async def _unauthorized(request: Request, exc: AuthorizationError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(SubmissionError)
    async def _invalid_submission(request: Request, exc: SubmissionError):
        return JSONResponse(status_code=422, content={"detail": exc.errors})

    @app.exception_handler(AssetUploadError)
    async def _upload_failed(request: Request, exc: AssetUploadError):
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(PropertyNotFound)
    async def _not_found(request: Request, exc: PropertyNotFound):
        return JSONResponse(status_code=404, content={"detail": "Property not found"})

    @app.exception_handler(StoreUnavailable)
    async def _store_unavailable(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=503, content={"detail": str(exc)})


# Request-scoped collaborators

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(db: Database = Depends(get_database)) -> PropertyRepository:
    return PropertyRepository(db)


def get_view_cache(request: Request) -> ViewCache:
    return request.app.state.view_cache


def get_uploader(request: Request) -> Optional[CloudinaryUploader]:
    return request.app.state.uploader


def redirect_to(path: str) -> RedirectResponse:
    return RedirectResponse(url=path, status_code=303)


# Routes

router = APIRouter()


@router.get("/")
def read_root():
    return {"message": "Property Listings Backend Running"}


@router.get("/test")
def test_database(request: Request):
    settings = get_settings(request)
    db = request.app.state.db
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.database_url else "❌ Not Set",
        "database_name": settings.database_name,
        "connection_status": "Not Connected",
        "collections": [],
        "uploads": "✅ Configured" if request.app.state.uploader else "❌ Not Configured",
    }
    if db is None:
        return response
    response["connection_status"] = "Connected"
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


@router.post("/api/properties")
async def add_property(
    request: Request,
    user: Optional[SessionUser] = Depends(get_session_user),
    repository: PropertyRepository = Depends(get_repository),
    uploader: Optional[CloudinaryUploader] = Depends(get_uploader),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
):
    form = await request.form()
    doc = await create_property(
        form,
        user=user,
        repository=repository,
        uploader=uploader,
        cache=cache,
        settings=settings,
    )
    return redirect_to(f"/properties/{doc['_id']}")


@router.get("/api/properties")
def list_properties(
    request: Request,
    repository: PropertyRepository = Depends(get_repository),
    cache: ViewCache = Depends(get_view_cache),
):
    key = request.url.path
    cached = cache.get(key)
    if cached is not None:
        return cached
    docs = [to_public(d) for d in repository.find()]
    cache.set(key, docs)
    return docs


@router.get("/api/properties/mine")
def list_my_properties(
    user: Optional[SessionUser] = Depends(get_session_user),
    repository: PropertyRepository = Depends(get_repository),
):
    owner = require_user(user)
    return [to_public(d) for d in repository.find_by_owner(owner.id)]


@router.get("/api/properties/{prop_id}")
@router.get("/properties/{prop_id}")
def get_property(prop_id: str, repository: PropertyRepository = Depends(get_repository)):
    doc = repository.find_by_id(prop_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Property not found")
    return to_public(doc)


@router.delete("/api/properties/{prop_id}")
def remove_property(
    prop_id: str,
    user: Optional[SessionUser] = Depends(get_session_user),
    repository: PropertyRepository = Depends(get_repository),
    cache: ViewCache = Depends(get_view_cache),
):
    delete_property(prop_id, user=user, repository=repository, cache=cache)
    return {"deleted": True}


app = create_app()


if __name__ == "__main__":
    settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
