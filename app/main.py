"""
➡️ But : assembler toutes les pièces du puzzle.

create_app() crée l’instance FastAPI (app).

Configure :

CORS (autorisations de qui peut appeler ces API)

titre, version, tags

schéma OpenAPI personnalisé

les composants longue durée dans app.state (engine DB, client S3, ffprobe/ffmpeg, stockage des miniatures)

Inclut les routers (ex : /api/v1/videos) et monte ASSETS_ROOT sous /assets.

Initialise la base SQLite au démarrage (lifespan).

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d’exécution : uvicorn app.main:app --reload.

Les tests créent une app neuve (create_app(settings=...)) et remplacent les composants dans app.state.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import Settings, settings as default_settings, make_jwt_settings
from app.core.logging import configure_logging
from app.core.openapi import custom_openapi
from app.db.session import build_engine, init_db
from app.features.media.thumbnails import ThumbnailCache, make_thumbnail_store
from app.features.media.urls import make_url_resolver
from app.utils.probe import FFprobe
from app.utils.s3 import ObjectStore, make_s3_from_settings
from app.utils.transcode import FFmpegRemuxer

from app.api.v1.routers import videos, thumbnails

import uvicorn

logger = logging.getLogger(__name__)


# Démarrage
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    init_db(app.state.engine)
    logger.info(
        "%s started (env=%s, video urls=%s, thumbnails=%s)",
        settings.APP_NAME, settings.ENV, settings.VIDEO_URL_MODE, settings.THUMBNAIL_STRATEGY,
    )
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "videos", "description": "Opérations liées aux vidéos (upload, miniatures, URLs)"},
            {"name": "thumbnails", "description": "Miniatures servies depuis la mémoire"},
        ],
    )

    # CORS (ajustez selon vos besoins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    # Composants partagés par toutes les requêtes
    store = ObjectStore(make_s3_from_settings(settings), settings.S3_BUCKET)
    cache = ThumbnailCache()
    app.state.settings = settings
    app.state.jwt_settings = make_jwt_settings(settings)
    app.state.engine = build_engine(settings.DATABASE_URL, echo=(settings.ENV == "dev"))
    app.state.object_store = store
    app.state.prober = FFprobe(settings.FFPROBE_BIN, timeout=settings.PROBE_TIMEOUT_SECONDS)
    app.state.remuxer = FFmpegRemuxer(settings.FFMPEG_BIN, timeout=settings.REMUX_TIMEOUT_SECONDS)
    app.state.url_resolver = make_url_resolver(settings, store)
    app.state.thumbnail_cache = cache
    app.state.thumbnail_store = make_thumbnail_store(settings, cache)

    # Routers
    app.include_router(videos.router, prefix="/api/v1")
    app.include_router(thumbnails.router, prefix="/api/v1")

    # Miniatures "disk" servies en statique
    os.makedirs(settings.ASSETS_ROOT, exist_ok=True)
    app.mount("/assets", StaticFiles(directory=settings.ASSETS_ROOT), name="assets")

    # Entrée invalide (champ de formulaire manquant, JSON mal formé…) -> 400 plutôt que 422
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    # Génération du schéma OpenAPI custom (facultatif, mais propre)
    app.openapi = lambda: custom_openapi(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=default_settings.PORT) # http://localhost:8091
