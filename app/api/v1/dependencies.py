"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_video_service() : crée un VideoService à partir d’une session DB et des composants de l'application.

pagination() : paramètres communs page et size.

Les composants longue durée (client S3, prober, remuxer, cache de miniatures…)
vivent dans `app.state` : ils sont créés par `create_app()` et remplaçables en test.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à injecter dans plusieurs endpoints (Depends()).
"""

import uuid

from fastapi import Depends, HTTPException, Query, Request, status, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from app.db.session import get_session
from app.db.repositories.videos import VideoRepository
from app.features.authentication.services import AuthService
from app.db.models.videos import Video
from app.features.media.services import ThumbnailService, VideoService, get_owned_video
from app.features.media.thumbnails import ThumbnailCache


def pagination(
    page: int = Query(1, ge=1, description="Numéro de page", examples=[1]),
    size: int = Query(20, ge=1, le=100, description="Taille de page", examples=[20]),
):
    offset = (page - 1) * size
    return {"offset": offset, "limit": size}


# -----------------------------
# Composants de l'application
# -----------------------------
def get_thumbnail_cache(request: Request) -> ThumbnailCache:
    return request.app.state.thumbnail_cache


# -----------------------------
# Auth
# -----------------------------
def get_auth_service(request: Request) -> AuthService:
    return AuthService(jwt_settings=request.app.state.jwt_settings)


# -----------------------------
# Repositories
# -----------------------------
def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)


# -----------------------------
# Media services
# -----------------------------
def get_video_service(
    request: Request,
    video_repo: VideoRepository = Depends(get_video_repository),
) -> VideoService:
    state = request.app.state
    return VideoService(
        repo=video_repo,
        store=state.object_store,
        prober=state.prober,
        remuxer=state.remuxer,
        url_resolver=state.url_resolver,
        thumbnail_cache=state.thumbnail_cache,
        settings=state.settings,
    )

def get_thumbnail_service(
    request: Request,
    video_repo: VideoRepository = Depends(get_video_repository),
    video_svc: VideoService = Depends(get_video_service),
) -> ThumbnailService:
    return ThumbnailService(
        repo=video_repo,
        thumbnails=request.app.state.thumbnail_store,
        video_svc=video_svc,
        settings=request.app.state.settings,
    )


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=False)

def get_access_token_from_bearer(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> str:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Couldn't find JWT")
    if credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")
    return credentials.credentials

def get_current_user_id(
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> uuid.UUID:
    return auth_svc.get_current_user_id(access_token=access_token)


# -----------------------------
# Ressource ciblée par un upload
# -----------------------------
def get_target_video(
    video_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    video_repo: VideoRepository = Depends(get_video_repository),
) -> Video:
    """
    JWT puis propriété, sans toucher au corps de la requête :
    un upload refusé ne lit (ni ne spoole) aucun octet.
    """
    return get_owned_video(video_repo, video_id, user_id)
