import uuid

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from app.api.v1.dependencies import (
    get_current_user_id,
    get_target_video,
    get_thumbnail_service,
    get_video_service,
    pagination,
)
from app.db.models.videos import Video
from app.features.media.schemas import VideoCreate, VideoListOut, VideoOut
from app.features.media.services import (
    ThumbnailService,
    VideoService,
    accept_thumbnail_type,
    accept_video_type,
)
from app.features.media.uploads import receive_upload

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={
        400: {"description": "Requête invalide"},
        401: {"description": "Non authentifié / pas propriétaire"},
        404: {"description": "Introuvable"},
    },
)


def _multipart_body(field: str) -> dict:
    """Documente le champ fichier dans OpenAPI (le corps est lu à la main)."""
    return {
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "required": [field],
                        "properties": {field: {"type": "string", "format": "binary"}},
                    }
                }
            },
        }
    }

# -----------------------------
# Catalogue
# -----------------------------
@router.post(
    "",
    summary="Créer une vidéo (brouillon, sans média)",
    status_code=status.HTTP_201_CREATED,
    response_model=VideoOut,
)
def create_video(
    payload: VideoCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    video_svc: VideoService = Depends(get_video_service),
):
    return video_svc.create(payload, user_id=user_id)

@router.get(
    "",
    summary="Lister mes vidéos",
    response_model=VideoListOut,
)
def list_videos(
    page: dict = Depends(pagination),
    user_id: uuid.UUID = Depends(get_current_user_id),
    video_svc: VideoService = Depends(get_video_service),
):
    return video_svc.list(user_id=user_id, **page)

@router.get(
    "/{video_id}",
    summary="Obtenir une vidéo (URL vidéo résolue à la lecture)",
    response_model=VideoOut,
)
def get_video(
    video_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    video_svc: VideoService = Depends(get_video_service),
):
    return video_svc.get(video_id, user_id=user_id)

@router.delete(
    "/{video_id}",
    summary="Supprimer une vidéo (objet S3 + ligne DB)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={502: {"description": "Erreur du stockage objet"}},
)
def delete_video(
    video_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    video_svc: VideoService = Depends(get_video_service),
):
    video_svc.delete(video_id, user_id=user_id)
    return None

# -----------------------------
# Uploads
# -----------------------------
# Pas de File(...) : FastAPI lirait tout le corps avant les dépendances.
# Le corps est lu en flux, après JWT + propriété ; les étapes bloquantes
# (ffprobe/ffmpeg/S3/DB) passent par le threadpool.
@router.post(
    "/{video_id}/video",
    summary="Uploader le média vidéo (spool → ffprobe → faststart → S3)",
    response_model=VideoOut,
    openapi_extra=_multipart_body("video"),
    responses={500: {"description": "Échec ffprobe/ffmpeg"}, 502: {"description": "Échec upload S3"}},
)
async def upload_video(
    request: Request,
    video: Video = Depends(get_target_video),
    video_svc: VideoService = Depends(get_video_service),
):
    settings = request.app.state.settings
    async with receive_upload(
        request,
        "video",
        max_bytes=settings.MAX_VIDEO_UPLOAD_BYTES,
        accept=accept_video_type,
        directory=settings.TEMP_DIR,
    ) as upload:
        return await run_in_threadpool(video_svc.ingest_video, video, upload)

@router.post(
    "/{video_id}/thumbnail",
    summary="Uploader la miniature",
    response_model=VideoOut,
    openapi_extra=_multipart_body("thumbnail"),
)
async def upload_thumbnail(
    request: Request,
    video: Video = Depends(get_target_video),
    thumb_svc: ThumbnailService = Depends(get_thumbnail_service),
):
    settings = request.app.state.settings
    async with receive_upload(
        request,
        "thumbnail",
        max_bytes=settings.MAX_THUMBNAIL_UPLOAD_BYTES,
        accept=accept_thumbnail_type,
        directory=settings.TEMP_DIR,
    ) as upload:
        return await run_in_threadpool(thumb_svc.upload_thumbnail, video, upload)
