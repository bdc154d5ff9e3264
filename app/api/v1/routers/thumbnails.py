from fastapi import APIRouter, Depends, Response

from app.api.v1.dependencies import get_thumbnail_cache
from app.features.media.services import lookup_cached_thumbnail
from app.features.media.thumbnails import ThumbnailCache

router = APIRouter(
    prefix="/thumbnails",
    tags=["thumbnails"],
    responses={404: {"description": "Not Found"}},
)

@router.get(
    "/{video_id}",
    summary="Servir une miniature stockée en mémoire",
    response_class=Response,
)
def get_thumbnail(
    video_id: str,
    cache: ThumbnailCache = Depends(get_thumbnail_cache),
):
    data, media_type = lookup_cached_thumbnail(cache, video_id)
    return Response(content=data, media_type=media_type)
