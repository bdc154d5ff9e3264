"""
Résolution de l'URL vidéo exposée au client.

Deux stratégies, choisies par configuration (VIDEO_URL_MODE) :

- static : l'URL publique est composée une fois à l'upload et stockée en DB.
- signed : seul le couple (bucket, key) est stocké ; une URL GET signée
  (PRESIGN_TTL_SECONDS) est fabriquée à chaque lecture.

`resolve` ne modifie jamais la ligne en base.
"""

import logging
from typing import Optional, Protocol

from app.db.models.videos import Video
from app.features.media.schemas import VideoOut
from app.utils.s3 import ObjectStore, VideoRef, public_object_url

logger = logging.getLogger(__name__)


def video_ref(video: Video) -> Optional[VideoRef]:
    if not video.video_bucket or not video.video_key:
        return None
    return VideoRef(bucket=video.video_bucket, key=video.video_key)


class VideoUrlResolver(Protocol):
    def stored_url(self, ref: VideoRef) -> Optional[str]:
        """Valeur à persister dans `video_url` après l'upload."""
        ...

    def resolve(self, video: Video) -> VideoOut: ...


class StaticUrlResolver:
    def __init__(self, base_url: str):
        self.base_url = base_url

    def stored_url(self, ref: VideoRef) -> Optional[str]:
        return public_object_url(self.base_url, ref)

    def resolve(self, video: Video) -> VideoOut:
        return VideoOut.model_validate(video)


class SignedUrlResolver:
    def __init__(self, store: ObjectStore, ttl: int = 600):
        self.store = store
        self.ttl = ttl

    def stored_url(self, ref: VideoRef) -> Optional[str]:
        return None

    def resolve(self, video: Video) -> VideoOut:
        out = VideoOut.model_validate(video)
        ref = video_ref(video)
        if ref is None:
            return out
        url = self.store.presign_get(ref, ttl=self.ttl)
        logger.debug("Presigned %s/%s for %ss", ref.bucket, ref.key, self.ttl)
        return out.model_copy(update={"video_url": url})


def make_url_resolver(settings, store: ObjectStore) -> VideoUrlResolver:
    if settings.VIDEO_URL_MODE == "static":
        return StaticUrlResolver(settings.S3_PUBLIC_BASE_URL)
    return SignedUrlResolver(store, ttl=settings.PRESIGN_TTL_SECONDS)
