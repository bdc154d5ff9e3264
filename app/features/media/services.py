import logging
import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.db.models.videos import Video
from app.db.repositories.videos import VideoRepository
from app.features.media.schemas import VideoCreate, VideoListOut, VideoOut
from app.features.media.thumbnails import Thumbnail, ThumbnailCache, ThumbnailStore
from app.features.media.uploads import ReceivedUpload
from app.features.media.urls import VideoUrlResolver, video_ref
from app.utils.media_files import (
    ALLOWED_THUMBNAIL_MIME,
    ALLOWED_VIDEO_MIME,
    build_object_key,
    extension_for_media_type,
    parse_media_type,
    require_allowed,
    validate_image_bytes,
)
from app.utils.probe import AspectRatio, ProbeError, Prober, get_video_aspect_ratio
from app.utils.s3 import ObjectStore, ObjectStoreError, VideoRef
from app.utils.spool import remove_quietly
from app.utils.transcode import RemuxError, Remuxer

logger = logging.getLogger(__name__)


def parse_video_id(video_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(video_id)
    except (ValueError, TypeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID")


def get_owned_video(repo: VideoRepository, video_id: str, user_id: uuid.UUID) -> Video:
    """
    Charge la vidéo et vérifie que l'appelant en est propriétaire.
    400 si l'id est invalide, 404 si inconnue, 401 si autre propriétaire.
    """
    vid = parse_video_id(video_id)
    video = repo.get(vid)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Could not retrieve video data")
    if video.user_id != user_id:
        logger.warning("User %s denied access to video %s", user_id, vid)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="You do not have access to that video")
    return video


class VideoService:
    """
    Service Vidéos : orchestre repository + pipeline d'ingestion + S3/MinIO.

    Pipeline d'upload (séquentiel, une requête = ses propres fichiers temporaires) :
    spool -> ffprobe (orientation) -> ffmpeg faststart -> clé -> PUT S3 -> DB -> URL.

    La ligne vidéo n'est modifiée qu'après un PUT réussi.
    """

    def __init__(
        self,
        *,
        repo: VideoRepository,
        store: ObjectStore,
        prober: Prober,
        remuxer: Remuxer,
        url_resolver: VideoUrlResolver,
        thumbnail_cache: ThumbnailCache,
        settings,
    ):
        self.repo = repo
        self.store = store
        self.prober = prober
        self.remuxer = remuxer
        self.url_resolver = url_resolver
        self.thumbnail_cache = thumbnail_cache
        self.settings = settings

    # ---------- Catalogue ----------

    def create(self, payload: VideoCreate, *, user_id: uuid.UUID) -> VideoOut:
        video = self.repo.create(title=payload.title, description=payload.description, user_id=user_id)
        logger.info("Created video %s for user %s", video.id, user_id)
        return self.resolve(video)

    def list(self, *, user_id: uuid.UUID, offset: int, limit: int) -> VideoListOut:
        items = self.repo.list_by_user(user_id, offset=offset, limit=limit)
        return VideoListOut(items=[self.resolve(v) for v in items], total=len(items))

    def get(self, video_id: str, *, user_id: uuid.UUID) -> VideoOut:
        return self.resolve(get_owned_video(self.repo, video_id, user_id))

    def delete(self, video_id: str, *, user_id: uuid.UUID) -> None:
        video = get_owned_video(self.repo, video_id, user_id)
        ref = video_ref(video)
        if ref is not None:
            try:
                self.store.delete(ref)
            except ObjectStoreError as e:
                logger.error("Could not delete object for video %s", video.id, exc_info=True)
                raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
        vid = video.id
        self.repo.delete(video)
        self.thumbnail_cache.pop(vid)
        logger.info("Deleted video %s", vid)

    def resolve(self, video: Video) -> VideoOut:
        try:
            return self.url_resolver.resolve(video)
        except ObjectStoreError as e:
            logger.error("Could not resolve video URL for %s", video.id, exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Could not get presigned video URL: {e}",
            )

    # ---------- Upload ----------

    def ingest_video(self, video: Video, upload: ReceivedUpload) -> VideoOut:
        """Fichier déjà spoolé (cf. receive_upload) -> ffprobe -> faststart -> S3 -> DB."""
        vid = video.id
        logger.info("Ingesting video for %s (%d bytes)", video.id, upload.spooled.size)
        try:
            ratio = get_video_aspect_ratio(upload.spooled.path, self.prober)
            ref = self._process_and_put(upload.spooled.path, ratio=ratio, mime=upload.media_type)
        except ProbeError as e:
            logger.error("Probe failed for video %s", video.id, exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Unable to determine aspect ratio: {e}",
            )
        except RemuxError as e:
            logger.error("Remux failed for video %s", video.id, exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Could not process video: {e}",
            )
        except ObjectStoreError as e:
            logger.error("Upload failed for video %s", video.id, exc_info=True)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Upload to object store failed: {e}")

        try:
            video = self.repo.update(
                video,
                video_bucket=ref.bucket,
                video_key=ref.key,
                video_url=self.url_resolver.stored_url(ref),
            )
        except SQLAlchemyError:
            # l'objet reste dans le bucket sans ligne qui le référence
            logger.error("Video %s uploaded to %s/%s but DB update failed", vid, ref.bucket, ref.key, exc_info=True)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Couldn't update video")

        return self.resolve(video)

    def _process_and_put(self, path: str, *, ratio: AspectRatio, mime: str) -> VideoRef:
        processed = self.remuxer.remux(path)
        try:
            key = build_object_key(ext=extension_for_media_type(mime), aspect_ratio=ratio)
            return self.store.put_file(key=key, path=processed, content_type=mime)
        finally:
            remove_quietly(processed)


class ThumbnailService:
    """
    Service Miniatures : validation + ThumbnailStore (disque, inline ou mémoire).
    """

    def __init__(
        self,
        *,
        repo: VideoRepository,
        thumbnails: ThumbnailStore,
        video_svc: VideoService,
        settings,
    ):
        self.repo = repo
        self.thumbnails = thumbnails
        self.video_svc = video_svc
        self.settings = settings

    def upload_thumbnail(self, video: Video, upload: ReceivedUpload) -> VideoOut:
        data = upload.spooled.file.read()
        try:
            mime = validate_image_bytes(
                data, declared_mime=upload.media_type, max_bytes=self.settings.MAX_THUMBNAIL_UPLOAD_BYTES
            )
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        try:
            stored = self.thumbnails.store(video.id, data, mime)
        except OSError:
            logger.error("Could not store thumbnail for %s", video.id, exc_info=True)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Couldn't store thumbnail")

        vid = video.id
        try:
            video = self.repo.update(video, thumbnail_url=stored.url)
        except SQLAlchemyError:
            # la miniature précédente doit rester celle servie
            stored.undo()
            logger.error("Thumbnail stored for %s but DB update failed", vid, exc_info=True)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Couldn't update video")

        logger.info("Thumbnail updated for video %s (%s, %d bytes)", vid, mime, len(data))
        return self.video_svc.resolve(video)


def accept_video_type(content_type: Optional[str]) -> str:
    return require_allowed(parse_media_type(content_type), ALLOWED_VIDEO_MIME)


def accept_thumbnail_type(content_type: Optional[str]) -> str:
    return require_allowed(parse_media_type(content_type), ALLOWED_THUMBNAIL_MIME)


def lookup_cached_thumbnail(cache: ThumbnailCache, video_id: str) -> Thumbnail:
    vid = parse_video_id(video_id)
    item = cache.get(vid)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thumbnail not found")
    return item
