"""
Stockage des miniatures : une seule capacité `store(...) -> StoredThumbnail` (URL + annulation), trois implémentations.

- DiskThumbnailStore   : fichier sous ASSETS_ROOT, servi en statique sous /assets
- InlineThumbnailStore : data URL base64, rien n'est stocké ailleurs
- MemoryThumbnailStore : octets + type MIME dans un ThumbnailCache, servis par /api/v1/thumbnails/{id}

Une seule stratégie active par déploiement (THUMBNAIL_STRATEGY).
"""

import base64
import logging
import os
import threading
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from app.utils.media_files import build_object_key, extension_for_media_type
from app.utils.spool import remove_quietly

logger = logging.getLogger(__name__)

Thumbnail = Tuple[bytes, str]  # (data, media_type)


class ThumbnailCache:
    """
    Dictionnaire thread-safe video_id -> (octets, type MIME).
    Appartient à l'application (app.state) ; entrée retirée à la suppression de la vidéo.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[uuid.UUID, Thumbnail] = {}

    def get(self, video_id: uuid.UUID) -> Optional[Thumbnail]:
        with self._lock:
            return self._items.get(video_id)

    def swap(self, video_id: uuid.UUID, data: bytes, media_type: str) -> Tuple[Thumbnail, Optional[Thumbnail]]:
        """Remplace l'entrée ; renvoie (nouvelle, précédente)."""
        item = (data, media_type)
        with self._lock:
            previous = self._items.get(video_id)
            self._items[video_id] = item
        return item, previous

    def restore(self, video_id: uuid.UUID, expected: Thumbnail, previous: Optional[Thumbnail]) -> None:
        """Remet `previous` si l'entrée courante est toujours `expected`."""
        with self._lock:
            if self._items.get(video_id) is not expected:
                return
            if previous is None:
                del self._items[video_id]
            else:
                self._items[video_id] = previous

    def pop(self, video_id: uuid.UUID) -> Optional[Thumbnail]:
        with self._lock:
            return self._items.pop(video_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass
class StoredThumbnail:
    """URL à enregistrer + annulation si la ligne vidéo ne peut pas être mise à jour."""
    url: str
    undo: Callable[[], None]


def _nothing_to_undo() -> None:
    pass


class ThumbnailStore(Protocol):
    def store(self, video_id: uuid.UUID, data: bytes, media_type: str) -> StoredThumbnail: ...


class DiskThumbnailStore:
    def __init__(self, assets_root: str, public_base_url: str):
        self.assets_root = assets_root
        self.public_base_url = public_base_url.rstrip("/")

    def store(self, video_id: uuid.UUID, data: bytes, media_type: str) -> StoredThumbnail:
        os.makedirs(self.assets_root, exist_ok=True)
        name = build_object_key(ext=extension_for_media_type(media_type))
        path = os.path.join(self.assets_root, name)
        with open(path, "wb") as f:
            f.write(data)
        logger.info("Thumbnail for %s written to %s", video_id, path)
        return StoredThumbnail(
            url=f"{self.public_base_url}/assets/{name}",
            undo=lambda: remove_quietly(path),
        )


class InlineThumbnailStore:
    def store(self, video_id: uuid.UUID, data: bytes, media_type: str) -> StoredThumbnail:
        encoded = base64.b64encode(data).decode("ascii")
        return StoredThumbnail(url=f"data:{media_type};base64,{encoded}", undo=_nothing_to_undo)


class MemoryThumbnailStore:
    def __init__(self, cache: ThumbnailCache, public_base_url: str):
        self.cache = cache
        self.public_base_url = public_base_url.rstrip("/")

    def store(self, video_id: uuid.UUID, data: bytes, media_type: str) -> StoredThumbnail:
        # l'URL est la même à chaque upload : l'annulation remet l'ancienne entrée
        item, previous = self.cache.swap(video_id, data, media_type)
        return StoredThumbnail(
            url=f"{self.public_base_url}/api/v1/thumbnails/{video_id}",
            undo=lambda: self.cache.restore(video_id, item, previous),
        )


def make_thumbnail_store(settings, cache: ThumbnailCache) -> ThumbnailStore:
    strategy = settings.THUMBNAIL_STRATEGY
    if strategy == "inline":
        return InlineThumbnailStore()
    if strategy == "memory":
        return MemoryThumbnailStore(cache, settings.PUBLIC_BASE_URL)
    return DiskThumbnailStore(settings.ASSETS_ROOT, settings.PUBLIC_BASE_URL)
