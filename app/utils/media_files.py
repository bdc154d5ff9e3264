import base64
import re
import secrets
from typing import Optional, Set

import filetype

from app.utils.probe import AspectRatio
from app.utils.spool import UploadTooLarge


# Allow-lists (ajuste selon tes besoins)
ALLOWED_VIDEO_MIME: Set[str] = {"video/mp4"}

ALLOWED_THUMBNAIL_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp"}

EXTENSIONS = {
    "video/mp4": ".mp4",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

_MEDIA_TYPE_RE = re.compile(r"^[a-z0-9][a-z0-9!#$&^_.+-]*/[a-z0-9][a-z0-9!#$&^_.+-]*$")


class InvalidMediaType(ValueError):
    """Type MIME absent, illisible ou non autorisé."""


def parse_media_type(value: Optional[str]) -> str:
    """
    Retourne le type MIME sans paramètres, en minuscules.
    Ex: "Video/MP4; codecs=avc1" -> "video/mp4"
    Lève InvalidMediaType si la valeur n'est pas de la forme type/sous-type.
    """
    if not value:
        raise InvalidMediaType("Type MIME manquant")
    mime = value.split(";", 1)[0].strip().lower()
    if not _MEDIA_TYPE_RE.match(mime):
        raise InvalidMediaType(f"Type MIME invalide: {value!r}")
    return mime


def require_allowed(mime: str, allowed: Set[str]) -> str:
    if mime not in allowed:
        raise InvalidMediaType(f"Type non autorisé: {mime}")
    return mime


def extension_for_media_type(mime: str) -> str:
    return EXTENSIONS.get(mime, ".bin")


def random_name() -> str:
    """32 octets aléatoires (CSPRNG) encodés en base64 URL-safe, sans padding."""
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")


def build_object_key(*, ext: str, aspect_ratio: Optional[AspectRatio] = None) -> str:
    """
    Construit une clé d'objet unique, préfixée par l'orientation.
    Exemple:
      aspect_ratio=LANDSCAPE, ext=".mp4" -> landscape/<43 caractères>.mp4
      aspect_ratio=None, ext=".png"      -> <43 caractères>.png
    Aucune vérification d'unicité côté store : 256 bits d'aléa suffisent.
    """
    prefix = aspect_ratio.prefix if aspect_ratio is not None else ""
    ext = ext if not ext or ext.startswith(".") else f".{ext}"
    return f"{prefix}{random_name()}{ext}"


def validate_image_bytes(file_bytes: bytes, *, declared_mime: str, max_bytes: int) -> str:
    """
    Vérifie taille et type réel (via 'filetype') d'une miniature.
    Retourne le type MIME réel.
    """
    size = len(file_bytes)
    if size == 0:
        raise InvalidMediaType("Fichier vide")
    if size > max_bytes:
        raise UploadTooLarge(max_bytes)

    kind = filetype.guess(file_bytes)
    real_mime = kind.mime if kind else "application/octet-stream"
    require_allowed(real_mime, ALLOWED_THUMBNAIL_MIME)
    if real_mime != declared_mime:
        raise InvalidMediaType(f"Type déclaré {declared_mime} mais contenu {real_mime}")
    return real_mime
