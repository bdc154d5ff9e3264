import uuid
from typing import Optional
from sqlmodel import Field

from .base import BaseModelDB


class Video(BaseModelDB, table=True):
    """
    Vidéo d'un utilisateur.

    Le média vidéo est référencé par le couple (video_bucket, video_key) ;
    video_url n'est renseignée qu'en mode URL statique.
    Ces champs ne sont écrits qu'après un upload complet réussi.
    """
    __tablename__ = "videos"

    title: str = Field(description="Titre de la vidéo")
    description: str = Field(default="", description="Description libre")
    user_id: uuid.UUID = Field(index=True, description="Propriétaire de la vidéo")

    thumbnail_url: Optional[str] = Field(default=None, description="URL (ou data URL) de la miniature")
    video_bucket: Optional[str] = Field(default=None, description="Bucket S3/MinIO de la vidéo")
    video_key: Optional[str] = Field(default=None, description="Clé de l'objet dans le bucket")
    video_url: Optional[str] = Field(default=None, description="URL publique (mode statique)")
