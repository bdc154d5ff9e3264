"""
➡️ But : Centraliser tous les paramètres configurables (nom d’app, chemin DB, secrets, S3, outils ffmpeg…)

Utilise pydantic-settings pour charger automatiquement les variables d’environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from app.core.config import settings
print(settings.S3_BUCKET)


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from datetime import timedelta
from typing import Literal, Optional

from pydantic_settings import BaseSettings
from app.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Tubely"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"
    PORT: int = 8091
    # URL publique du serveur (thumbnails disque / mémoire). Déduite de PORT si None.
    PUBLIC_BASE_URL: Optional[str] = None
    # Racine servie en statique sous /assets
    ASSETS_ROOT: str = "assets"

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "tubely.db"  # fichier SQLite
    # "sqlite://" = base en mémoire partagée (tests)
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "tubely"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TTL_MINUTES: int = 60

    # -----------------------------
    # S3 / MinIO
    # -----------------------------
    S3_BUCKET: str = "tubely-media"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT: Optional[str] = None      # None = AWS ; sinon MinIO (http://localhost:9000)
    S3_KEY: Optional[str] = None
    S3_SECRET: Optional[str] = None
    # Base publique des objets (CloudFront, MinIO public…). Déduite du bucket si None.
    S3_PUBLIC_BASE_URL: Optional[str] = None

    # static = URL publique stockée en DB ; signed = (bucket, key) stockés, URL signée à la lecture
    VIDEO_URL_MODE: Literal["static", "signed"] = "signed"
    PRESIGN_TTL_SECONDS: int = 600          # 10 minutes

    # -----------------------------
    # Uploads
    # -----------------------------
    THUMBNAIL_STRATEGY: Literal["disk", "inline", "memory"] = "disk"
    MAX_VIDEO_UPLOAD_BYTES: int = 10 << 30      # 10 GiB
    MAX_THUMBNAIL_UPLOAD_BYTES: int = 10 << 20  # 10 MiB
    TEMP_DIR: Optional[str] = None              # None = dossier temporaire système

    # -----------------------------
    # Outils externes
    # -----------------------------
    FFPROBE_BIN: str = "ffprobe"
    FFMPEG_BIN: str = "ffmpeg"
    PROBE_TIMEOUT_SECONDS: float = 30
    REMUX_TIMEOUT_SECONDS: float = 600

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        if not self.PUBLIC_BASE_URL:
            object.__setattr__(self, "PUBLIC_BASE_URL", f"http://localhost:{self.PORT}")

        if not self.S3_PUBLIC_BASE_URL:
            if self.S3_ENDPOINT:
                base = f"{self.S3_ENDPOINT.rstrip('/')}/{self.S3_BUCKET}"
            else:
                base = f"https://{self.S3_BUCKET}.s3.{self.S3_REGION}.amazonaws.com"
            object.__setattr__(self, "S3_PUBLIC_BASE_URL", base)


def make_jwt_settings(s: Settings) -> JWTSettings:
    return JWTSettings(
        secret=s.JWT_SECRET_KEY,
        issuer=s.JWT_ISSUER,
        algorithm=s.JWT_ALGORITHM,
        access_ttl=timedelta(minutes=s.ACCESS_TTL_MINUTES),
    )


# Instance globale importable partout
settings = Settings()

# Objet JWT prêt à l'emploi pour les services
jwt_settings = make_jwt_settings(settings)
