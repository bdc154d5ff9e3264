"""
Crée un utilisateur de démo (UUID) avec une vidéo brouillon et affiche un access token.

    python -m scripts.seed
"""

import uuid

from sqlmodel import Session

from app.core.config import settings, jwt_settings
from app.core.logging import configure_logging
from app.db.repositories.videos import VideoRepository
from app.db.session import build_engine, init_db
from app.security.tokens import create_access_token

DEMO_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


def run_seed() -> None:
    configure_logging(settings.LOG_LEVEL)
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    with Session(engine) as session:
        video = VideoRepository(session).create(
            title="Boots, an emotional journey",
            description="Vidéo de démonstration",
            user_id=DEMO_USER_ID,
        )
        print(f"video_id={video.id}")
    print(f"user_id={DEMO_USER_ID}")
    print(f"token={create_access_token(user_id=DEMO_USER_ID, settings=jwt_settings)}")


if __name__ == "__main__":
    run_seed()
