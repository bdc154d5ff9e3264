import uuid
from datetime import datetime, timezone
from typing import Sequence

from sqlmodel import select

from app.db.repositories.base import BaseRepository
from app.db.models.videos import Video


class VideoRepository(BaseRepository[Video]):
    """CRUD Vidéos + requêtes spécifiques."""
    model = Video

    def list_by_user(self, user_id: uuid.UUID, offset: int = 0, limit: int = 100) -> Sequence[Video]:
        statement = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.exec(statement).all()

    def update(self, entity: Video, *, commit: bool = True, **changes) -> Video:
        changes.setdefault("updated_at", datetime.now(timezone.utc))
        return super().update(entity, commit=commit, **changes)
