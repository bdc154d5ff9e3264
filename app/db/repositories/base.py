from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session


# Type générique pour le modèle (Video, ...)
ModelT = TypeVar("ModelT", bound=SQLModel)

class BaseRepository(Generic[ModelT]):
    """
    Repository de base pour les opérations CRUD standards.

    👉 Ne contient aucune logique métier.
    👉 Gère la persistance générique : create, get, update, delete.
    👉 En cas d'échec au commit, la session est remise à zéro (rollback) puis l'erreur remonte.
    👉 Les repositories concrets définissent `model = MaClasseSQLModel`.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    # ---------- READ ----------

    def get(self, id_: Any) -> Optional[ModelT]:
        """Retourne un enregistrement par son identifiant, ou None."""
        return self.session.get(self.model, id_)

    # ---------- WRITE ----------

    def _save(self, entity: ModelT, *, commit: bool) -> ModelT:
        self.session.add(entity)
        try:
            if commit:
                self.session.commit()
                self.session.refresh(entity)
            else:
                # flush pour obtenir l'ID sans commit
                self.session.flush()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return entity

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        """Crée et persiste un nouvel enregistrement."""
        return self._save(self.model(**fields), commit=commit)

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        """
        Met à jour un enregistrement existant.
        commit=False permet d'orchestrer une transaction globale au niveau service.
        """
        for key, value in changes.items():
            setattr(entity, key, value)
        return self._save(entity, commit=commit)

    # ---------- DELETE ----------

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        try:
            if commit:
                self.session.commit()
            else:
                self.session.flush()
        except SQLAlchemyError:
            self.session.rollback()
            raise
