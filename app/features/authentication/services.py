import logging
import uuid

from fastapi import HTTPException, status
from jose import JWTError

from app.security.tokens import JWTSettings, user_id_from_token

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service d'authentification : identifie l'appelant à partir de son access token.
    Lève des HTTPException 401 propres.
    """

    def __init__(self, *, jwt_settings: JWTSettings):
        self.jwt = jwt_settings

    def get_current_user_id(self, *, access_token: str) -> uuid.UUID:
        try:
            return user_id_from_token(access_token, self.jwt)
        except JWTError as e:
            logger.info("Rejected bearer token: %s", e)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Couldn't validate JWT")
