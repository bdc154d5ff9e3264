"""
➡️ But : configurer le logging une seule fois au démarrage.

Chaque module déclare son logger :

logger = logging.getLogger(__name__)

et ne touche jamais aux handlers.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    # sans effet si le root a déjà un handler (uvicorn, pytest, second create_app)
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())
    # boto est très bavard en DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
