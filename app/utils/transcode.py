"""
Remux "fast start" : ffmpeg recopie les flux (-c copy) et place l'index
(moov) en tête du conteneur pour permettre la lecture progressive.
Aucun ré-encodage.
"""

import logging
import subprocess
from typing import Protocol

from app.utils.spool import remove_quietly

logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".processing"


class RemuxError(RuntimeError):
    """Le remux du fichier a échoué."""


class Remuxer(Protocol):
    def remux(self, path: str) -> str: ...


def processed_path_for(path: str) -> str:
    return path + PROCESSED_SUFFIX


class FFmpegRemuxer:
    def __init__(self, binary: str = "ffmpeg", timeout: float = 600):
        self.binary = binary
        self.timeout = timeout

    def remux(self, path: str) -> str:
        out_path = processed_path_for(path)
        cmd = [
            self.binary, "-y", "-v", "error",
            "-i", path,
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            out_path,
        ]
        try:
            subprocess.run(cmd, capture_output=True, check=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise RemuxError(f"{self.binary} introuvable") from e
        except subprocess.TimeoutExpired as e:
            remove_quietly(out_path)
            raise RemuxError(f"{self.binary} a dépassé {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            remove_quietly(out_path)
            stderr = (e.stderr or b"").decode("utf-8", "replace").strip()
            raise RemuxError(f"{self.binary} a échoué (code {e.returncode}): {stderr}") from e

        logger.info("Remuxed %s -> %s", path, out_path)
        return out_path
