"""
Classification d'orientation d'une vidéo via ffprobe.

- `classify_dimensions` : règle 16:9 / 9:16 / other en arithmétique entière.
- `FFprobe` : implémentation réelle de l'interface `Prober`.

Une erreur d'outil (binaire absent, timeout, code retour, JSON invalide,
aucun flux vidéo) lève ProbeError : elle n'est jamais confondue avec OTHER.
"""

import enum
import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol, Union

logger = logging.getLogger(__name__)


class ProbeError(RuntimeError):
    """Impossible d'obtenir les dimensions du fichier."""


class AspectRatio(str, enum.Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    OTHER = "other"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]


_PREFIXES = {
    AspectRatio.LANDSCAPE: "landscape/",
    AspectRatio.PORTRAIT: "portrait/",
    AspectRatio.OTHER: "other/",
}


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


def classify_dimensions(width: int, height: int) -> AspectRatio:
    # division entière : pas de flottants
    if height * 16 // 9 == width or width * 9 // 16 == height:
        return AspectRatio.LANDSCAPE
    if height * 9 // 16 == width or width * 16 // 9 == height:
        return AspectRatio.PORTRAIT
    return AspectRatio.OTHER


class Prober(Protocol):
    def probe(self, path: str) -> Dimensions: ...


class FFprobe:
    def __init__(self, binary: str = "ffprobe", timeout: float = 30):
        self.binary = binary
        self.timeout = timeout

    def probe(self, path: str) -> Dimensions:
        cmd = [self.binary, "-v", "error", "-print_format", "json", "-show_streams", path]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ProbeError(f"{self.binary} introuvable") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"{self.binary} a dépassé {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", "replace").strip()
            raise ProbeError(f"{self.binary} a échoué (code {e.returncode}): {stderr}") from e

        return parse_ffprobe_output(result.stdout)


def parse_ffprobe_output(raw: Union[bytes, str]) -> Dimensions:
    """Extrait largeur/hauteur du premier flux vidéo de la sortie JSON de ffprobe."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProbeError("Sortie ffprobe illisible") from e

    streams = data.get("streams") if isinstance(data, dict) else None
    if not streams:
        raise ProbeError("Aucun flux dans le fichier")

    for stream in streams:
        if not isinstance(stream, dict):
            continue
        if stream.get("codec_type", "video") != "video":
            continue
        width, height = stream.get("width"), stream.get("height")
        if isinstance(width, int) and isinstance(height, int) and width > 0 and height > 0:
            return Dimensions(width=width, height=height)

    raise ProbeError("Aucun flux vidéo avec des dimensions valides")


def get_video_aspect_ratio(path: str, prober: Prober) -> AspectRatio:
    dims = prober.probe(path)
    ratio = classify_dimensions(dims.width, dims.height)
    logger.info("Probed %s: %dx%d -> %s", path, dims.width, dims.height, ratio.value)
    return ratio
