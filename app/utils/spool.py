"""
Spool d'upload : écrit le flux reçu dans un fichier temporaire exclusif.

Le fichier est supprimé en sortie du `with`, succès ou échec.
"""

import contextlib
import logging
import os
import tempfile
from typing import BinaryIO, Iterator, Optional

logger = logging.getLogger(__name__)


class UploadTooLarge(ValueError):
    """Le flux dépasse la taille maximale autorisée."""

    def __init__(self, max_bytes: int):
        super().__init__(f"Fichier trop volumineux (max {max_bytes} octets)")
        self.max_bytes = max_bytes


class SpooledUpload:
    """
    Fichier temporaire alimenté morceau par morceau.

    write() lève UploadTooLarge dès que le cumul dépasse `max_bytes` :
    le morceau fautif n'est jamais écrit.
    """

    def __init__(self, path: str, file: BinaryIO, max_bytes: int):
        self.path = path
        self.file = file
        self.max_bytes = max_bytes
        self.size = 0

    def write(self, chunk: bytes) -> None:
        if self.size + len(chunk) > self.max_bytes:
            logger.warning("Upload aborted after %d bytes (limit %d)", self.size + len(chunk), self.max_bytes)
            raise UploadTooLarge(self.max_bytes)
        self.file.write(chunk)
        self.size += len(chunk)

    def rewind(self) -> None:
        self.file.flush()
        self.file.seek(0)
        logger.debug("Spooled %d bytes to %s", self.size, self.path)


def remove_quietly(path: Optional[str]) -> None:
    """Supprime `path` s'il existe encore."""
    if not path:
        return
    try:
        os.remove(path)
        logger.debug("Removed temporary file %s", path)
    except FileNotFoundError:
        pass


@contextlib.contextmanager
def spool_upload(
    *,
    max_bytes: int,
    suffix: str = "",
    directory: Optional[str] = None,
) -> Iterator[SpooledUpload]:
    fd, path = tempfile.mkstemp(prefix="tubely-upload-", suffix=suffix, dir=directory)
    with contextlib.ExitStack() as stack:
        # suppression programmée avant la moindre écriture
        stack.callback(remove_quietly, path)
        out = stack.enter_context(os.fdopen(fd, "w+b"))
        yield SpooledUpload(path, out, max_bytes)
