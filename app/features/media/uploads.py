"""
Réception d'un fichier uploadé, en flux, vers le spool.

Appelé depuis la route une fois le JWT et la propriété de la vidéo vérifiés :
aucun octet du corps n'est lu avant. Ordre : Content-Length -> en-têtes de la
partie (type MIME) -> spool borné par `max_bytes`.
"""

import contextlib
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from fastapi import HTTPException, Request, status

from app.utils.form_stream import FormFilePart, check_content_length, stream_form_file
from app.utils.media_files import extension_for_media_type
from app.utils.spool import SpooledUpload, spool_upload


@dataclass
class ReceivedUpload:
    spooled: SpooledUpload
    media_type: str
    filename: Optional[str]

    def write(self, chunk: bytes) -> None:
        self.spooled.write(chunk)


@contextlib.asynccontextmanager
async def receive_upload(
    request: Request,
    field: str,
    *,
    max_bytes: int,
    accept: Callable[[Optional[str]], str],
    directory: Optional[str] = None,
) -> AsyncIterator[ReceivedUpload]:
    """
    `accept(content_type)` renvoie le type MIME retenu ou lève ValueError.
    Toute ValueError pendant la réception (type refusé, trop volumineux,
    multipart invalide) devient un 400 ; le spool est supprimé en sortie.
    """
    with contextlib.ExitStack() as stack:

        def open_sink(part: FormFilePart) -> ReceivedUpload:
            mime = accept(part.content_type)
            spooled = stack.enter_context(
                spool_upload(max_bytes=max_bytes, suffix=extension_for_media_type(mime), directory=directory)
            )
            return ReceivedUpload(spooled=spooled, media_type=mime, filename=part.filename)

        try:
            check_content_length(request.headers, max_bytes)
            _, upload = await stream_form_file(
                request.stream(), request.headers.get("content-type"), field, open_sink
            )
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        upload.spooled.rewind()
        yield upload
