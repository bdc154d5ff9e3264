"""
Lecture en flux d'un champ fichier multipart/form-data.

Le corps de la requête n'est jamais bufferisé : les octets du champ attendu
partent directement vers le writer fourni par l'appelant, les autres parties
sont ignorées. Même découpage que starlette.formparsers.MultiPartParser :
les callbacks du parser empilent des événements, traités après chaque write().
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional, Protocol, Tuple, TypeVar

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.concurrency import run_in_threadpool

from app.utils.spool import UploadTooLarge

logger = logging.getLogger(__name__)

# marge pour les en-têtes et séparateurs multipart autour du fichier
FORM_OVERHEAD_BYTES = 64 << 10


class FormError(ValueError):
    """Corps multipart absent, mal formé ou sans le champ attendu."""


@dataclass
class FormFilePart:
    field: str
    filename: Optional[str]
    content_type: Optional[str]


class _Sink(Protocol):
    def write(self, chunk: bytes) -> None: ...


SinkT = TypeVar("SinkT", bound=_Sink)


def check_content_length(headers, max_bytes: int) -> None:
    """Refuse d'emblée un corps annoncé plus gros que la limite (+ marge multipart)."""
    raw = headers.get("content-length")
    if raw is None:
        return
    try:
        length = int(raw)
    except ValueError:
        raise FormError("Content-Length invalide")
    if length > max_bytes + FORM_OVERHEAD_BYTES:
        logger.warning("Upload refused: Content-Length %d over limit %d", length, max_bytes)
        raise UploadTooLarge(max_bytes)


def _boundary(content_type: Optional[str]) -> bytes:
    if not content_type:
        raise FormError("Content-Type multipart/form-data attendu")
    media_type, params = parse_options_header(content_type)
    boundary = params.get(b"boundary")
    if media_type != b"multipart/form-data" or not boundary:
        raise FormError("Content-Type multipart/form-data attendu")
    return boundary


async def stream_form_file(
    chunks: AsyncIterator[bytes],
    content_type: Optional[str],
    field: str,
    open_sink: Callable[[FormFilePart], SinkT],
) -> Tuple[FormFilePart, SinkT]:
    """
    Parse `chunks` et écrit le contenu de la partie `field` dans le sink
    renvoyé par `open_sink(part)`, appelé une fois les en-têtes lus.

    Les exceptions levées par `open_sink` ou par `sink.write` interrompent
    la lecture : le reste du corps n'est pas consommé.
    """
    events: List[Tuple[str, bytes]] = []

    def on_data(kind):
        def callback(data: bytes, start: int, end: int) -> None:
            events.append((kind, data[start:end]))
        return callback

    def on_event(kind):
        def callback() -> None:
            events.append((kind, b""))
        return callback

    parser = MultipartParser(
        _boundary(content_type),
        {
            "on_part_begin": on_event("part_begin"),
            "on_header_field": on_data("header_field"),
            "on_header_value": on_data("header_value"),
            "on_header_end": on_event("header_end"),
            "on_headers_finished": on_event("headers_finished"),
            "on_part_data": on_data("part_data"),
            "on_part_end": on_event("part_end"),
        },
    )

    found: Optional[Tuple[FormFilePart, SinkT]] = None
    sink: Optional[SinkT] = None
    headers: dict = {}
    header_field = b""
    header_value = b""

    async def drain() -> None:
        nonlocal found, sink, headers, header_field, header_value
        for kind, data in events:
            if kind == "part_begin":
                headers, header_field, header_value = {}, b"", b""
            elif kind == "header_field":
                header_field += data
            elif kind == "header_value":
                header_value += data
            elif kind == "header_end":
                headers[header_field.lower()] = header_value
                header_field, header_value = b"", b""
            elif kind == "headers_finished":
                part = _part_from_headers(headers)
                if found is None and part.field == field:
                    sink = open_sink(part)
                    found = (part, sink)
            elif kind == "part_data":
                if sink is not None:
                    await run_in_threadpool(sink.write, data)
            elif kind == "part_end":
                sink = None
        events.clear()

    try:
        async for chunk in chunks:
            parser.write(chunk)
            await drain()
        parser.finalize()
        await drain()
    except MultipartParseError as e:
        raise FormError(f"Corps multipart invalide : {e}")

    if found is None:
        raise FormError(f"Champ fichier '{field}' manquant")
    return found


def _part_from_headers(headers: dict) -> FormFilePart:
    disposition, options = parse_options_header(headers.get(b"content-disposition", b""))
    if disposition != b"form-data" or b"name" not in options:
        raise FormError("Partie multipart sans Content-Disposition form-data")
    filename = options.get(b"filename")
    content_type = headers.get(b"content-type")
    return FormFilePart(
        field=options[b"name"].decode("latin-1"),
        filename=filename.decode("utf-8", "replace") if filename is not None else None,
        content_type=content_type.decode("latin-1") if content_type else None,
    )
