from __future__ import annotations

import uuid

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError
from starlette.formparsers import MultiPartParser

from app.db.repositories.videos import VideoRepository
from app.utils.form_stream import FORM_OVERHEAD_BYTES
from app.utils.probe import ProbeError
from app.utils.s3 import ObjectStoreError
from app.utils.transcode import RemuxError
from tests.helpers.api import (
    MP4_BYTES,
    auth_headers,
    create_video,
    spool_dir_entries,
    upload_video,
)


@pytest.mark.parametrize(
    ("width", "height", "prefix"),
    [
        (1920, 1080, "landscape/"),
        (1080, 1920, "portrait/"),
        (800, 600, "other/"),
    ],
)
def test_upload_video_prefixes_key_with_orientation(client, prober, store, user_id, width, height, prefix):
    prober.width, prober.height = width, height
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_200_OK, response.text
    assert len(store.puts) == 1
    put = store.puts[0]
    assert put["key"].startswith(prefix)
    assert put["key"].endswith(".mp4")
    assert put["content_type"] == "video/mp4"
    assert put["body"] == MP4_BYTES


def test_upload_video_returns_signed_url_and_cleans_temp_files(client, store, remuxer, user_id):
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    key = store.puts[0]["key"]
    assert payload["video_url"].startswith(f"https://signed.example/test-bucket/{key}?ttl=600")
    # le fichier envoyé au store est la sortie du remux, pas le spool
    assert store.puts[0]["path"] == remuxer.outputs[0]
    assert spool_dir_entries(client) == []


def test_get_video_mints_a_fresh_signed_url_each_time(client, user_id):
    video = create_video(client, user_id)
    upload_video(client, video["id"], user_id)
    headers = auth_headers(client, user_id)

    first = client.get(f"/api/v1/videos/{video['id']}", headers=headers).json()["video_url"]
    second = client.get(f"/api/v1/videos/{video['id']}", headers=headers).json()["video_url"]

    assert first != second
    assert first.split("?")[0] == second.split("?")[0]


def test_upload_video_static_mode_stores_public_url(make_client, store, user_id):
    client = make_client(VIDEO_URL_MODE="static")
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_200_OK
    key = store.puts[0]["key"]
    assert response.json()["video_url"] == f"https://cdn.example.com/{key}"
    fetched = client.get(f"/api/v1/videos/{video['id']}", headers=auth_headers(client, user_id))
    assert fetched.json()["video_url"] == f"https://cdn.example.com/{key}"


def test_reupload_derives_a_fresh_key(client, store, user_id):
    video = create_video(client, user_id)

    upload_video(client, video["id"], user_id)
    upload_video(client, video["id"], user_id)

    assert len(store.puts) == 2
    assert store.puts[0]["key"] != store.puts[1]["key"]


def test_oversize_upload_is_rejected_before_processing(make_client, prober, store, user_id):
    client = make_client(MAX_VIDEO_UPLOAD_BYTES=16)
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id, body=b"x" * 1024)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert prober.calls == []
    assert store.puts == []
    assert spool_dir_entries(client) == []


def test_remux_failure_skips_upload_and_keeps_record(client, remuxer, store, user_id):
    remuxer.error = RemuxError("ffmpeg a échoué (code 1)")
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert store.puts == []
    assert spool_dir_entries(client) == []
    fetched = client.get(f"/api/v1/videos/{video['id']}", headers=auth_headers(client, user_id))
    assert fetched.json()["video_url"] is None


def test_probe_failure_is_an_internal_error_not_other(client, prober, store, user_id):
    prober.error = ProbeError("Aucun flux dans le fichier")
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "aspect ratio" in response.json()["detail"]
    assert store.puts == []
    assert spool_dir_entries(client) == []


def test_object_store_failure_returns_bad_gateway(client, store, user_id):
    store.error = ObjectStoreError("AccessDenied")
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert spool_dir_entries(client) == []
    fetched = client.get(f"/api/v1/videos/{video['id']}", headers=auth_headers(client, user_id))
    assert fetched.json()["video_url"] is None


def test_metadata_update_failure_returns_internal_error(client, store, user_id, monkeypatch):
    video = create_video(client, user_id)

    def boom(self, entity, **changes):
        raise OperationalError("UPDATE videos", {}, Exception("disk I/O error"))

    monkeypatch.setattr(VideoRepository, "update", boom)
    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    # l'objet a bien été envoyé : incohérence acceptée (objet orphelin)
    assert len(store.puts) == 1
    assert spool_dir_entries(client) == []


@pytest.mark.parametrize("content_type", ["video/webm", "not a media type"])
def test_rejects_unsupported_media_type(client, prober, user_id, content_type):
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id, content_type=content_type)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert prober.calls == []


def test_missing_form_file_is_bad_request(client, user_id):
    video = create_video(client, user_id)

    response = client.post(
        f"/api/v1/videos/{video['id']}/video",
        files={"other": ("clip.mp4", MP4_BYTES, "video/mp4")},
        headers=auth_headers(client, user_id),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_upload_requires_bearer_token(client, user_id):
    video = create_video(client, user_id)

    response = client.post(
        f"/api/v1/videos/{video['id']}/video",
        files={"video": ("clip.mp4", MP4_BYTES, "video/mp4")},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_upload_rejects_invalid_token(client, user_id):
    video = create_video(client, user_id)

    response = client.post(
        f"/api/v1/videos/{video['id']}/video",
        files={"video": ("clip.mp4", MP4_BYTES, "video/mp4")},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_upload_by_other_user_is_rejected_before_spooling(client, prober, store, user_id, spooled_bytes):
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], uuid.uuid4())

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert spooled_bytes == []
    assert prober.calls == []
    assert store.puts == []
    assert spool_dir_entries(client) == []


def test_unauthenticated_upload_spools_nothing(client, user_id, spooled_bytes, monkeypatch):
    async def no_form_parsing(self):
        raise AssertionError("body buffered by the framework form parser")

    monkeypatch.setattr(MultiPartParser, "parse", no_form_parsing)
    video = create_video(client, user_id)

    response = client.post(
        f"/api/v1/videos/{video['id']}/video",
        files={"video": ("clip.mp4", b"\x00" * (3 << 20), "video/mp4")},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert spooled_bytes == []
    assert spool_dir_entries(client) == []


def test_upload_streams_the_file_into_the_spool(client, user_id, spooled_bytes):
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id)

    assert response.status_code == status.HTTP_200_OK
    assert sum(spooled_bytes) == len(MP4_BYTES)


def test_announced_oversize_body_is_rejected_before_spooling(make_client, prober, user_id, spooled_bytes):
    client = make_client(MAX_VIDEO_UPLOAD_BYTES=16)
    video = create_video(client, user_id)

    response = upload_video(client, video["id"], user_id, body=b"x" * (FORM_OVERHEAD_BYTES + 1024))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert spooled_bytes == []
    assert prober.calls == []


def test_upload_requires_multipart_body(client, user_id):
    video = create_video(client, user_id)

    response = client.post(
        f"/api/v1/videos/{video['id']}/video",
        content=MP4_BYTES,
        headers={**auth_headers(client, user_id), "Content-Type": "video/mp4"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_upload_unknown_video_is_not_found(client, user_id):
    response = upload_video(client, str(uuid.uuid4()), user_id)

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_upload_malformed_id_is_bad_request(client, user_id):
    response = upload_video(client, "not-a-uuid", user_id)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"detail": "Invalid ID"}
