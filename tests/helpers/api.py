from __future__ import annotations

import os
import uuid

from fastapi.testclient import TestClient

from app.security.tokens import create_access_token

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\x0dIHDR" + b"\x00" * 17
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


def auth_headers(client: TestClient, user_id: uuid.UUID) -> dict:
    token = create_access_token(user_id=user_id, settings=client.app.state.jwt_settings)
    return {"Authorization": f"Bearer {token}"}


def create_video(client: TestClient, user_id: uuid.UUID, title: str = "Boots") -> dict:
    response = client.post(
        "/api/v1/videos",
        json={"title": title, "description": "demo"},
        headers=auth_headers(client, user_id),
    )
    assert response.status_code == 201, response.text
    return response.json()


def upload_video(client: TestClient, video_id: str, user_id: uuid.UUID, body: bytes = MP4_BYTES,
                 content_type: str = "video/mp4"):
    return client.post(
        f"/api/v1/videos/{video_id}/video",
        files={"video": ("clip.mp4", body, content_type)},
        headers=auth_headers(client, user_id),
    )


def upload_thumbnail(client: TestClient, video_id: str, user_id: uuid.UUID, body: bytes = PNG_BYTES,
                     content_type: str = "image/png"):
    return client.post(
        f"/api/v1/videos/{video_id}/thumbnail",
        files={"thumbnail": ("thumb", body, content_type)},
        headers=auth_headers(client, user_id),
    )


def spool_dir_entries(client: TestClient) -> list[str]:
    return os.listdir(client.app.state.settings.TEMP_DIR)
