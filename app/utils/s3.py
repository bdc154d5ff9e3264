import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class ObjectStoreError(RuntimeError):
    """Échec d'un appel S3/MinIO (réseau, droits, quota…)."""


@dataclass(frozen=True)
class VideoRef:
    """Référence structurée d'un objet stocké : (bucket, key)."""
    bucket: str
    key: str


def make_s3_client(
    *,
    region: str,
    endpoint_url: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
):
    cfg = BotoConfig(
        signature_version="s3v4",
        # MinIO exige l'adressage "path" ; AWS accepte le défaut
        s3={"addressing_style": "path" if endpoint_url else "auto"},
    )
    kwargs = {}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
        kwargs["use_ssl"] = endpoint_url.startswith("https")
    return boto3.client(
        "s3",
        region_name=region,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        config=cfg,
        **kwargs,
    )


def make_s3_from_settings(settings):
    return make_s3_client(
        region=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT,
        access_key=settings.S3_KEY,
        secret_key=settings.S3_SECRET,
    )


def presign_get_url(s3, *, bucket: str, key: str, ttl: int) -> str:
    return s3.generate_presigned_url(
        ClientMethod="get_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=ttl,
    )


class ObjectStore:
    """
    Accès au bucket des médias.
    Un seul PUT par objet : soit l'objet existe entier sous la clé, soit
    ObjectStoreError est levée.
    """

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def put_file(self, *, key: str, path: str, content_type: str) -> VideoRef:
        try:
            with open(path, "rb") as body:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (BotoCoreError, ClientError, OSError) as e:
            raise ObjectStoreError(f"Erreur upload S3: {e}") from e
        logger.info("Uploaded s3://%s/%s (%s)", self.bucket, key, content_type)
        return VideoRef(bucket=self.bucket, key=key)

    def presign_get(self, ref: VideoRef, *, ttl: int) -> str:
        try:
            return presign_get_url(self.client, bucket=ref.bucket, key=ref.key, ttl=ttl)
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"Erreur de signature S3: {e}") from e

    def delete(self, ref: VideoRef) -> None:
        try:
            self.client.delete_object(Bucket=ref.bucket, Key=ref.key)
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"Erreur suppression S3: {e}") from e


def public_object_url(base_url: str, ref: VideoRef) -> str:
    return f"{base_url.rstrip('/')}/{ref.key}"
