"""Object store gateway — S3 put / presigned GET / delete."""

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

from mistore.common.config import StoreSettings
from mistore.common.exceptions import GatewayError, UploadError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Minimal blob store capability used by the storefront."""

    async def put_object(self, key: str, data: bytes, content_type: str) -> str: ...

    async def presign_get(
        self, key: str, expires_in: int, filename: Optional[str] = None
    ) -> str: ...

    async def delete_object(self, key: str) -> None: ...


class S3ObjectStore:
    """boto3-backed store for a single bucket.

    The boto3 client is blocking, so network calls run in a worker thread and
    are bounded by ``settings.gateway_timeout``.
    """

    def __init__(self, settings: StoreSettings, client: Any = None):
        self.settings = settings
        self.bucket = settings.s3_bucket
        self._client = client

    def _get_client(self):
        """Lazy-init the boto3 S3 client."""
        if self._client is None:
            import boto3
            from botocore.config import Config

            timeout = self.settings.gateway_timeout
            self._client = boto3.client(
                "s3",
                region_name=self.settings.s3_region,
                endpoint_url=self.settings.s3_endpoint_url,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
                config=Config(
                    signature_version="s3v4",
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": 2, "mode": "standard"},
                ),
            )
        return self._client

    async def _call(self, fn: Callable[..., Any], **kwargs: Any) -> Any:
        return await asyncio.wait_for(
            asyncio.to_thread(fn, **kwargs),
            timeout=self.settings.gateway_timeout,
        )

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        client = self._get_client()
        try:
            await self._call(
                client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except asyncio.TimeoutError as e:
            logger.error("S3 upload timed out: %s", key)
            raise UploadError(f"Upload of {key} timed out") from e
        except (BotoCoreError, ClientError) as e:
            logger.exception("S3 upload failed: %s", key)
            raise UploadError(f"Upload of {key} failed") from e
        logger.info("Stored object %s (%d bytes)", key, len(data))
        return key

    async def presign_get(
        self, key: str, expires_in: int, filename: Optional[str] = None
    ) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        params = {"Bucket": self.bucket, "Key": key}
        if filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'
        try:
            # Presigning is local; no network round-trip.
            return self._get_client().generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("S3 presign failed: %s", key)
            raise GatewayError(f"Could not sign URL for {key}") from e

    async def delete_object(self, key: str) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        client = self._get_client()
        try:
            await self._call(client.delete_object, Bucket=self.bucket, Key=key)
        except asyncio.TimeoutError as e:
            raise GatewayError(f"Delete of {key} timed out") from e
        except (BotoCoreError, ClientError) as e:
            raise GatewayError(f"Delete of {key} failed") from e
