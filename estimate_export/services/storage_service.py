"""Storage service for Supabase Storage operations."""

from typing import Any, Dict

import httpx

from estimate_export.core.config import settings
from estimate_export.core.exceptions import StorageError
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for reading and writing objects in Supabase storage."""

    def __init__(self):
        self.url = settings.supabase_url.rstrip("/")
        self.service_role_key = settings.supabase_service_role_key
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def upload_bytes(
        self,
        content: bytes,
        bucket: str,
        path: str,
        content_type: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        """Upload raw bytes as a new object.

        Existing objects are never replaced (no ``x-upsert`` header), so a
        path collision fails instead of overwriting.

        Args:
            content: Object body.
            bucket: Target bucket name.
            path: Target path within the bucket.
            content_type: MIME type stored with the object.

        Returns:
            Dict containing the upload result.

        Raises:
            StorageError: If the upload fails.
        """
        upload_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={**self.headers, "Content-Type": content_type},
                    content=content,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise StorageError(f"Storage upload error: {str(e)}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code},
            )
            raise StorageError(f"Upload failed: {response.text}")

        LOGGER.info("Uploaded object", extra={"bucket": bucket, "path": path, "size": len(content)})
        return response.json()

    async def download_bytes(self, bucket: str, path: str) -> bytes:
        """Download an object's body.

        Raises:
            StorageError: If the object cannot be read.
        """
        download_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    download_url,
                    headers=self.headers,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error downloading file from Supabase: {str(e)}", exc_info=True)
            raise StorageError(f"Storage download error: {str(e)}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to download file from Supabase: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code},
            )
            raise StorageError(f"Download failed: {response.text}")

        return response.content

    async def get_signed_url(
        self,
        bucket: str,
        path: str,
        expires_in: int = 3600,
    ) -> str:
        """Generate an absolute signed URL for an object.

        Args:
            bucket: Bucket name.
            path: Object path.
            expires_in: Expiration time in seconds.

        Raises:
            StorageError: If URL generation fails.
        """
        url = f"{self.base_api_url}/object/sign/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    headers=self.headers,
                    json={"expiresIn": expires_in},
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error generating signed URL: {str(e)}", exc_info=True)
            raise StorageError(f"Signed URL error: {str(e)}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to generate signed URL: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code},
            )
            raise StorageError(f"Signed URL generation failed: {response.text}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise StorageError("Supabase response did not contain signedURL")

        # Supabase returns a path relative to the project URL, e.g.
        # /object/sign/<bucket>/<path>?token=... or /storage/v1/object/sign/...
        if signed_path.startswith("/storage/v1/"):
            return f"{self.url}{signed_path}"
        if signed_path.startswith("/"):
            return f"{self.base_api_url}{signed_path}"
        return signed_path

    async def create_download_url(
        self,
        bucket: str,
        path: str,
        expires_in: int = 86400,  # 24 hours default
    ) -> str:
        """Generate a signed download URL for an export bundle."""
        return await self.get_signed_url(bucket, path, expires_in)
