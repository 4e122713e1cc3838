"""S3 service for resume storage"""

import asyncio
import os
import uuid
from datetime import datetime
from typing import BinaryIO, Optional, Tuple
from urllib.parse import urlparse

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from backend.app.core.config import settings
from backend.app.core.logging import get_logger
from backend.app.core.exceptions import ValidationException, NotFoundException, ExternalServiceException

logger = get_logger(__name__)


class S3Service:
    """Service for resume file storage and retrieval"""

    def __init__(self, s3_client=None, http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize S3 client

        Args:
            s3_client: Preconfigured boto3 S3 client (created from settings if omitted)
            http_client: httpx client used for http(s) resume locations
        """
        self._s3_client = s3_client
        self._http_client = http_client
        self.bucket_name = settings.S3_BUCKET_RESUMES
        self.resume_prefix = "resumes/"

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION
            )
        return self._s3_client

    def build_key(self, owner_id: str, filename: str) -> str:
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        safe_name = os.path.basename(filename or "resume").replace(" ", "_")
        return f"{self.resume_prefix}{owner_id}/{timestamp}_{safe_name}"

    async def upload_resume(
        self,
        file_content: BinaryIO,
        filename: str,
        owner_id: Optional[str] = None,
        content_type: str = "application/pdf"
    ) -> str:
        """
        Upload resume file to S3

        Args:
            file_content: File content as binary stream
            filename: Original filename
            owner_id: Folder under the resume prefix (random if omitted)
            content_type: MIME type of file

        Returns:
            s3:// URL of the stored object

        Raises:
            ValidationException: If upload fails
        """
        s3_key = self.build_key(owner_id or uuid.uuid4().hex, filename)
        try:
            await asyncio.to_thread(
                self.s3_client.upload_fileobj,
                file_content,
                self.bucket_name,
                s3_key,
                ExtraArgs={
                    'ContentType': content_type,
                    'ServerSideEncryption': 'AES256',  # Encrypt at rest
                    'ACL': 'private'
                }
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 upload failed: {str(e)}")
            raise ValidationException(f"Failed to upload resume: {str(e)}")

        logger.info(f"Uploaded resume to S3: {s3_key}")
        return f"s3://{self.bucket_name}/{s3_key}"

    def parse_location(self, location: str) -> Tuple[str, str]:
        """
        Split an s3:// URL or bare key into (bucket, key)

        Raises:
            ValidationException: If the location is empty
        """
        if not location or not location.strip():
            raise ValidationException("Resume location is empty")

        parsed = urlparse(location.strip())
        if parsed.scheme == "s3":
            return parsed.netloc, parsed.path.lstrip("/")
        return self.bucket_name, location.strip().lstrip("/")

    async def delete_resume(self, location: str) -> bool:
        """
        Delete a stored resume

        Args:
            location: s3:// URL or bare key

        Returns:
            True if deleted, False if the delete failed
        """
        bucket, key = self.parse_location(location)
        try:
            await asyncio.to_thread(self.s3_client.delete_object, Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 deletion failed for {key}: {str(e)}")
            return False

        logger.info(f"Deleted resume from S3: {key}")
        return True

    async def _download_object(self, bucket: str, key: str) -> bytes:
        def _read() -> bytes:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
            return response['Body'].read()

        try:
            content = await asyncio.to_thread(_read)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                logger.error(f"Resume not found in S3: {key}")
                raise NotFoundException(f"Resume not found: {key}")
            logger.error(f"S3 download failed: {str(e)}")
            raise ExternalServiceException("s3", str(e))
        except BotoCoreError as e:
            logger.error(f"S3 download failed: {str(e)}")
            raise ExternalServiceException("s3", str(e))

        logger.info(f"Downloaded resume from S3: {key}")
        return content

    async def _download_url(self, url: str) -> bytes:
        timeout = settings.ASSET_FETCH_TIMEOUT_SECONDS
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundException(f"Resume not found: {url}")
            raise ExternalServiceException("resume storage", f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Resume download failed: {str(e)}")
            raise ExternalServiceException("resume storage", str(e))

        logger.info(f"Downloaded resume from {urlparse(url).netloc}")
        return response.content

    async def fetch_resume(self, location: str) -> bytes:
        """
        Fetch stored resume bytes

        Args:
            location: s3:// URL, bare object key, or http(s) URL

        Returns:
            File content as bytes

        Raises:
            NotFoundException: If the object does not exist
            ExternalServiceException: If storage cannot be reached
        """
        if location and location.strip().lower().startswith(("http://", "https://")):
            return await self._download_url(location.strip())

        bucket, key = self.parse_location(location)
        return await self._download_object(bucket, key)
