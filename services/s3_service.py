"""
S3 Service acting as the image host (LocalStack S3 in development).
"""
import boto3
import hashlib
import logging
from typing import Optional, Dict, Any
from botocore.exceptions import ClientError, BotoCoreError
import config.settings as settings
from services.exceptions import Unavailable

logger = logging.getLogger(__name__)


class S3Service:
    """Service for storing uploaded item images in S3."""

    def __init__(self):
        """Initialize S3 service with LocalStack configuration."""
        self.bucket_name = settings.S3_BUCKET_NAME
        self.url_expiration = settings.S3_PRESIGNED_URL_EXPIRATION

        # Internal S3 client for operations (within Docker network)
        self.s3_client = boto3.client(
            's3',
            endpoint_url=settings.AWS_ENDPOINT_URL,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_DEFAULT_REGION
        )

        # External S3 client for presigned URLs (accessible from host)
        external_endpoint = getattr(settings, 'S3_EXTERNAL_ENDPOINT_URL', settings.AWS_ENDPOINT_URL)
        self.s3_client_external = boto3.client(
            's3',
            endpoint_url=external_endpoint,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_DEFAULT_REGION
        )

        logger.info(f"S3 Service initialized - Internal: {settings.AWS_ENDPOINT_URL}, External: {external_endpoint}")
        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self) -> None:
        """Ensure the S3 bucket exists, create if not."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            logger.info(f"S3 bucket '{self.bucket_name}' exists")
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code == '404':
                try:
                    self.s3_client.create_bucket(Bucket=self.bucket_name)
                    logger.info(f"Created S3 bucket '{self.bucket_name}'")
                except ClientError as create_error:
                    logger.error(f"Failed to create S3 bucket: {create_error}")
                    raise
            else:
                logger.error(f"Error checking S3 bucket: {e}")
                raise

    def calculate_checksum(self, file_content: bytes) -> str:
        """Calculate SHA-256 checksum of file content."""
        return hashlib.sha256(file_content).hexdigest()

    def upload_image(
        self,
        file_content: bytes,
        owner_id: str,
        filename: str,
        checksum: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Upload an item image under the owner's prefix.

        The key is derived from the content checksum, so uploading the same
        image twice yields the same image reference.

        Args:
            file_content: Image content as bytes
            owner_id: Uploading user id
            filename: Original filename
            checksum: Pre-calculated checksum (optional)

        Returns:
            Dict with the image reference and upload details

        Raises:
            Unavailable: The image host rejected or failed the upload
        """
        if checksum is None:
            checksum = self.calculate_checksum(file_content)

        file_extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'jpg'
        image_ref = f"uploads/{owner_id}/{checksum}.{file_extension}"

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=image_ref,
                Body=file_content,
                ContentType=self.get_content_type(file_extension),
                Metadata={
                    'owner_id': owner_id,
                    'original_filename': filename,
                    'checksum': checksum
                }
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload image to S3: {e}")
            raise Unavailable('Image host is unavailable', collaborator='s3')

        logger.info(f"Uploaded image to S3: {image_ref}")

        return {
            'image_ref': image_ref,
            'checksum': checksum,
            'file_size': len(file_content),
            'bucket': self.bucket_name
        }

    def image_exists(self, image_ref: str) -> bool:
        """
        Check that an uploaded image is present in the bucket.

        Raises:
            Unavailable: The image host could not be reached
        """
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=image_ref)
            return True
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code in ('404', 'NoSuchKey', 'NotFound'):
                return False
            logger.error(f"Error checking image {image_ref}: {e}")
            raise Unavailable('Image host is unavailable', collaborator='s3')
        except BotoCoreError as e:
            logger.error(f"Error checking image {image_ref}: {e}")
            raise Unavailable('Image host is unavailable', collaborator='s3')

    def generate_presigned_url(self, image_ref: str, expiration: Optional[int] = None) -> Optional[str]:
        """
        Generate a presigned URL for viewing an image.

        Args:
            image_ref: S3 object key
            expiration: URL expiration time in seconds (defaults to settings)

        Returns:
            Presigned URL string or None if failed
        """
        try:
            # Use external client for presigned URLs to ensure they're accessible from host
            presigned_url = self.s3_client_external.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': image_ref},
                ExpiresIn=expiration or self.url_expiration
            )
            logger.debug(f"Generated presigned URL for {image_ref}")
            return presigned_url
        except ClientError as e:
            logger.error(f"Failed to generate presigned URL for {image_ref}: {e}")
            return None

    def get_content_type(self, file_extension: str) -> str:
        """Get content type based on file extension."""
        content_types = {
            'png': 'image/png',
            'jpg': 'image/jpeg',
            'jpeg': 'image/jpeg',
            'gif': 'image/gif',
            'webp': 'image/webp',
            'bmp': 'image/bmp'
        }
        return content_types.get(file_extension.lower(), 'application/octet-stream')
