import boto3
from botocore.exceptions import ClientError
from app.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)

S3_SCHEME = "s3://"


def s3_configured() -> bool:
    return all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name])


class S3Storage:
    """Chat attachment store used instead of Supabase Storage when AWS credentials are set"""

    def __init__(self, client=None):
        if client is None and not s3_configured():
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = client or boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def to_url(self, key: str) -> str:
        return f"{S3_SCHEME}{self.bucket_name}/{key}"

    def key_from_url(self, url: str) -> str:
        return url.replace(f"{S3_SCHEME}{self.bucket_name}/", "", 1)

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload file to S3 and return the s3:// URL. Existing objects are never overwritten."""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
                IfNoneMatch="*"
            )
            return self.to_url(key)
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise

    def generate_presigned_url(self, key: str, expires_in: int) -> Optional[str]:
        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': key},
                ExpiresIn=expires_in
            )
        except ClientError as e:
            logger.error(f"Failed to create presigned URL for {key}: {str(e)}")
            return None

    def delete_file(self, key: str) -> bool:
        """Delete file from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            return False
