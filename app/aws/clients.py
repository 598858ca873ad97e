import boto3
from ..core.config import settings


def s3():
    """Create an S3 client for the media bucket using the hosting keys."""
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        aws_access_key_id=settings.media_public_key,
        aws_secret_access_key=settings.media_private_key,
    )

def dynamodb_table(table_name: str):
    """Return a DynamoDB Table handle; credentials come from the default AWS chain."""
    return boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
    ).Table(table_name)
