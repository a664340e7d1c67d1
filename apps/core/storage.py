"""S3-compatible storage backends (AWS S3 or Cloudflare R2) selected when USE_S3 is on."""
from storages.backends.s3boto3 import S3Boto3Storage


class MediaStorage(S3Boto3Storage):
    location = 'media'
    file_overwrite = False


class StaticStorage(S3Boto3Storage):
    location = 'static'
    default_acl = None
