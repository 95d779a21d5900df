import logging

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

logger = logging.getLogger(__name__)


class ImageHostError(Exception):
    """Raised when an image cannot be uploaded to or removed from the host"""


class ImageHost:
    def __init__(self, cloud_name, api_key, api_secret, folder=None):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder

        if self.is_configured:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=api_key,
                api_secret=api_secret,
                secure=True
            )

    @classmethod
    def from_config(cls, config):
        return cls(
            cloud_name=config.get('CLOUDINARY_CLOUD_NAME'),
            api_key=config.get('CLOUDINARY_API_KEY'),
            api_secret=config.get('CLOUDINARY_API_SECRET'),
            folder=config.get('CLOUDINARY_FOLDER')
        )

    @property
    def is_configured(self):
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def upload(self, file_path):
        """Upload an image file; returns (secure_url, public_id)"""
        if not self.is_configured:
            raise ImageHostError('Image host not configured')

        options = {'resource_type': 'image'}
        if self.folder:
            options['folder'] = self.folder

        try:
            result = cloudinary.uploader.upload(file_path, **options)
        except CloudinaryError as e:
            raise ImageHostError(f"Image upload failed: {str(e)}") from e

        if not result.get('secure_url') or not result.get('public_id'):
            raise ImageHostError('Image host returned no URL')

        logger.info("Uploaded image %s", result['public_id'])
        return result['secure_url'], result['public_id']

    def delete(self, public_id):
        """Remove a hosted image"""
        if not self.is_configured:
            raise ImageHostError('Image host not configured')

        try:
            result = cloudinary.uploader.destroy(public_id, resource_type='image')
        except CloudinaryError as e:
            raise ImageHostError(f"Image delete failed: {str(e)}") from e

        # "not found" means it is already gone
        if result.get('result') not in ('ok', 'not found'):
            raise ImageHostError(f"Image delete failed: {result.get('result')}")

        logger.info("Deleted image %s", public_id)


def public_id_from_url(image_url):
    """Recover a Cloudinary public id from a delivery URL, or None"""
    if not image_url or '/upload/' not in image_url:
        return None

    path = image_url.split('/upload/', 1)[1].split('?', 1)[0]
    segments = [segment for segment in path.split('/') if segment]
    # Drop transformations and the version segment ahead of the id
    while segments and (',' in segments[0] or (segments[0].startswith('v') and segments[0][1:].isdigit())):
        segments.pop(0)
    if not segments:
        return None

    segments[-1] = segments[-1].rsplit('.', 1)[0]
    return '/'.join(segments)
