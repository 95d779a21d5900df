#file_handler.py
import logging
import os
import uuid
from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class FileHandler:
    def __init__(self, upload_folder):
        self.upload_folder = upload_folder
        self.allowed_extensions = {'jpg', 'jpeg', 'png', 'gif', 'webp', 'bmp'}

    def is_allowed_file(self, filename):
        """Check if file extension is allowed"""
        return '.' in filename and \
               filename.rsplit('.', 1)[1].lower() in self.allowed_extensions

    def save_file(self, file):
        """Save uploaded image and return file path"""
        if not file or not file.filename or not self.is_allowed_file(file.filename):
            raise ValueError("Invalid file type")

        # Generate unique filename
        filename = secure_filename(file.filename)
        unique_filename = f"{uuid.uuid4()}_{filename}"
        file_path = os.path.join(self.upload_folder, unique_filename)

        os.makedirs(self.upload_folder, exist_ok=True)
        file.save(file_path)

        if not self.is_valid_image(file_path):
            self.cleanup_file(file_path)
            raise ValueError("Uploaded file is not a valid image")

        return file_path

    def is_valid_image(self, file_path):
        """Check the file actually decodes as an image"""
        try:
            with Image.open(file_path) as image:
                image.verify()
            return True
        except (UnidentifiedImageError, OSError, SyntaxError):
            return False

    def cleanup_file(self, file_path):
        """Delete uploaded file"""
        try:
            if os.path.exists(file_path):
                os.remove(file_path)
        except OSError as e:
            logger.warning("Failed to cleanup file %s: %s", file_path, e)
