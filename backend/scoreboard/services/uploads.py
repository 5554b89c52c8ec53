import os
import time

from werkzeug.utils import secure_filename

from scoreboard.errors import ValidationError

ALLOWED_EXTENSIONS = {'jpeg', 'jpg', 'png', 'webp'}
ALLOWED_MIMETYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/webp'}


class FixtureStorage:
    """Stores fixture images on disk and hands out their file names as references."""

    def __init__(self, upload_folder: str):
        self.upload_folder = upload_folder

    def ensure_folder(self) -> None:
        os.makedirs(self.upload_folder, exist_ok=True)

    def path_for(self, reference: str) -> str:
        safe = secure_filename(reference or '')
        if not safe or safe != reference:
            raise ValidationError('Invalid fixture reference')
        return os.path.join(self.upload_folder, safe)

    def exists(self, reference: str) -> bool:
        try:
            return os.path.isfile(self.path_for(reference))
        except ValidationError:
            return False

    def save(self, file) -> str:
        if file is None or not file.filename:
            raise ValidationError('No file selected')
        _, ext = os.path.splitext(secure_filename(file.filename))
        ext = ext.lower()
        if ext.lstrip('.') not in ALLOWED_EXTENSIONS or (file.mimetype or '').lower() not in ALLOWED_MIMETYPES:
            raise ValidationError('Only JPEG, PNG or WebP images are allowed')
        self.ensure_folder()
        reference = f'fixture_{int(time.time() * 1000)}{ext}'
        # Two uploads within the same millisecond get distinct names
        suffix = 1
        while os.path.exists(os.path.join(self.upload_folder, reference)):
            reference = f'fixture_{int(time.time() * 1000)}_{suffix}{ext}'
            suffix += 1
        file.save(os.path.join(self.upload_folder, reference))
        return reference

    def remove(self, reference: str) -> bool:
        """Delete the stored file. Returns False when it was already gone."""
        try:
            os.remove(self.path_for(reference))
        except FileNotFoundError:
            return False
        return True
