"""
Object storage for uploaded files.

Files go to a Supabase storage bucket under a folder; the object path is the
reference id kept on the resource so the file can be removed later.
"""

import uuid
from collections import namedtuple

from flask import current_app
from supabase import create_client
from werkzeug.utils import secure_filename

from .exceptions import UpstreamError

StoredFile = namedtuple('StoredFile', ['url', 'public_id'])


class SupabaseStorage:
    """Upload/delete contract over a Supabase storage bucket."""

    def __init__(self, url=None, key=None, bucket='resources', folder='college-resources'):
        self.url = url
        self.key = key
        self.bucket = bucket
        self.folder = folder
        self._client = None

    @classmethod
    def from_config(cls, config):
        return cls(
            url=config.get('SUPABASE_URL'),
            key=config.get('SUPABASE_KEY'),
            bucket=config.get('STORAGE_BUCKET', 'resources'),
            folder=config.get('STORAGE_FOLDER', 'college-resources'),
        )

    @property
    def client(self):
        if self._client is None:
            if not self.url or not self.key:
                raise UpstreamError('File storage is not configured')
            self._client = create_client(self.url, self.key)
        return self._client

    def object_path(self, filename):
        name = secure_filename(filename or '') or 'file'
        return f'{self.folder}/{uuid.uuid4().hex}_{name}'

    def upload(self, data, filename, content_type):
        path = self.object_path(filename)
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(path=path, file=data, file_options={'content-type': content_type})
        except Exception as e:
            current_app.logger.exception('Storage upload of %s failed', path)
            raise UpstreamError(f'File upload failed: {e}') from e
        return StoredFile(url=bucket.get_public_url(path), public_id=path)

    def delete(self, public_id):
        self.client.storage.from_(self.bucket).remove([public_id])


def init_storage(app):
    app.extensions['storage'] = SupabaseStorage.from_config(app.config)


def get_storage():
    return current_app.extensions['storage']


def delete_quietly(public_id):
    """Removes a stored file; failures are logged and do not propagate."""
    try:
        get_storage().delete(public_id)
        return True
    except Exception:
        current_app.logger.warning('Could not delete %s from storage', public_id, exc_info=True)
        return False
