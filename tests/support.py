import io
import unittest

from resource_portal import create_app
from resource_portal.auth import create_user
from resource_portal.config import TestConfig
from resource_portal.exceptions import UpstreamError
from resource_portal.models import ROLE_ADMIN, Tag, db
from resource_portal.storage import StoredFile
from resource_portal.tags import seed_default_tags

PASSWORD = 'secret1'


class MemoryStorage:
    """Storage double keeping uploaded objects in a dict."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False

    def upload(self, data, filename, content_type):
        if self.fail_upload:
            raise UpstreamError('File upload failed: storage offline')
        public_id = f'college-resources/{len(self.objects) + len(self.deleted) + 1}_{filename}'
        self.objects[public_id] = data
        return StoredFile(url=f'https://storage.example.com/{public_id}', public_id=public_id)

    def delete(self, public_id):
        if self.fail_delete:
            raise RuntimeError('storage offline')
        self.objects.pop(public_id, None)
        self.deleted.append(public_id)


class ApiTestCase(unittest.TestCase):
    """
    Fresh in-memory database per test with an admin and two students,
    each with their own logged-in test client.
    """
    config_overrides = {}

    def setUp(self):
        self.app = create_app(TestConfig, **self.config_overrides)
        self.storage = MemoryStorage()
        self.app.extensions['storage'] = self.storage
        with self.app.app_context():
            db.create_all()
            seed_default_tags(db.session)
            self.admin_id = create_user('admin@college.edu', PASSWORD, 'Ada Admin', role=ROLE_ADMIN).id
            self.alice_id = create_user('alice@college.edu', PASSWORD, 'Alice Student').id
            self.bob_id = create_user('bob@college.edu', PASSWORD, 'Bob Student').id
        self.admin = self.login('admin@college.edu')
        self.alice = self.login('alice@college.edu')
        self.bob = self.login('bob@college.edu')

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()

    def login(self, email, password=PASSWORD):
        client = self.app.test_client()
        response = client.post('/api/auth/login', json={'email': email, 'password': password})
        self.assertEqual(response.status_code, 200, response.get_json())
        return client

    def upload(self, client=None, title='Chapter 5', description=None, content=b'%PDF-1.4 lecture notes',
               filename='chapter5.pdf', content_type='application/pdf', tag_ids=None):
        data = {'title': title, 'file': (io.BytesIO(content), filename, content_type)}
        if description is not None:
            data['description'] = description
        if tag_ids:
            data['tag_ids'] = tag_ids
        return (client or self.alice).post('/api/resources/upload', data=data, content_type='multipart/form-data')

    def upload_id(self, client=None, **kwargs):
        response = self.upload(client, **kwargs)
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()['resource']['id']

    def approved_id(self, client=None, **kwargs):
        resource_id = self.upload_id(client, **kwargs)
        response = self.admin.put(f'/api/resources/{resource_id}/approve')
        self.assertEqual(response.status_code, 200, response.get_json())
        return resource_id

    def tag_id(self, slug):
        with self.app.app_context():
            return Tag.query.filter_by(slug=slug).one().id

    def error_of(self, response):
        return response.get_json()['error']
