import unittest
from unittest import mock

from sqlalchemy.exc import OperationalError

from resource_portal.helpers import file_type_for
from resource_portal.models import Resource, db

from .support import ApiTestCase


class TestFileTypes(unittest.TestCase):

    def test_known_content_types(self):
        self.assertEqual(file_type_for('application/pdf'), 'pdf')
        self.assertEqual(file_type_for('image/png'), 'image')
        self.assertEqual(file_type_for('image/jpg'), 'image')
        self.assertEqual(file_type_for('application/msword'), 'doc')
        self.assertEqual(
            file_type_for('application/vnd.openxmlformats-officedocument.presentationml.presentation'), 'ppt')

    def test_parameters_and_case_are_ignored(self):
        self.assertEqual(file_type_for('Application/PDF; charset=binary'), 'pdf')

    def test_unknown_content_types(self):
        self.assertIsNone(file_type_for('text/plain'))
        self.assertIsNone(file_type_for('image/gif'))
        self.assertIsNone(file_type_for(None))


class TestUpload(ApiTestCase):

    def test_upload_creates_pending_resource(self):
        response = self.upload(description='Notes on **graphs**')
        self.assertEqual(response.status_code, 201)
        resource = response.get_json()['resource']
        self.assertEqual(resource['status'], 'pending')
        self.assertEqual(resource['file_type'], 'pdf')
        self.assertEqual(resource['uploaded_by'], self.alice_id)
        self.assertIsNone(resource['reviewed_at'])
        self.assertIsNone(resource['reviewed_by'])
        self.assertIn('<strong>graphs</strong>', resource['description_html'])
        self.assertEqual(len(self.storage.objects), 1)
        self.assertEqual(resource['file_url'], f'https://storage.example.com/{next(iter(self.storage.objects))}')

    def test_upload_image_and_presentation(self):
        image = self.upload(filename='board.png', content_type='image/png').get_json()['resource']
        slides = self.upload(filename='deck.ppt', content_type='application/vnd.ms-powerpoint')
        self.assertEqual(image['file_type'], 'image')
        self.assertEqual(slides.get_json()['resource']['file_type'], 'ppt')

    def test_invalid_file_type(self):
        response = self.upload(filename='notes.txt', content_type='text/plain')
        self.assertEqual(response.status_code, 400)
        self.assertIn('Invalid file type', self.error_of(response))
        self.assertEqual(self.storage.objects, {})

    def test_title_is_required(self):
        response = self.upload(title='')
        self.assertEqual(response.status_code, 400)
        self.assertIn('Title', self.error_of(response))

    def test_file_is_required(self):
        response = self.alice.post('/api/resources/upload', data={'title': 'No file'},
                                   content_type='multipart/form-data')
        self.assertEqual(response.status_code, 400)
        self.assertIn('File', self.error_of(response))

    def test_storage_failure_persists_nothing(self):
        self.storage.fail_upload = True
        response = self.upload()
        self.assertEqual(response.status_code, 502)
        with self.app.app_context():
            self.assertEqual(Resource.query.count(), 0)

    def test_database_failure_removes_stored_file(self):
        with self.app.app_context():
            with mock.patch.object(db.session, 'commit', side_effect=OperationalError('INSERT', {}, 'disk full')):
                response = self.upload()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.storage.objects, {})
        self.assertEqual(len(self.storage.deleted), 1)

    def test_unexpected_error_reports_its_message(self):
        with mock.patch.object(self.storage, 'upload', side_effect=RuntimeError('bucket quota exceeded')):
            response = self.upload()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.error_of(response), 'bucket quota exceeded')
        with self.app.app_context():
            self.assertEqual(Resource.query.count(), 0)

    def test_upload_with_tags(self):
        tag_ids = [self.tag_id('notes'), self.tag_id('mathematics')]
        resource = self.upload(tag_ids=tag_ids).get_json()['resource']
        self.assertEqual([t['slug'] for t in resource['tags']], ['mathematics', 'notes'])

    def test_upload_with_unknown_tag(self):
        response = self.upload(tag_ids=['no-such-tag'])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.storage.objects, {})


class TestUploadSizeLimit(ApiTestCase):
    config_overrides = {'MAX_UPLOAD_SIZE': 1024}

    def test_file_too_large(self):
        response = self.upload(content=b'x' * 1025)
        self.assertEqual(response.status_code, 400)
        self.assertIn('too large', self.error_of(response))
        self.assertEqual(self.storage.objects, {})

    def test_file_at_limit(self):
        self.assertEqual(self.upload(content=b'x' * 1024).status_code, 201)


if __name__ == '__main__':
    unittest.main()
