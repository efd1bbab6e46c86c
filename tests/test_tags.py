import unittest

from resource_portal.helpers import slugify
from resource_portal.models import Tag, db
from resource_portal.tags import DEFAULT_TAGS, seed_default_tags

from .support import ApiTestCase


class TestTags(ApiTestCase):

    def test_default_catalog(self):
        tags = self.app.test_client().get('/api/resources/tags').get_json()['tags']
        self.assertEqual(len(tags), len(DEFAULT_TAGS))
        self.assertEqual([t['name'] for t in tags], sorted(t['name'] for t in tags))
        self.assertIn('previous-paper', {t['slug'] for t in tags})

    def test_seeding_is_idempotent(self):
        with self.app.app_context():
            self.assertEqual(seed_default_tags(db.session), 0)
            self.assertEqual(Tag.query.count(), len(DEFAULT_TAGS))

    def test_admin_creates_tag(self):
        response = self.admin.post('/api/resources/tags', json={'name': 'Data Structures', 'color': '#112233'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['tag']['slug'], 'data-structures')
        duplicate = self.admin.post('/api/resources/tags', json={'name': 'data structures'})
        self.assertEqual(duplicate.status_code, 409)

    def test_tag_validation(self):
        self.assertEqual(self.admin.post('/api/resources/tags', json={'name': 'Bio', 'color': 'green'}).status_code,
                         400)
        self.assertEqual(self.admin.post('/api/resources/tags', json={'name': '!!!'}).status_code, 400)
        self.assertEqual(self.alice.post('/api/resources/tags', json={'name': 'Biology'}).status_code, 403)

    def test_replace_tags(self):
        resource_id = self.upload_id(tag_ids=[self.tag_id('physics'), self.tag_id('notes')])
        new_ids = [self.tag_id('chemistry'), self.tag_id('semester-2')]
        response = self.alice.put(f'/api/resources/{resource_id}/tags', json={'tag_ids': new_ids})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([t['slug'] for t in response.get_json()['tags']], ['chemistry', 'semester-2'])
        listed = self.alice.get(f'/api/resources/{resource_id}/tags').get_json()['tags']
        self.assertEqual({t['id'] for t in listed}, set(new_ids))

    def test_clear_tags(self):
        resource_id = self.upload_id(tag_ids=[self.tag_id('physics')])
        response = self.alice.put(f'/api/resources/{resource_id}/tags', json={'tag_ids': []})
        self.assertEqual(response.get_json()['tags'], [])

    def test_replace_tags_rules(self):
        resource_id = self.upload_id()
        physics = self.tag_id('physics')
        self.assertEqual(self.bob.put(f'/api/resources/{resource_id}/tags', json={'tag_ids': [physics]}).status_code,
                         403)
        self.assertEqual(self.admin.put(f'/api/resources/{resource_id}/tags', json={'tag_ids': [physics]})
                         .status_code, 200)
        response = self.alice.put(f'/api/resources/{resource_id}/tags', json={'tag_ids': ['bogus']})
        self.assertEqual(response.status_code, 400)
        self.assertEqual([t['slug'] for t in self.alice.get(f'/api/resources/{resource_id}/tags').get_json()['tags']],
                         ['physics'])

    def test_approved_listing_by_tag(self):
        tagged = self.approved_id(title='Mechanics', tag_ids=[self.tag_id('physics')])
        self.approved_id(title='Algebra', tag_ids=[self.tag_id('mathematics')])
        resources = self.bob.get('/api/resources/approved', query_string={'tag': 'physics'}).get_json()['resources']
        self.assertEqual([r['id'] for r in resources], [tagged])

    def test_slugify(self):
        self.assertEqual(slugify('Previous Paper'), 'previous-paper')
        self.assertEqual(slugify('  C++ & Java '), 'c-java')


if __name__ == '__main__':
    unittest.main()
