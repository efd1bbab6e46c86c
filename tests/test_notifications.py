import unittest
from datetime import datetime, timedelta

from resource_portal.models import Notification, db
from resource_portal.notifications import notify, unread_count

from .support import ApiTestCase


class TestNotifications(ApiTestCase):

    def add_notifications(self, user_id, count):
        with self.app.app_context():
            for i in range(count):
                notification = notify(db.session, user_id, 'announcement', f'Notice {i}', f'Message {i}')
                notification.created_at = datetime(2025, 1, 1) + timedelta(minutes=i)
            db.session.commit()

    def test_list_newest_first_and_capped(self):
        self.add_notifications(self.alice_id, 55)
        notifications = self.alice.get('/api/resources/notifications/all').get_json()['notifications']
        self.assertEqual(len(notifications), 50)
        self.assertEqual(notifications[0]['title'], 'Notice 54')

    def test_unread_filter_and_mark_read(self):
        self.add_notifications(self.alice_id, 3)
        notifications = self.alice.get('/api/resources/notifications/all').get_json()['notifications']
        target = notifications[0]['id']
        response = self.alice.put(f'/api/resources/notifications/{target}/read')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['notification']['is_read'])
        unread = self.alice.get('/api/resources/notifications/all', query_string={'unread': 'true'})
        self.assertEqual({n['id'] for n in unread.get_json()['notifications']},
                         {n['id'] for n in notifications} - {target})
        self.assertEqual(self.alice.get('/api/resources/notifications/unread-count').get_json()['count'], 2)

    def test_mark_all_read(self):
        self.add_notifications(self.alice_id, 4)
        self.add_notifications(self.bob_id, 1)
        response = self.alice.put('/api/resources/notifications/mark-all-read')
        self.assertEqual(response.get_json()['updated'], 4)
        with self.app.app_context():
            self.assertEqual(unread_count(db.session, self.alice_id), 0)
            self.assertEqual(unread_count(db.session, self.bob_id), 1)

    def test_cannot_read_someone_elses_notification(self):
        self.add_notifications(self.bob_id, 1)
        with self.app.app_context():
            notification_id = Notification.query.filter_by(user_id=self.bob_id).one().id
        response = self.alice.put(f'/api/resources/notifications/{notification_id}/read')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.alice.get('/api/resources/notifications/all').get_json()['notifications'], [])


if __name__ == '__main__':
    unittest.main()
