"""
Per-user notification inbox. Entries are written by the review and rating
flows through ``notify``; clients poll the unread count.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import func, update

from .exceptions import NotFoundError
from .models import Notification, db

bp = Blueprint('notifications', __name__, url_prefix='/api/resources/notifications')


def notify(session, user_id, type, title, message, resource_id=None):
    """Adds a notification to ``session``; the caller commits."""
    notification = Notification(user_id=user_id, type=type, title=title, message=message,
                                resource_id=resource_id)
    session.add(notification)
    return notification


def unread_count(session, user_id):
    return session.scalar(
        db.select(func.count(Notification.id)).where(Notification.user_id == user_id,
                                                     Notification.is_read.is_(False))
    )


@bp.route('/all')
@login_required
def list_notifications():
    """Newest first, capped; ``?unread=true`` keeps only unread ones."""
    query = db.select(Notification).where(Notification.user_id == current_user.id)
    if request.args.get('unread', '').lower() in ('1', 'true', 'yes'):
        query = query.where(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc()).limit(current_app.config['NOTIFICATION_LIMIT'])
    notifications = db.session.scalars(query).all()
    return jsonify({'notifications': [n.to_dict() for n in notifications]})


@bp.route('/unread-count')
@login_required
def get_unread_count():
    """Number of unread notifications for the current user."""
    return jsonify({'count': unread_count(db.session, current_user.id)})


@bp.route('/<notification_id>/read', methods=['PUT'])
@login_required
def mark_read(notification_id):
    """Marks one of the current user's notifications as read."""
    notification = db.session.get(Notification, notification_id)
    if not notification or notification.user_id != current_user.id:
        raise NotFoundError('Notification not found')
    notification.is_read = True
    db.session.commit()
    return jsonify({'message': 'Notification marked as read', 'notification': notification.to_dict()})


@bp.route('/mark-all-read', methods=['PUT'])
@login_required
def mark_all_read():
    """Marks all of the current user's notifications as read."""
    result = db.session.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    db.session.commit()
    return jsonify({'message': 'All notifications marked as read', 'updated': result.rowcount})
