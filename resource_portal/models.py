"""
Database models for the college resource portal.
Users upload resources, admins review them, and approved resources collect
tags, ratings, favorites, downloads and the notifications these produce.
"""

import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .helpers import sanitize_html

db = SQLAlchemy()

ROLE_STUDENT = 'student'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_STUDENT, ROLE_ADMIN)

STATUS_PENDING = 'pending'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

FILE_TYPES = ('pdf', 'image', 'doc', 'ppt')

NOTIFICATION_TYPES = ('approval', 'rejection', 'comment', 'rating', 'announcement', 'new_resource')


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat() if value else None


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE clauses unless asked per connection.
    if type(dbapi_connection).__module__.startswith('sqlite3'):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


class User(UserMixin, db.Model):
    """Student or admin account."""
    __tablename__ = 'users'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    email: str = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(255), nullable=False)
    full_name: str = db.Column(db.String(255), nullable=False)
    role: str = db.Column(db.Enum(*ROLES, name='user_role'), nullable=False, default=ROLE_STUDENT, index=True)
    created_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False)

    resources = db.relationship('Resource', back_populates='uploader', foreign_keys='Resource.uploaded_by',
                                cascade='all, delete-orphan', passive_deletes=True)
    ratings = db.relationship('Rating', back_populates='user', cascade='all, delete-orphan', passive_deletes=True)
    favorites = db.relationship('Favorite', back_populates='user', cascade='all, delete-orphan', passive_deletes=True)
    notifications = db.relationship('Notification', back_populates='user', cascade='all, delete-orphan',
                                    passive_deletes=True)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'created_at': isoformat(self.created_at),
        }


class ResourceTag(db.Model):
    """Many-to-many link between resources and tags."""
    __tablename__ = 'resource_tags'
    resource_id: str = db.Column(db.String(36), db.ForeignKey('resources.id', ondelete='CASCADE'), primary_key=True)
    tag_id: str = db.Column(db.String(36), db.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True)
    created_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False)


class Tag(db.Model):
    """Category label, e.g. a subject or a semester."""
    __tablename__ = 'tags'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    name: str = db.Column(db.String(100), unique=True, nullable=False)
    slug: str = db.Column(db.String(100), unique=True, nullable=False, index=True)
    color: str = db.Column(db.String(7), nullable=False, default='#3B82F6')
    created_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False)
    resources = db.relationship('Resource', secondary='resource_tags', back_populates='tags')

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'slug': self.slug, 'color': self.color}


class Resource(db.Model):
    """Uploaded file together with its review state and engagement counters."""
    __tablename__ = 'resources'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    title: str = db.Column(db.String(255), nullable=False)
    description: str = db.Column(db.Text)
    file_url: str = db.Column(db.Text, nullable=False)
    public_id: str = db.Column(db.String(255), nullable=False)
    file_type: str = db.Column(db.Enum(*FILE_TYPES, name='file_type'), nullable=False, index=True)
    file_size: int = db.Column(db.BigInteger)
    uploaded_by: str = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    status: str = db.Column(db.Enum(*STATUSES, name='resource_status'), nullable=False, default=STATUS_PENDING,
                       index=True)
    uploaded_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False)
    reviewed_at: datetime = db.Column(db.DateTime)
    reviewed_by: str = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'))
    view_count: int = db.Column(db.Integer, nullable=False, default=0)
    download_count: int = db.Column(db.Integer, nullable=False, default=0)
    average_rating: float = db.Column(db.Numeric(3, 2, asdecimal=False), nullable=False, default=0)
    rating_count: int = db.Column(db.Integer, nullable=False, default=0)

    uploader = db.relationship('User', back_populates='resources', foreign_keys=[uploaded_by])
    reviewer = db.relationship('User', foreign_keys=[reviewed_by])
    tags = db.relationship('Tag', secondary='resource_tags', back_populates='resources', order_by='Tag.name')
    ratings = db.relationship('Rating', back_populates='resource', cascade='all, delete-orphan',
                              passive_deletes=True)
    favorites = db.relationship('Favorite', back_populates='resource', cascade='all, delete-orphan',
                                passive_deletes=True)
    downloads = db.relationship('DownloadHistory', backref='resource', cascade='all, delete-orphan',
                                passive_deletes=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'description_html': sanitize_html(self.description) if self.description else None,
            'file_url': self.file_url,
            'file_type': self.file_type,
            'file_size': self.file_size,
            'uploaded_by': self.uploaded_by,
            'uploader_name': self.uploader.full_name if self.uploader else None,
            'status': self.status,
            'uploaded_at': isoformat(self.uploaded_at),
            'reviewed_at': isoformat(self.reviewed_at),
            'reviewed_by': self.reviewed_by,
            'view_count': self.view_count,
            'download_count': self.download_count,
            'average_rating': float(self.average_rating or 0),
            'rating_count': self.rating_count,
            'tags': [tag.to_dict() for tag in self.tags],
        }


class Rating(db.Model):
    """One user's star rating (and optional review) of a resource."""
    __tablename__ = 'ratings'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    resource_id: str = db.Column(db.String(36), db.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False,
                            index=True)
    user_id: str = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    rating: int = db.Column(db.Integer, nullable=False)
    review: str = db.Column(db.Text)
    created_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at: datetime = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    resource = db.relationship('Resource', back_populates='ratings')
    user = db.relationship('User', back_populates='ratings')
    __table_args__ = (
        db.UniqueConstraint('user_id', 'resource_id', name='unique_user_resource_rating'),
        db.CheckConstraint('rating BETWEEN 1 AND 5', name='rating_range'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'resource_id': self.resource_id,
            'user_id': self.user_id,
            'user_name': self.user.full_name if self.user else None,
            'rating': self.rating,
            'review': self.review,
            'review_html': sanitize_html(self.review) if self.review else None,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class Favorite(db.Model):
    """User bookmark of a resource."""
    __tablename__ = 'favorites'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id: str = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    resource_id: str = db.Column(db.String(36), db.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False,
                            index=True)
    created_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False)
    user = db.relationship('User', back_populates='favorites')
    resource = db.relationship('Resource', back_populates='favorites')
    __table_args__ = (db.UniqueConstraint('user_id', 'resource_id', name='unique_user_favorite'),)


class Notification(db.Model):
    """Inbox entry produced by review and rating events."""
    __tablename__ = 'notifications'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id: str = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type: str = db.Column(db.Enum(*NOTIFICATION_TYPES, name='notification_type'), nullable=False)
    title: str = db.Column(db.String(255), nullable=False)
    message: str = db.Column(db.Text, nullable=False)
    resource_id: str = db.Column(db.String(36), db.ForeignKey('resources.id', ondelete='SET NULL'))
    is_read: bool = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    user = db.relationship('User', back_populates='notifications')

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'resource_id': self.resource_id,
            'is_read': self.is_read,
            'created_at': isoformat(self.created_at),
        }


class DownloadHistory(db.Model):
    """Append-only log of downloads; anonymous downloads have no user."""
    __tablename__ = 'download_history'
    id: str = db.Column(db.String(36), primary_key=True, default=new_id)
    resource_id: str = db.Column(db.String(36), db.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False,
                            index=True)
    user_id: str = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    downloaded_at: datetime = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
