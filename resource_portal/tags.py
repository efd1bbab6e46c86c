"""
Tag catalog and per-resource tag sets.
"""

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy import or_

from .auth import role_required
from .exceptions import ConflictError, ForbiddenError, ValidationError
from .forms import ResourceTagsForm, TagForm, validate_or_raise
from .helpers import slugify
from .models import ROLE_ADMIN, Tag, db
from .resources import can_view, get_resource_or_404

bp = Blueprint('tags', __name__, url_prefix='/api/resources')

DEFAULT_TAGS = [
    ('Computer Science', '#3B82F6'),
    ('Mathematics', '#10B981'),
    ('Physics', '#F59E0B'),
    ('Chemistry', '#EF4444'),
    ('Semester 1', '#8B5CF6'),
    ('Semester 2', '#8B5CF6'),
    ('Semester 3', '#8B5CF6'),
    ('Semester 4', '#8B5CF6'),
    ('Notes', '#06B6D4'),
    ('Assignment', '#EC4899'),
    ('Previous Paper', '#F97316'),
    ('Project', '#84CC16'),
    ('Tutorial', '#6366F1'),
    ('Reference', '#14B8A6'),
]


def seed_default_tags(session):
    """Inserts missing default tags; returns how many were added."""
    added = 0
    for name, color in DEFAULT_TAGS:
        slug = slugify(name)
        if not session.scalar(db.select(Tag.id).where(or_(Tag.name == name, Tag.slug == slug))):
            session.add(Tag(name=name, slug=slug, color=color))
            added += 1
    session.commit()
    return added


def replace_tags(session, resource, tag_ids):
    """Swaps the resource's whole tag set in a single commit."""
    tags = session.scalars(db.select(Tag).where(Tag.id.in_(tag_ids)).order_by(Tag.name)).all() if tag_ids else []
    resource.tags = list(tags)
    session.commit()
    return resource.tags


@bp.route('/tags')
def list_tags():
    """The tag catalog, by name."""
    tags = Tag.query.order_by(Tag.name).all()
    return jsonify({'tags': [t.to_dict() for t in tags]})


@bp.route('/tags', methods=['POST'])
@role_required(ROLE_ADMIN)
def create_tag():
    """Adds a tag to the catalog."""
    form = validate_or_raise(TagForm())
    name = form.name.data.strip()
    slug = slugify(name)
    if not slug:
        raise ValidationError('Tag name must contain letters or digits')
    if Tag.query.filter(or_(Tag.name == name, Tag.slug == slug)).first():
        raise ConflictError('Tag already exists')
    tag = Tag(name=name, slug=slug, color=form.color.data or '#3B82F6')
    db.session.add(tag)
    db.session.commit()
    current_app.logger.info('Tag %s created', slug)
    return jsonify({'message': 'Tag created successfully', 'tag': tag.to_dict()}), 201


@bp.route('/<resource_id>/tags')
@login_required
def resource_tags(resource_id):
    """Tags of a resource the current user may see."""
    resource = get_resource_or_404(resource_id)
    if not can_view(resource, current_user):
        raise ForbiddenError()
    return jsonify({'tags': [t.to_dict() for t in resource.tags]})


@bp.route('/<resource_id>/tags', methods=['PUT'])
@login_required
def update_resource_tags(resource_id):
    """Replaces a resource's tags; owners and admins only."""
    resource = get_resource_or_404(resource_id)
    if not current_user.is_admin and resource.uploaded_by != current_user.id:
        raise ForbiddenError('You can only tag your own resources')
    form = ResourceTagsForm()
    form.tag_ids.choices = [(t.id, t.name) for t in Tag.query.order_by(Tag.name).all()]
    validate_or_raise(form)
    tags = replace_tags(db.session, resource, form.tag_ids.data)
    return jsonify({'message': 'Tags updated successfully', 'tags': [t.to_dict() for t in tags]})
