"""
Resource lifecycle: upload, listing and search, owner edits, the admin
review workflow (pending -> approved | rejected), deletion, and the public
view/download endpoints that bump the engagement counters.
"""

from urllib.parse import quote

from flask import Blueprint, current_app, jsonify, redirect, request
from flask_login import current_user, login_required
from sqlalchemy import func, or_, update

from .auth import role_required
from .exceptions import FileTooLarge, ForbiddenError, InvalidFileType, NotFoundError, ValidationError
from .forms import RejectForm, ResourceEditForm, UploadForm, validate_or_raise
from .helpers import clean_text, file_type_for, format_size
from .models import (FILE_TYPES, ROLE_ADMIN, ROLE_STUDENT, STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED,
                     STATUSES, DownloadHistory, Resource, Tag, db, utcnow)
from .notifications import notify
from .storage import delete_quietly, get_storage

bp = Blueprint('resources', __name__, url_prefix='/api/resources')


def get_resource_or_404(resource_id):
    resource = db.session.get(Resource, resource_id)
    if not resource:
        raise NotFoundError('Resource not found')
    return resource


def can_view(resource, user):
    """Approved resources are public; others only to their uploader and admins."""
    if resource.status == STATUS_APPROVED:
        return True
    return user.is_authenticated and (user.is_admin or resource.uploaded_by == user.id)


def newest_first(query):
    return query.order_by(Resource.uploaded_at.desc())


def resources_response(resources):
    return jsonify({'resources': [r.to_dict() for r in resources]})


def filter_file_type(query, file_type):
    if file_type and file_type != 'all':
        if file_type not in FILE_TYPES:
            raise ValidationError(f'Unknown file type: {file_type}')
        query = query.filter(Resource.file_type == file_type)
    return query


def like_pattern(text):
    """LIKE pattern matching ``text`` literally anywhere in a value."""
    escaped = text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f'%{escaped}%'


def search_approved(q, file_type=None):
    """Approved resources whose title or description contains ``q`` (any case)."""
    pattern = like_pattern(q)
    query = Resource.query.filter(
        Resource.status == STATUS_APPROVED,
        or_(Resource.title.ilike(pattern, escape='\\'), Resource.description.ilike(pattern, escape='\\'))
    )
    return newest_first(filter_file_type(query, file_type)).all()


def review_resource(session, resource, status, reviewer, reason=None):
    """Sets approved/rejected, re-stamping the review even if unchanged, and notifies the uploader."""
    resource.status = status
    resource.reviewed_at = utcnow()
    resource.reviewed_by = reviewer.id
    if status == STATUS_APPROVED:
        notify(session, resource.uploaded_by, 'approval', 'Resource Approved',
               f'Your resource "{resource.title}" has been approved and is now visible to everyone.',
               resource.id)
    else:
        message = f'Your resource "{resource.title}" has been rejected.'
        if reason:
            message += f' Reason: {reason}'
        notify(session, resource.uploaded_by, 'rejection', 'Resource Rejected', message, resource.id)
    session.commit()
    current_app.logger.info('Resource %s %s by %s', resource.id, status, reviewer.email)
    return resource


def increment_counter(session, resource_id, column):
    """Atomic ``column = column + 1`` on one resource row."""
    session.execute(
        update(Resource).where(Resource.id == resource_id).values({column: getattr(Resource, column) + 1})
    )


@bp.route('/upload', methods=['POST'])
@role_required(ROLE_STUDENT)
def upload_resource():
    """Stores the file, then records the resource as pending."""
    form = UploadForm()
    form.tag_ids.choices = [(t.id, t.name) for t in Tag.query.order_by(Tag.name).all()]
    validate_or_raise(form)

    file = form.file.data
    file_type = file_type_for(file.mimetype)
    if not file_type:
        raise InvalidFileType()
    data = file.read()
    max_size = current_app.config['MAX_UPLOAD_SIZE']
    if len(data) > max_size:
        raise FileTooLarge(f'File is too large ({format_size(len(data))}). Maximum size is {format_size(max_size)}.')

    stored = get_storage().upload(data, file.filename, file.mimetype)
    try:
        resource = Resource(
            title=form.title.data.strip(),
            description=clean_text(form.description.data),
            file_url=stored.url,
            public_id=stored.public_id,
            file_type=file_type,
            file_size=len(data),
            uploaded_by=current_user.id,
            status=STATUS_PENDING
        )
        if form.tag_ids.data:
            resource.tags = Tag.query.filter(Tag.id.in_(form.tag_ids.data)).all()
        db.session.add(resource)
        db.session.commit()
    except Exception:
        db.session.rollback()
        delete_quietly(stored.public_id)
        raise
    current_app.logger.info('Resource %s uploaded by %s', resource.id, current_user.email)
    return jsonify({'message': 'Resource uploaded successfully', 'resource': resource.to_dict()}), 201


@bp.route('/approved')
@login_required
def approved_resources():
    """Approved resources, optionally filtered by tag slug and file type."""
    query = Resource.query.filter(Resource.status == STATUS_APPROVED)
    tag = request.args.get('tag')
    if tag:
        query = query.filter(Resource.tags.any(Tag.slug == tag))
    query = filter_file_type(query, request.args.get('fileType'))
    return resources_response(newest_first(query).all())


@bp.route('/search')
@login_required
def search_resources():
    """Searches approved resources by title and description."""
    q = request.args.get('q', '').strip()
    if not q:
        raise ValidationError('Search query is required')
    return resources_response(search_approved(q, request.args.get('fileType')))


@bp.route('/my-resources')
@role_required(ROLE_STUDENT)
def my_resources():
    """Everything the current student has uploaded, in any status."""
    return resources_response(newest_first(Resource.query.filter_by(uploaded_by=current_user.id)).all())


@bp.route('/all')
@role_required(ROLE_ADMIN)
def all_resources():
    """Admin listing of all resources, optionally by status."""
    query = Resource.query
    status = request.args.get('status')
    if status:
        if status not in STATUSES:
            raise ValidationError(f'Unknown status: {status}')
        query = query.filter(Resource.status == status)
    return resources_response(newest_first(query).all())


@bp.route('/stats')
@role_required(ROLE_ADMIN)
def resource_stats():
    """Counts per status and engagement totals for the admin dashboard."""
    by_status = dict(db.session.execute(
        db.select(Resource.status, func.count(Resource.id)).group_by(Resource.status)
    ).all())
    views, downloads = db.session.execute(
        db.select(func.coalesce(func.sum(Resource.view_count), 0),
                  func.coalesce(func.sum(Resource.download_count), 0))
    ).one()
    return jsonify({
        'total': sum(by_status.values()),
        'by_status': {status: by_status.get(status, 0) for status in STATUSES},
        'total_views': int(views),
        'total_downloads': int(downloads),
    })


@bp.route('/<resource_id>')
@login_required
def get_resource(resource_id):
    """A single resource, if the current user may see it."""
    resource = get_resource_or_404(resource_id)
    if not can_view(resource, current_user):
        raise ForbiddenError()
    return jsonify({'resource': resource.to_dict()})


@bp.route('/<resource_id>', methods=['PUT'])
@role_required(ROLE_STUDENT)
def update_resource(resource_id):
    """Owners may edit title/description while the resource is pending."""
    resource = get_resource_or_404(resource_id)
    if resource.uploaded_by != current_user.id:
        raise ForbiddenError('You can only update your own resources')
    if resource.status != STATUS_PENDING:
        raise ValidationError('You can only update pending resources')
    form = validate_or_raise(ResourceEditForm())
    resource.title = form.title.data.strip()
    resource.description = clean_text(form.description.data)
    db.session.commit()
    return jsonify({'message': 'Resource updated successfully', 'resource': resource.to_dict()})


@bp.route('/<resource_id>/approve', methods=['PUT'])
@role_required(ROLE_ADMIN)
def approve_resource(resource_id):
    """Approves a resource and notifies its uploader."""
    resource = review_resource(db.session, get_resource_or_404(resource_id), STATUS_APPROVED, current_user)
    return jsonify({'message': 'Resource approved successfully', 'resource': resource.to_dict()})


@bp.route('/<resource_id>/reject', methods=['PUT'])
@role_required(ROLE_ADMIN)
def reject_resource(resource_id):
    """Rejects a resource, with an optional reason, and notifies its uploader."""
    resource = get_resource_or_404(resource_id)
    form = validate_or_raise(RejectForm())
    resource = review_resource(db.session, resource, STATUS_REJECTED, current_user, clean_text(form.reason.data))
    return jsonify({'message': 'Resource rejected successfully', 'resource': resource.to_dict()})


@bp.route('/<resource_id>', methods=['DELETE'])
@login_required
def delete_resource(resource_id):
    """Admins delete anything; uploaders only their own pending resources."""
    resource = get_resource_or_404(resource_id)
    if not current_user.is_admin:
        if resource.uploaded_by != current_user.id:
            raise ForbiddenError()
        if resource.status != STATUS_PENDING:
            raise ForbiddenError('You can only delete pending resources')
    public_id = resource.public_id
    db.session.delete(resource)
    db.session.commit()
    delete_quietly(public_id)
    current_app.logger.info('Resource %s deleted by %s', resource_id, current_user.email)
    return jsonify({'message': 'Resource deleted successfully'})


@bp.route('/<resource_id>/view')
def view_resource(resource_id):
    """Counts a view and redirects to the file; PDFs open in the external viewer."""
    resource = db.session.get(Resource, resource_id)
    if not resource or resource.status != STATUS_APPROVED:
        raise NotFoundError('Resource not found')
    increment_counter(db.session, resource.id, 'view_count')
    db.session.commit()
    url = resource.file_url
    if resource.file_type == 'pdf':
        url = current_app.config['PDF_VIEWER_URL'].format(url=quote(url, safe=''))
    return redirect(url)


@bp.route('/<resource_id>/download', methods=['POST'])
def download_resource(resource_id):
    """Counts a download, logs who made it and returns the file URL."""
    resource = db.session.get(Resource, resource_id)
    if not resource or resource.status != STATUS_APPROVED:
        raise NotFoundError('Resource not found')
    increment_counter(db.session, resource.id, 'download_count')
    user_id = current_user.id if current_user.is_authenticated else None
    db.session.add(DownloadHistory(resource_id=resource.id, user_id=user_id))
    db.session.commit()
    return jsonify({'file_url': resource.file_url, 'download_count': resource.download_count})
