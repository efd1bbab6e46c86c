from flask import Blueprint, jsonify
from flask_login import current_user, login_required
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from .exceptions import ValidationError
from .models import STATUS_APPROVED, Favorite, Resource, db
from .resources import get_resource_or_404

bp = Blueprint('favorites', __name__, url_prefix='/api/resources')


def is_favorite(session, user_id, resource_id):
    return session.scalar(
        db.select(Favorite.id).filter_by(user_id=user_id, resource_id=resource_id)
    ) is not None


def toggle_favorite(session, resource, user):
    """Unfavorites if the pair exists, favorites otherwise; returns the new state."""
    removed = session.execute(
        delete(Favorite).where(Favorite.user_id == user.id, Favorite.resource_id == resource.id)
    ).rowcount
    if removed:
        session.commit()
        return False
    if resource.status != STATUS_APPROVED:
        session.rollback()
        raise ValidationError('Only approved resources can be added to favorites')
    session.add(Favorite(user_id=user.id, resource_id=resource.id))
    try:
        session.commit()
    except IntegrityError:
        # A concurrent request inserted the same pair first.
        session.rollback()
    return True


@bp.route('/<resource_id>/favorite', methods=['POST'])
@login_required
def favorite_resource(resource_id):
    """Toggles the current user's favorite on a resource."""
    resource = get_resource_or_404(resource_id)
    state = toggle_favorite(db.session, resource, current_user)
    message = 'Added to favorites' if state else 'Removed from favorites'
    return jsonify({'message': message, 'is_favorite': state})


@bp.route('/<resource_id>/is-favorite')
@login_required
def resource_is_favorite(resource_id):
    """Tells whether the current user has favorited a resource."""
    resource = get_resource_or_404(resource_id)
    return jsonify({'is_favorite': is_favorite(db.session, current_user.id, resource.id)})


@bp.route('/favorites/my-favorites')
@login_required
def my_favorites():
    """Approved resources the current user has favorited, most recent first."""
    resources = (Resource.query
                 .join(Favorite, Favorite.resource_id == Resource.id)
                 .filter(Favorite.user_id == current_user.id, Resource.status == STATUS_APPROVED)
                 .order_by(Favorite.created_at.desc())
                 .all())
    return jsonify({'resources': [r.to_dict() for r in resources]})
