"""
Star ratings and reviews. Each user has at most one rating per resource;
resubmitting updates it. The resource's average_rating/rating_count are
recomputed in the same transaction as the rating write.
"""

from flask import Blueprint, jsonify
from flask_login import current_user, login_required
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from .exceptions import ConflictError, InvalidRating, NotApproved, SelfRatingForbidden, ValidationError
from .forms import RatingForm, first_error
from .helpers import clean_text
from .models import STATUS_APPROVED, Rating, Resource, db
from .notifications import notify
from .resources import get_resource_or_404

bp = Blueprint('ratings', __name__, url_prefix='/api/resources')


def refresh_rating_aggregate(session, resource):
    """Recomputes average_rating and rating_count from the rating rows."""
    average, count = session.execute(
        select(func.avg(Rating.rating), func.count(Rating.id)).where(Rating.resource_id == resource.id)
    ).one()
    resource.average_rating = round(float(average or 0), 2)
    resource.rating_count = count


def submit_rating(session, resource, user, value, review=None):
    """Creates or updates ``user``'s rating of ``resource`` and notifies the uploader."""
    if resource.status != STATUS_APPROVED:
        raise NotApproved()
    if resource.uploaded_by == user.id:
        raise SelfRatingForbidden()
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise InvalidRating()

    # Lock the resource row so concurrent raters recompute the aggregate one at a time.
    session.execute(select(Resource.id).where(Resource.id == resource.id).with_for_update())
    rating = session.scalar(select(Rating).filter_by(user_id=user.id, resource_id=resource.id))
    if rating:
        rating.rating = value
        rating.review = review
    else:
        rating = Rating(resource_id=resource.id, user_id=user.id, rating=value, review=review)
        session.add(rating)
    try:
        session.flush()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError('You have already rated this resource') from e
    refresh_rating_aggregate(session, resource)

    stars = f'{value} star' + ('' if value == 1 else 's')
    if review:
        notify(session, resource.uploaded_by, 'rating', f'New Review on "{resource.title}"',
               f'{user.full_name} rated your resource {stars} and wrote: {review}', resource.id)
    else:
        notify(session, resource.uploaded_by, 'rating', f'New Rating on "{resource.title}"',
               f'{user.full_name} rated your resource {stars}.', resource.id)
    session.commit()
    return rating


@bp.route('/<resource_id>/rate', methods=['POST'])
@login_required
def rate_resource(resource_id):
    """Creates or updates the current user's rating of an approved resource."""
    resource = get_resource_or_404(resource_id)
    if resource.status != STATUS_APPROVED:
        raise NotApproved()
    if resource.uploaded_by == current_user.id:
        raise SelfRatingForbidden()
    form = RatingForm()
    if not form.validate():
        if form.rating.errors:
            raise InvalidRating()
        raise ValidationError(first_error(form))
    rating = submit_rating(db.session, resource, current_user, form.rating.data, clean_text(form.review.data))
    return jsonify({
        'message': 'Rating submitted successfully',
        'rating': rating.to_dict(),
        'average_rating': float(resource.average_rating),
        'rating_count': resource.rating_count,
    })


@bp.route('/<resource_id>/ratings')
@login_required
def resource_ratings(resource_id):
    """All ratings of a resource, most recently updated first."""
    resource = get_resource_or_404(resource_id)
    ratings = Rating.query.filter_by(resource_id=resource.id).order_by(Rating.updated_at.desc()).all()
    return jsonify({'ratings': [r.to_dict() for r in ratings]})


@bp.route('/<resource_id>/my-rating')
@login_required
def my_rating(resource_id):
    """The current user's rating of a resource, or null."""
    resource = get_resource_or_404(resource_id)
    rating = Rating.query.filter_by(resource_id=resource.id, user_id=current_user.id).first()
    return jsonify({'rating': rating.to_dict() if rating else None})
