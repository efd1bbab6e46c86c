"""
Accounts and sessions: registration, login/logout, profile, and the
role check applied to protected routes.
"""

from functools import wraps

from flask import Blueprint, current_app, jsonify
from flask_login import LoginManager, current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from .exceptions import AuthenticationError, ConflictError, ForbiddenError
from .forms import LoginForm, ProfileForm, RegisterForm, validate_or_raise
from .models import ROLE_STUDENT, User, db

bp = Blueprint('auth', __name__, url_prefix='/api/auth')

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    """Loads the session user for flask-login."""
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    raise AuthenticationError()


def role_required(*roles):
    """Restricts a view to logged-in users holding one of ``roles``."""
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if current_user.role not in roles:
                raise ForbiddenError('You do not have permission to perform this action')
            return view(*args, **kwargs)
        return wrapped
    return decorator


def create_user(email, password, full_name, role=ROLE_STUDENT):
    """Creates an account; emails are stored lower-cased and must be unique."""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise ConflictError('User with this email already exists')
    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        full_name=full_name.strip(),
        role=role
    )
    db.session.add(user)
    db.session.commit()
    return user


@bp.route('/register', methods=['POST'])
def register():
    """Creates a student account and logs it in."""
    form = validate_or_raise(RegisterForm())
    user = create_user(form.email.data, form.password.data, form.full_name.data)
    login_user(user)
    current_app.logger.info('Registered user %s', user.email)
    return jsonify({'message': 'User registered successfully', 'user': user.to_dict()}), 201


@bp.route('/login', methods=['POST'])
def login():
    """Starts a session for valid email/password credentials."""
    form = validate_or_raise(LoginForm())
    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not check_password_hash(user.password_hash, form.password.data):
        raise AuthenticationError('Invalid email or password')
    login_user(user)
    return jsonify({'message': 'Login successful', 'user': user.to_dict()})


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Ends the current session."""
    logout_user()
    return jsonify({'message': 'Logged out'})


@bp.route('/profile', methods=['GET'])
@login_required
def profile():
    """Returns the logged-in user."""
    return jsonify({'user': current_user.to_dict()})


@bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    """Updates the logged-in user's full name."""
    form = validate_or_raise(ProfileForm())
    current_user.full_name = form.full_name.data.strip()
    db.session.commit()
    return jsonify({'message': 'Profile updated successfully', 'user': current_user.to_dict()})
