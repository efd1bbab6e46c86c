from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from .config import Config
from .log_config import configure_logging
from .models import db

migrate = Migrate()


def create_app(config_object=Config, **overrides):
    """Application factory; ``overrides`` are applied on top of the config object."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)
    configure_logging(app.config['LOG_LEVEL'])

    db.init_app(app)
    migrate.init_app(app, db)

    from .auth import login_manager
    login_manager.init_app(app)

    CORS(app, resources={r'/api/*': {'origins': [app.config['FRONTEND_URL']]}}, supports_credentials=True)

    from .storage import init_storage
    init_storage(app)

    from .exceptions import register_error_handlers
    register_error_handlers(app, db)

    from . import auth, favorites, notifications, ratings, resources, tags
    app.register_blueprint(auth.bp)
    app.register_blueprint(notifications.bp)
    app.register_blueprint(favorites.bp)
    app.register_blueprint(ratings.bp)
    app.register_blueprint(tags.bp)
    app.register_blueprint(resources.bp)

    from .cli import register_commands
    register_commands(app)

    @app.route('/')
    def index():
        return jsonify({'message': 'College Resource Portal API'})

    return app
