from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import logging
from logging.handlers import RotatingFileHandler
import os

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login = LoginManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name='development', clock=None):
    """Application factory function"""
    app = Flask(__name__)

    # Load configuration
    from config import config
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login.init_app(app)
    limiter.init_app(app)

    # Clock used by every workflow; tests swap in a FixedClock
    from turfbook.clock import SystemClock
    app.extensions['turfbook.clock'] = clock or SystemClock()

    # Configure logging
    configure_logging(app)

    # Register login hooks
    register_login_handlers(app)

    # Register blueprints/routes
    register_routes(app)

    return app


def configure_logging(app):
    """Configure logging for the application"""
    # Ensure instance/logs directory exists
    logs_dir = os.path.join(app.instance_path, 'logs')
    if not os.path.exists(logs_dir):
        os.makedirs(logs_dir)

    # Always log to file (even in debug mode)
    app_log_path = os.path.join(logs_dir, 'app.log')
    file_handler = RotatingFileHandler(app_log_path, maxBytes=10240, backupCount=10)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'))
    file_handler.setLevel(logging.INFO)
    app.logger.addHandler(file_handler)

    # Set appropriate log level
    if app.debug:
        app.logger.setLevel(logging.DEBUG)
    else:
        app.logger.setLevel(logging.INFO)

    app.logger.info('Turfbook application startup')


def register_login_handlers(app):
    """Answer unauthenticated API calls with JSON instead of a login redirect"""

    @login.unauthorized_handler
    def unauthorized():
        return jsonify({
            'success': False,
            'error': 'Authentication required'
        }), 401


def register_routes(app):
    """Register application routes via blueprints"""
    from turfbook.turfs import bp as turfs_bp
    from turfbook.bookings import bp as bookings_bp
    from turfbook.games import bp as games_bp
    from turfbook.dashboard import bp as dashboard_bp

    app.register_blueprint(turfs_bp, url_prefix='/api/v1/turfs')
    app.register_blueprint(bookings_bp, url_prefix='/api/v1/bookings')
    app.register_blueprint(games_bp, url_prefix='/api/v1/games')
    app.register_blueprint(dashboard_bp, url_prefix='/api/v1/dashboard')

    # Register error handlers
    from turfbook.errors import register_error_handlers
    register_error_handlers(app)

    # Import models to ensure they're loaded
    from turfbook import models
