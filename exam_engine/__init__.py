"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask, jsonify

from exam_engine.config import get_config
from exam_engine.errors import ExamError
from exam_engine.extensions import db
from exam_engine.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def render_exam_error(error):
    """Typed engine errors become {code, message, data} JSON bodies"""
    return jsonify(error.to_dict()), error.status


def create_app(config_name=None, overrides=None):
    """
    Application factory pattern
    Creates and configures Flask app
    """
    app = Flask(__name__)

    # Load configuration
    if config_name:
        from exam_engine.config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)

    app.register_error_handler(ExamError, render_exam_error)

    # Register blueprints
    from exam_engine.routes import attempts_bp, public_bp

    app.register_blueprint(attempts_bp)
    app.register_blueprint(public_bp)

    # Create database tables
    with app.app_context():
        from exam_engine import models  # noqa: F401
        db.create_all()
        logger.info('Database tables created/verified')

    return app
