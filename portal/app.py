# app.py
import logging
import os
import sys
import tempfile
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_cors import CORS
from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING

from portal.config.database import db_instance
from portal.models.user import User
from portal.routes.auth import auth_bp
from portal.routes.articles import articles_bp
from portal.routes.family import family_bp
from portal.utils.auth_middleware import load_user_from_request, unauthorized_response
from portal.utils.background import BackgroundRunner
from portal.utils.logging_setup import setup_logging

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


def _base_app(default_db_name, default_port):
    """Flask app with the settings both services share"""
    setup_logging()
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'your-secret-key-change-in-production')
    app.config['MONGODB_URI'] = os.getenv('MONGODB_URI', 'mongodb://localhost:27017')
    app.config['MONGODB_DB_NAME'] = os.getenv('MONGODB_DB_NAME', default_db_name)
    app.config['PORT'] = int(os.getenv('PORT', default_port))
    return app


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def file_too_large(error):
        return jsonify({'error': 'File too large'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({'error': 'Internal server error'}), 500

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'}), 200


def create_news_app(config=None):
    """News service: signup, login and per-category articles"""
    app = _base_app('news_portal', 5000)

    app.config['JWT_SECRET'] = os.getenv('JWT_SECRET') or app.config['SECRET_KEY']
    app.config['JWT_EXPIRES_MINUTES'] = int(os.getenv('JWT_EXPIRES_MINUTES', 60))
    app.config['SERPER_API_KEY'] = os.getenv('SERPER_API_KEY')
    app.config['SERPER_URL'] = os.getenv('SERPER_URL', 'https://google.serper.dev/search')
    app.config['SERPER_RESULTS_PER_CATEGORY'] = int(os.getenv('SERPER_RESULTS_PER_CATEGORY', 5))
    app.config['SERPER_TIMEOUT'] = float(os.getenv('SERPER_TIMEOUT', 10))
    app.config['MONGODB_INDEXES'] = [
        ('users', [('email', ASCENDING)], {'unique': True}),
    ]
    if config:
        app.config.update(config)

    # Initialize extensions
    CORS(app)
    db_instance.initialize(app)

    # Bearer tokens only, no session cookies
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user(req):
        return load_user_from_request(req, User.find_by_id)

    login_manager.unauthorized_handler(unauthorized_response)

    app.register_blueprint(auth_bp)
    app.register_blueprint(articles_bp)
    _register_error_handlers(app)

    if not app.config['SERPER_API_KEY']:
        logger.warning("SERPER_API_KEY not set. Article fetches will return nothing.")

    return app


def create_family_app(config=None):
    """Family directory service: admin-gated CRUD with photo upload"""
    app = _base_app('family_directory', 5001)

    app.config['ADMIN_EMAIL'] = os.getenv('ADMIN_EMAIL')
    app.config['ADMIN_PASSWORD'] = os.getenv('ADMIN_PASSWORD')
    app.config['CLOUDINARY_CLOUD_NAME'] = os.getenv('CLOUDINARY_CLOUD_NAME')
    app.config['CLOUDINARY_API_KEY'] = os.getenv('CLOUDINARY_API_KEY')
    app.config['CLOUDINARY_API_SECRET'] = os.getenv('CLOUDINARY_API_SECRET')
    app.config['CLOUDINARY_FOLDER'] = os.getenv('CLOUDINARY_FOLDER', 'family-directory')
    app.config['UPLOAD_FOLDER'] = os.getenv(
        'UPLOAD_FOLDER', os.path.join(tempfile.gettempdir(), 'family-uploads')
    )
    app.config['MAX_CONTENT_LENGTH'] = int(os.getenv('MAX_CONTENT_LENGTH', 16777216))  # 16MB
    app.config['BACKGROUND_WORKERS'] = int(os.getenv('BACKGROUND_WORKERS', 2))
    app.config['BACKGROUND_SYNC'] = _env_bool('BACKGROUND_SYNC')
    app.config['MONGODB_INDEXES'] = [
        ('families', [('created_at', DESCENDING)], {}),
        ('families', [('members._id', ASCENDING)], {}),
    ]
    if config:
        app.config.update(config)

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    CORS(app)
    db_instance.initialize(app)
    BackgroundRunner(app)

    app.register_blueprint(family_bp)
    _register_error_handlers(app)

    if not app.config['ADMIN_EMAIL'] or not app.config['ADMIN_PASSWORD']:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set. Every request will be rejected.")
    if not app.config['CLOUDINARY_CLOUD_NAME']:
        logger.warning("Cloudinary not configured. Family photos will not be uploaded.")

    return app


SERVICES = {
    'news': create_news_app,
    'family': create_family_app,
}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    service = argv[0] if argv else os.getenv('PORTAL_SERVICE', 'news')
    if service not in SERVICES:
        print(f"Unknown service {service!r}, expected one of: {', '.join(SERVICES)}")
        return 2

    app = SERVICES[service]()
    logger.info("Starting %s service on port %s", service, app.config['PORT'])
    app.run(
        host='0.0.0.0',
        port=app.config['PORT'],
        debug=os.getenv('FLASK_ENV') == 'development'
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
