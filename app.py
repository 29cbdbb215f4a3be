"""
Gramwall - share short messages with pictures.
Flask application with auth and owner-only editing of grams.
"""

import logging
from urllib.parse import parse_qs

from flask import Flask, current_app, render_template
from flask_login import LoginManager

import db
from config import SECRET_KEY, MAX_CONTENT_LENGTH, UPLOAD_DIR
from logging_setup import configure_logging
from models import User
from auth import auth_bp
from grams import grams_bp, index as grams_index

logger = logging.getLogger(__name__)

# Flask-Login
login_manager = LoginManager()
login_manager.login_view = 'auth.login'
login_manager.login_message = 'Please log in to access this page.'
login_manager.login_message_category = 'warning'


class MethodOverrideMiddleware:
    """
    Let HTML forms send PATCH/PUT/DELETE as POST with ?_method=...
    """

    allowed_methods = frozenset(['PATCH', 'PUT', 'DELETE'])

    def __init__(self, wsgi_app):
        self.wsgi_app = wsgi_app

    def __call__(self, environ, start_response):
        if environ.get('REQUEST_METHOD') == 'POST':
            args = parse_qs(environ.get('QUERY_STRING', ''))
            method = args.get('_method', [''])[0].upper()
            if method in self.allowed_methods:
                environ['REQUEST_METHOD'] = method
        return self.wsgi_app(environ, start_response)


@login_manager.user_loader
def load_user(user_id):
    return User.get(user_id, current_app.extensions['store'])


def forbidden(e):
    """403 Forbidden - signed-in user does not own the gram."""
    return render_template('errors/403.html'), 403


def not_found(e):
    """404 Not Found - gram or page missing."""
    return render_template('errors/404.html'), 404


def create_app(store=None, config=None):
    """
    Build the Flask app.
    store: object exposing the db module's functions (defaults to db itself).
    config: Flask config overrides, e.g. for tests.
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    app.config['UPLOAD_DIR'] = UPLOAD_DIR
    if config:
        app.config.update(config)

    if not app.config.get('TESTING'):
        configure_logging()

    app.extensions['store'] = store if store is not None else db
    login_manager.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(grams_bp)
    # Root is the feed
    app.add_url_rule('/', endpoint='index', view_func=grams_index)

    app.register_error_handler(403, forbidden)
    app.register_error_handler(404, not_found)

    app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)
    return app


app = create_app()


def main():
    """Initialize and run Flask app."""
    configure_logging()
    db.init_database()
    logger.info('Gramwall running at http://127.0.0.1:5000')
    app.run(debug=True, host='0.0.0.0', port=5000)


if __name__ == '__main__':
    main()
