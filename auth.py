"""
Authentication module - signup, login, logout.
Uses Flask-Login and Werkzeug for password hashing.
"""

import logging
from urllib.parse import urlsplit

from flask import Blueprint, current_app, request, render_template, redirect, url_for, flash
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import generate_password_hash, check_password_hash

from models import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def get_store():
    return current_app.extensions['store']


def is_safe_next(target):
    """Only follow relative, same-site redirect targets."""
    if not target:
        return False
    parts = urlsplit(target)
    return not parts.scheme and not parts.netloc and target.startswith('/')


@auth_bp.route('/signup', methods=['GET'])
def signup_page():
    """Display signup form."""
    if current_user.is_authenticated:
        return redirect(url_for('index'))
    return render_template('signup.html')


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """
    Create new user account.
    Validates username/email uniqueness, hashes password.
    """
    if current_user.is_authenticated:
        return redirect(url_for('index'))

    store = get_store()
    username = request.form.get('username', '').strip()
    email = request.form.get('email', '').strip()
    password = request.form.get('password', '')
    confirm = request.form.get('confirm_password', '')

    # Validation
    if not username or not email or not password:
        flash('All fields are required.', 'danger')
        return render_template('signup.html'), 422

    if len(username) < 3:
        flash('Username must be at least 3 characters.', 'danger')
        return render_template('signup.html'), 422

    if password != confirm:
        flash('Passwords do not match.', 'danger')
        return render_template('signup.html'), 422

    if len(password) < 6:
        flash('Password must be at least 6 characters.', 'danger')
        return render_template('signup.html'), 422

    if store.get_user_by_username(username):
        flash('Username already taken.', 'danger')
        return render_template('signup.html'), 422

    if store.get_user_by_email(email):
        flash('Email already registered.', 'danger')
        return render_template('signup.html'), 422

    password_hash = generate_password_hash(password, method='scrypt')
    user_id = store.create_user(username, email, password_hash)
    logger.info('user %s signed up as %s', user_id, username)
    flash('Account created successfully. Please log in.', 'success')
    return redirect(url_for('auth.login'))


@auth_bp.route('/login', methods=['GET'])
def login_page():
    """Display login form."""
    if current_user.is_authenticated:
        return redirect(url_for('index'))
    return render_template('login.html')


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Authenticate user.
    Checks password hash, creates session via Flask-Login.
    """
    if current_user.is_authenticated:
        return redirect(url_for('index'))

    username = request.form.get('username', '').strip()
    password = request.form.get('password', '')

    if not username or not password:
        flash('Username and password required.', 'danger')
        return render_template('login.html'), 401

    user_row = get_store().get_user_by_username(username)
    if not user_row or not check_password_hash(user_row['password_hash'], password):
        logger.warning('failed login for %r', username)
        flash('Invalid username or password.', 'danger')
        return render_template('login.html'), 401

    user = User.from_row(user_row)
    login_user(user, remember=bool(request.form.get('remember')))
    flash(f'Welcome back, {user.username}!', 'success')
    next_page = request.args.get('next')
    if not is_safe_next(next_page):
        next_page = url_for('index')
    return redirect(next_page)


@auth_bp.route('/logout')
@login_required
def logout():
    """Log out current user."""
    logout_user()
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))
