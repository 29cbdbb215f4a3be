"""
Gram routes - feed, posting, editing and deleting grams.
Every action goes through policy.authorize(); store writes happen only
once the decision is ALLOWED and the payload validated.
"""

import logging
import os
import uuid

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    send_from_directory,
    url_for,
)
from flask_login import current_user
from werkzeug.utils import secure_filename

from models import picture_mimetype, validate_gram
from policy import (
    ALLOWED,
    CREATE,
    DESTROY,
    EDIT,
    FORBIDDEN,
    INDEX,
    LOGIN,
    NEW,
    NOT_FOUND,
    ROOT,
    SHOW,
    UNPROCESSABLE,
    UPDATE,
    actor_for,
    authorize,
    resolve,
)

logger = logging.getLogger(__name__)

grams_bp = Blueprint('grams', __name__)


def get_store():
    return current_app.extensions['store']


def find_gram(gram_id):
    """Look up a gram by its URL id. Non-numeric ids are simply not found."""
    try:
        gram_id = int(gram_id)
    except (TypeError, ValueError):
        return None
    return get_store().get_gram_by_id(gram_id)


def _authorize(action, gram_id=None):
    """Resolve the actor, look up the gram (if any) and decide."""
    actor = actor_for(current_user)
    gram = find_gram(gram_id) if gram_id is not None else None
    decision = authorize(action, actor, gram)
    if decision in (FORBIDDEN, NOT_FOUND):
        logger.warning('%s on gram %r denied for %r: %s', action, gram_id, actor, decision)
    return actor, gram, decision


def _follow(outcome):
    """Turn a redirect or error outcome into a response."""
    if outcome.location == LOGIN:
        return current_app.login_manager.unauthorized()
    if outcome.location == ROOT:
        return redirect(url_for('index'))
    abort(outcome.status)


def _picture_name(upload):
    """Sanitised name of an uploaded picture, or None when nothing was sent."""
    if upload is None or not upload.filename:
        return None
    return secure_filename(upload.filename) or 'picture'


def _save_picture(upload):
    """Store an uploaded picture as-is. Returns the stored filename or None."""
    filename = _picture_name(upload)
    if filename is None:
        return None
    stored = f'{uuid.uuid4().hex}_{filename}'
    upload_dir = current_app.config['UPLOAD_DIR']
    os.makedirs(upload_dir, exist_ok=True)
    upload.save(os.path.join(upload_dir, stored))
    return stored


def _remove_picture(stored):
    if not stored:
        return
    path = os.path.join(current_app.config['UPLOAD_DIR'], stored)
    if os.path.exists(path):
        os.remove(path)


@grams_bp.route('/grams')
def index():
    """Feed of all grams, newest first."""
    _, _, decision = _authorize(INDEX)
    outcome = resolve(INDEX, decision)
    grams = get_store().get_all_grams()
    return render_template('grams/index.html', grams=grams), outcome.status


@grams_bp.route('/grams/new')
def new():
    """Display the posting form."""
    _, _, decision = _authorize(NEW)
    outcome = resolve(NEW, decision)
    if decision != ALLOWED:
        return _follow(outcome)
    return render_template('grams/new.html', message='', errors=[]), outcome.status


@grams_bp.route('/grams', methods=['POST'])
def create():
    """
    Post a gram owned by the current user.
    Blank message or non-image picture -> 422 with the form re-rendered, nothing stored.
    """
    actor, _, decision = _authorize(CREATE)
    if decision != ALLOWED:
        return _follow(resolve(CREATE, decision))

    message = request.form.get('message', '')
    upload = request.files.get('picture')
    errors = validate_gram(message, _picture_name(upload))
    outcome = resolve(CREATE, decision, errors)
    if outcome.kind == UNPROCESSABLE:
        return render_template('grams/new.html', message=message, errors=errors), outcome.status

    picture = _save_picture(upload)
    try:
        gram_id = get_store().insert_gram(message, actor.user_id, picture=picture)
    except Exception:
        _remove_picture(picture)
        raise
    logger.info('gram %s created by user %s', gram_id, actor.user_id)
    flash('Gram posted.', 'success')
    return _follow(outcome)


@grams_bp.route('/grams/<gram_id>')
def show(gram_id):
    """Gram detail page. Open to everyone."""
    _, gram, decision = _authorize(SHOW, gram_id)
    outcome = resolve(SHOW, decision)
    if decision != ALLOWED:
        return _follow(outcome)
    return render_template('grams/show.html', gram=gram), outcome.status


@grams_bp.route('/grams/<gram_id>/edit')
def edit(gram_id):
    """Edit form. Owner only."""
    _, gram, decision = _authorize(EDIT, gram_id)
    outcome = resolve(EDIT, decision)
    if decision != ALLOWED:
        return _follow(outcome)
    return render_template('grams/edit.html', gram=gram, message=gram['message'], errors=[]), outcome.status


@grams_bp.route('/grams/<gram_id>', methods=['PATCH', 'PUT'])
def update(gram_id):
    """
    Change a gram's message. Owner only.
    Blank message -> 422, stored gram left untouched.
    """
    actor, gram, decision = _authorize(UPDATE, gram_id)
    if decision != ALLOWED:
        return _follow(resolve(UPDATE, decision))

    message = request.form.get('message', '')
    errors = validate_gram(message)
    outcome = resolve(UPDATE, decision, errors)
    if outcome.kind == UNPROCESSABLE:
        return render_template('grams/edit.html', gram=gram, message=message, errors=errors), outcome.status

    get_store().update_gram_message(gram['id'], message)
    logger.info('gram %s updated by user %s', gram['id'], actor.user_id)
    flash('Gram updated.', 'success')
    return _follow(outcome)


@grams_bp.route('/grams/<gram_id>', methods=['DELETE'])
def destroy(gram_id):
    """Delete a gram and its stored picture. Owner only."""
    actor, gram, decision = _authorize(DESTROY, gram_id)
    outcome = resolve(DESTROY, decision)
    if decision != ALLOWED:
        return _follow(outcome)

    get_store().delete_gram(gram['id'])
    _remove_picture(gram.get('picture'))
    logger.info('gram %s deleted by user %s', gram['id'], actor.user_id)
    flash('Gram deleted.', 'info')
    return _follow(outcome)


@grams_bp.route('/uploads/<path:filename>')
def picture(filename):
    """Serve a stored gram picture. Only image types, never sniffed."""
    mimetype = picture_mimetype(filename)
    if mimetype is None:
        abort(404)
    response = send_from_directory(current_app.config['UPLOAD_DIR'], filename, mimetype=mimetype)
    response.headers['X-Content-Type-Options'] = 'nosniff'
    return response
