"""
User model for Flask-Login, and gram payload validation.
"""

from flask_login import UserMixin


class User(UserMixin):
    """
    User model compatible with Flask-Login.
    Built from a store row.
    """

    def __init__(self, user_id, username, email):
        self.id = user_id
        self.username = username
        self.email = email

    @classmethod
    def from_row(cls, row):
        return cls(user_id=row['id'], username=row['username'], email=row['email'])

    @staticmethod
    def get(user_id, store):
        """
        Load user from the store by ID.
        Returns User instance or None.
        """
        if user_id is None:
            return None
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        row = store.get_user_by_id(user_id)
        if not row:
            return None
        return User.from_row(row)


# Pictures are served back from our own origin; only image types are accepted
PICTURE_MIMETYPES = {
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'gif': 'image/gif',
    'webp': 'image/webp',
}


def picture_mimetype(filename):
    """Image mimetype for an allowed picture filename, else None."""
    if not filename or '.' not in filename:
        return None
    return PICTURE_MIMETYPES.get(filename.rsplit('.', 1)[1].lower())


def validate_gram(message, picture_filename=None):
    """
    Return a list of validation errors for a gram; empty when valid.
    picture_filename is the uploaded file's name, if any.
    """
    errors = []
    if not message or not message.strip():
        errors.append("Message can't be blank")
    if picture_filename and picture_mimetype(picture_filename) is None:
        errors.append('Picture must be a PNG, JPEG, GIF or WebP image')
    return errors
