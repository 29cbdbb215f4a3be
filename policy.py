"""
Authorization and outcome resolution for gram actions.

Pure functions: the actor and the looked-up gram are passed in, nothing is
read from the session or the database here. Guards run in a fixed order:
authentication, then existence, then ownership.
"""

INDEX = 'index'
NEW = 'new'
CREATE = 'create'
SHOW = 'show'
EDIT = 'edit'
UPDATE = 'update'
DESTROY = 'destroy'

ACTIONS = (INDEX, NEW, CREATE, SHOW, EDIT, UPDATE, DESTROY)

AUTHENTICATED_ACTIONS = frozenset([NEW, CREATE, EDIT, UPDATE, DESTROY])
LOOKUP_ACTIONS = frozenset([SHOW, EDIT, UPDATE, DESTROY])
OWNER_ACTIONS = frozenset([EDIT, UPDATE, DESTROY])

# Decisions
ALLOWED = 'allowed'
UNAUTHENTICATED = 'unauthenticated'
NOT_FOUND = 'not_found'
FORBIDDEN = 'forbidden'

# Outcome kinds
OK = 'ok'
REDIRECT = 'redirect'
UNPROCESSABLE = 'unprocessable'

# Redirect targets
ROOT = 'root'
LOGIN = 'login'


class Anonymous:
    """Actor with no signed-in user."""

    is_authenticated = False
    user_id = None

    def __eq__(self, other):
        return isinstance(other, Anonymous)

    def __hash__(self):
        return hash(Anonymous)

    def __repr__(self):
        return 'Anonymous()'


class Authenticated:
    """Actor backed by a signed-in user."""

    is_authenticated = True

    def __init__(self, user_id):
        self.user_id = user_id

    def __eq__(self, other):
        return isinstance(other, Authenticated) and other.user_id == self.user_id

    def __hash__(self):
        return hash((Authenticated, self.user_id))

    def __repr__(self):
        return f'Authenticated({self.user_id!r})'


ANONYMOUS = Anonymous()


class Outcome:
    """
    Resolved result of an action.
    kind: OK | REDIRECT | FORBIDDEN | NOT_FOUND | UNPROCESSABLE
    location: ROOT | LOGIN for redirects, else None
    """

    def __init__(self, kind, status, location=None):
        self.kind = kind
        self.status = status
        self.location = location

    def __eq__(self, other):
        return (
            isinstance(other, Outcome)
            and (self.kind, self.status, self.location) == (other.kind, other.status, other.location)
        )

    def __hash__(self):
        return hash((self.kind, self.status, self.location))

    def __repr__(self):
        return f'Outcome({self.kind!r}, {self.status!r}, location={self.location!r})'


RENDERED = Outcome(OK, 200)
TO_ROOT = Outcome(REDIRECT, 302, ROOT)
TO_LOGIN = Outcome(REDIRECT, 302, LOGIN)
DENIED = Outcome(FORBIDDEN, 403)
MISSING = Outcome(NOT_FOUND, 404)
INVALID = Outcome(UNPROCESSABLE, 422)

SUCCESS_OUTCOMES = {
    INDEX: RENDERED,
    NEW: RENDERED,
    CREATE: TO_ROOT,
    SHOW: RENDERED,
    EDIT: RENDERED,
    UPDATE: TO_ROOT,
    DESTROY: TO_ROOT,
}

FAILURE_OUTCOMES = {
    UNAUTHENTICATED: TO_LOGIN,
    FORBIDDEN: DENIED,
    NOT_FOUND: MISSING,
}


def actor_for(user):
    """Build an Actor from a Flask-Login user (or AnonymousUserMixin)."""
    if user is None or not user.is_authenticated:
        return ANONYMOUS
    return Authenticated(user.id)


def authorize(action, actor, gram=None):
    """
    Decide whether actor may perform action on gram.
    gram is the store row (dict) or None when the lookup found nothing.
    """
    if action not in ACTIONS:
        raise ValueError(f'Unknown action: {action!r}')

    if action in AUTHENTICATED_ACTIONS and not actor.is_authenticated:
        return UNAUTHENTICATED

    if action in LOOKUP_ACTIONS and gram is None:
        return NOT_FOUND

    if action in OWNER_ACTIONS and gram['user_id'] != actor.user_id:
        return FORBIDDEN

    return ALLOWED


def resolve(action, decision, errors=()):
    """Map a decision, plus any validation errors, to an Outcome."""
    if decision != ALLOWED:
        return FAILURE_OUTCOMES[decision]
    if errors:
        return INVALID
    return SUCCESS_OUTCOMES[action]


def decide(action, actor, gram=None, errors=()):
    return resolve(action, authorize(action, actor, gram), errors)
