# detailquote/auth.py
"""Caller identity for owner routes.

Sign-in happens upstream; the identity provider forwards the authenticated
user as ``X-User-Id`` (and ``X-User-Email``).  We trust those values as given
and only refuse requests that carry none.
"""

from flask import g, request

from detailquote.errors import Unauthorized

USER_ID_HEADER = 'X-User-Id'
USER_EMAIL_HEADER = 'X-User-Email'


def load_caller() -> None:
    """``before_request`` hook: populate ``g.user_id`` / ``g.user_email``."""
    user_id = (request.headers.get(USER_ID_HEADER) or '').strip()
    if not user_id:
        raise Unauthorized()
    g.user_id = user_id
    g.user_email = (request.headers.get(USER_EMAIL_HEADER) or '').strip() or None
