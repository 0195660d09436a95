import logging

from flask import Blueprint, current_app, redirect

from .services.access import NO_CACHE_HEADERS
from .services.privacy import client_context

log = logging.getLogger(__name__)

bp = Blueprint('public', __name__)


@bp.get('/<token_id>')
def open_link(token_id: str):
    gateway = current_app.extensions['tokengate'].gateway
    try:
        target = gateway.redirect(token_id, client_context())
    except Exception:
        log.exception('redirect failed for %s', token_id)
        target = gateway.expired_url
    resp = redirect(target, code=302)
    resp.headers.update(NO_CACHE_HEADERS)
    return resp
