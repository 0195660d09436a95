import logging

from flask import Blueprint, current_app, jsonify, request

from .services.privacy import client_context

log = logging.getLogger(__name__)

bp = Blueprint('api', __name__)


@bp.get('/validate')
def validate():
    gateway = current_app.extensions['tokengate'].gateway
    try:
        result = gateway.validate(request.args.get('token', ''), client_context())
    except Exception:
        log.exception('validation failed')
        result = {'valid': False, 'error': 'Validation failed'}
    return jsonify(result), 200, {'Cache-Control': 'no-store'}
