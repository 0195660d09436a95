import io

from flask import Blueprint, current_app, jsonify, request, send_file

from .errors import ValidationError
from .services.admin import check_bearer
from .services.qr import make_qr_png
from .services.tokens import short_link

bp = Blueprint('admin', __name__)
URL_PREFIX = '/admin'


def _admin():
    return current_app.extensions['tokengate'].admin


@bp.before_app_request
def require_admin():
    # app-wide so unknown /admin paths are refused before routing 404s them
    if not request.path.startswith(URL_PREFIX + '/'):
        return None
    # preflight requests are answered by flask-cors
    if request.method == 'OPTIONS':
        return None
    check_bearer(request.headers.get('Authorization'), current_app.config.get('ADMIN_PASSWORD'))
    return None


@bp.get('/verify')
def verify():
    return jsonify({'valid': True})


@bp.get('/tokens')
def list_tokens():
    return jsonify({'tokens': _admin().list_tokens()})


@bp.post('/tokens')
def create_token():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    token = _admin().create_token(
        data.get('campaign'),
        days=data.get('days'),
        variant=data.get('variant'),
        destination_path=data.get('destinationPath'),
    )
    return jsonify(token), 201


@bp.delete('/tokens/<token_id>')
def revoke_token(token_id: str):
    token = _admin().revoke_token(token_id)
    return jsonify({'token': token['token'], 'revoked': token['revoked']})


@bp.get('/tokens/<token_id>/qr')
def token_qr(token_id: str):
    admin = _admin()
    token = admin.get_token(token_id)
    png = make_qr_png(short_link(admin.short_link_base, token.id))
    return send_file(
        io.BytesIO(png), mimetype='image/png', as_attachment=False,
        download_name=f"qr_{token.id}.png", etag=False,
    )


@bp.get('/events')
def list_events():
    return jsonify({'events': _admin().list_events(request.args.get('token') or None)})
