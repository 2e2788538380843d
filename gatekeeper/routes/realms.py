"""
Realm routes blueprint
Realm catalogue, realm gating and flag submission
"""
from flask import Blueprint, render_template, request, jsonify, current_app, abort

from gatekeeper.extensions import limiter
from gatekeeper.error_handlers import RealmLockedException, handle_errors
from gatekeeper.realms import get_realm, realms_sorted
from gatekeeper.services.flag_service import parse_flag
from gatekeeper.routes.auth import require_authentication

realms_bp = Blueprint('realms', __name__)


def _tracker():
    return current_app.extensions['progression']


def _metrics():
    return current_app.extensions['metrics']


def _realm_listing(user_id):
    unlocked = set(_tracker().unlocked_realms(user_id))
    return [realm.to_dict(locked=realm.name not in unlocked) for realm in realms_sorted()]


def _authorize_realm(name, user_id):
    """Return the realm if `user_id` may enter it, else raise RealmLockedException"""
    realm = get_realm(name)
    granted = realm is not None and _tracker().is_unlocked(user_id, realm.name)
    _metrics().record_realm_access(name, granted)
    if not granted:
        raise RealmLockedException(name, user_id=user_id)
    return realm


@realms_bp.route('/')
@require_authentication()
def index(session):
    """Journey overview page"""
    state = _tracker().get_state(session.user_id)
    return render_template(
        'index.html',
        realms=_realm_listing(session.user_id),
        state=state.to_dict(),
        username=session.username
    )


@realms_bp.route('/realms')
@require_authentication(api=True)
@handle_errors
def list_realms(session):
    """
    Realm catalogue with the caller's lock state

    Returns:
        {realms: [...]} ordered from Niflheim (10) to Asgard (1)
    """
    return jsonify({'realms': _realm_listing(session.user_id)})


@realms_bp.route('/api/progression')
@require_authentication(api=True)
@handle_errors
def progression_status(session):
    """Caller's progression state"""
    return jsonify(_tracker().get_state(session.user_id).to_dict())


@realms_bp.route('/realm/<name>/')
@require_authentication()
def realm_page(name, session):
    """Entry page of an unlocked realm; locked and unknown realms get the same 403"""
    realm = _authorize_realm(name, session.user_id)
    proxy = current_app.extensions.get('realm_proxy')
    if proxy is not None:
        return proxy.forward(realm, '', request)

    return render_template('realm.html', realm=realm.to_dict(locked=False))


@realms_bp.route('/realm/<name>/<path:path>', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
@require_authentication()
def proxy(name, path, session):
    """Forward a request to the realm's internal service"""
    realm = _authorize_realm(name, session.user_id)
    realm_proxy = current_app.extensions.get('realm_proxy')
    if realm_proxy is None:
        abort(404)

    return realm_proxy.forward(realm, path, request)


@realms_bp.route('/submit-flag', methods=['POST'])
@limiter.limit(lambda: current_app.config.get('SUBMIT_FLAG_RATE_LIMIT', '10 per minute'))
@require_authentication(api=True)
@handle_errors
def submit_flag(session):
    """
    Submit a captured flag

    Body: {"flag": "YGGDRASIL{REALM:uuid}"} (JSON or form)

    Returns:
        {status, message, realm?, unlocked?, completed?} with the
        submission's status code
    """
    if request.is_json:
        payload = request.get_json(silent=True) or {}
    else:
        payload = request.form

    flag = payload.get('flag')
    if not flag or not isinstance(flag, str):
        _metrics().record_submission('invalid')
        return jsonify({'status': 'invalid', 'message': 'Flag is required'}), 400

    result = _tracker().submit_flag(session.user_id, flag)
    parsed = parse_flag(flag)
    _metrics().record_submission(result.status, parsed.realm if parsed else None)
    current_app.logger.info(
        f"Flag submission: user={session.user_id} status={result.status} "
        f"code={result.status_code} ip={request.remote_addr}"
    )
    return jsonify(result.to_dict()), result.status_code
