"""
Authentication routes blueprint
Handles player login, logout, and session management
"""
from flask import Blueprint, render_template, request, redirect, url_for, flash, jsonify, current_app
from functools import wraps
import secrets

from gatekeeper.extensions import limiter
from gatekeeper.services.session_store import Session

# Create blueprint
auth_bp = Blueprint('auth', __name__)

SESSION_COOKIE = 'session_id'


def _session_store():
    return current_app.extensions['session_store']


def _wants_json_response():
    return request.is_json or request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def get_current_session():
    """Session for the request's cookie, or None when absent or expired"""
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        return None
    return _session_store().get(session_id)


def is_authenticated():
    """Check if user is authenticated"""
    return get_current_session() is not None


def require_authentication(api=False):
    """
    Decorator to require authentication for routes

    The session is passed to the view as the `session` keyword and
    touched on every authenticated request. Unauthenticated API calls get
    401 JSON; pages redirect to the login page.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            session_id = request.cookies.get(SESSION_COOKIE)
            session = _session_store().get(session_id) if session_id else None
            if session is None:
                if api or _wants_json_response():
                    return jsonify({
                        'status': 'error',
                        'error': 'Unauthorized',
                        'message': 'Authentication required'
                    }), 401
                return redirect(url_for('auth.login_page', next=request.path))

            _session_store().touch(session_id)
            return f(*args, session=session, **kwargs)
        return decorated_function
    return decorator


@auth_bp.route('/login')
def login_page():
    """Display login page"""
    if is_authenticated():
        return redirect(url_for('realms.index'))

    return render_template('login.html')


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(lambda: current_app.config.get('LOGIN_RATE_LIMIT', '5 per minute'))
def login():
    """
    Authenticate a player and open a session

    Accepts JSON or form-encoded `username` and `password`.

    Rate Limit: 5 attempts per minute to slow brute force attacks
    """
    if request.is_json:
        payload = request.get_json(silent=True) or {}
    else:
        payload = request.form

    username = payload.get('username', '')
    password = payload.get('password', '')
    if not isinstance(username, str) or not isinstance(password, str):
        username, password = '', ''
    username = username.strip()

    if not username or not password:
        return _login_failure('Username and password are required', 400)

    user = current_app.extensions['auth_service'].authenticate(username, password)
    if user is None:
        current_app.logger.warning(f"Authentication failed for user: {username} from {request.remote_addr}")
        return _login_failure('Invalid username or password', 401)

    # First login starts the journey at the entry realm
    current_app.extensions['progression'].get_state(user.id)

    session_id = secrets.token_urlsafe(32)
    _session_store().set(session_id, Session.new(user.id, user.username))

    current_app.logger.info(f"Successful authentication for user: {user.username}")

    if _wants_json_response():
        response = jsonify({
            'success': True,
            'user': user.to_public_dict(),
            'redirect': url_for('realms.index')
        })
    else:
        next_url = request.args.get('next', '')
        # Only same-site relative paths
        if not next_url.startswith('/') or next_url.startswith('//'):
            next_url = url_for('realms.index')
        response = redirect(next_url)

    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        httponly=True,
        secure=current_app.config.get('SESSION_COOKIE_SECURE', False),
        samesite='Lax'
    )
    return response


def _login_failure(message, status_code):
    if _wants_json_response():
        return jsonify({'success': False, 'error': message}), status_code
    flash(message, 'error')
    return render_template('login.html'), status_code


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    """Handle player logout"""
    session_id = request.cookies.get(SESSION_COOKIE)

    if session_id:
        _session_store().destroy(session_id)
        current_app.logger.info("User logged out successfully")

    if request.method == 'POST' and _wants_json_response():
        response = jsonify({'success': True})
    else:
        response = redirect(url_for('auth.login_page'))
        flash('You have been logged out successfully', 'info')

    response.set_cookie(SESSION_COOKIE, '', expires=0, httponly=True, samesite='Lax')
    return response


@auth_bp.route('/auth/status')
def auth_status():
    """Report whether the caller holds a live session"""
    session = get_current_session()
    if session is None:
        return jsonify({'authenticated': False})

    store = _session_store()
    seconds_remaining = max(0, int((store.ttl - session.idle_for()).total_seconds()))

    return jsonify({
        'authenticated': True,
        'user': {'id': session.user_id, 'username': session.username},
        'inactivity_timeout': int(store.ttl.total_seconds()),
        'seconds_remaining': seconds_remaining
    })


@auth_bp.route('/api/session/heartbeat', methods=['POST'])
def session_heartbeat():
    """
    Refresh session activity.
    Called by the frontend while the player is active.
    """
    session_id = request.cookies.get(SESSION_COOKIE)

    if not session_id:
        return jsonify({'success': False, 'error': 'No session'}), 401

    store = _session_store()
    if store.get(session_id) is None:
        return jsonify({'success': False, 'error': 'Session not found'}), 401

    store.touch(session_id)
    return jsonify({
        'success': True,
        'message': 'Session activity updated',
        'inactivity_timeout': int(store.ttl.total_seconds())
    })
