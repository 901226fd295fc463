from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf
from marketplace.data.core.user import User
from marketplace import limiter, login_manager
from marketplace.logger import get_logger

logger = get_logger("marketplace.auth")
auth = Blueprint('auth', __name__)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': {'kind': 'Unauthorized', 'message': 'Login required', 'retryable': False}}), 401


def _error(message, status):
    return jsonify({'error': {'kind': 'Unauthorized' if status == 401 else 'InvalidRequest',
                              'message': message, 'retryable': False}}), status


@auth.route('/csrf-token', methods=['GET'])
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})


@auth.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    if current_user.is_authenticated:
        logger.debug(f"User {current_user.email} already authenticated")
        return jsonify({'user': current_user.to_dict()})

    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    logger.debug(f"Login attempt for email: {email}")

    if not email or not password:
        logger.warning(f"Login attempt with missing credentials for email: {email}")
        return _error('Please enter both email and password', 400)

    user = User.query.filter_by(email=email).first()

    if user is None or not user.check_password(password):
        logger.warning(f"Failed login attempt for email: {email}")
        return _error('Invalid email or password', 401)

    if not user.is_active:
        logger.warning(f"Login attempt for disabled account: {email}")
        return _error('Account is disabled', 401)

    login_user(user)
    logger.info(f"Successful login for user: {email}")
    return jsonify({'user': user.to_dict()})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    email = current_user.email
    logout_user()
    logger.info(f"User logged out: {email}")
    return jsonify({'message': 'You have been logged out'})


@auth.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
