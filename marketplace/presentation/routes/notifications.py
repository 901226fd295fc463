"""
Notification routes
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required

from marketplace.buisness.notifications.notifier import mark_read
from marketplace.presentation.routes.helpers import current_actor
from marketplace.services.notification_service import NotificationService

bp = Blueprint('notifications', __name__)


@bp.route('', methods=['GET'])
@login_required
def list_notifications():
    actor = current_actor()
    unread_only = request.args.get('unread', '').lower() in ('1', 'true', 'yes')
    notifications = NotificationService.for_user(actor.id, unread_only=unread_only)
    return jsonify({
        'notifications': [notification.to_dict() for notification in notifications],
        'unread_count': NotificationService.unread_count(actor.id),
    })


@bp.route('/<int:notification_id>/read', methods=['POST'])
@login_required
def read_notification(notification_id):
    updated = mark_read(current_actor(), notification_id)
    return jsonify({'updated': updated})


@bp.route('/read-all', methods=['POST'])
@login_required
def read_all_notifications():
    updated = mark_read(current_actor())
    return jsonify({'updated': updated})
