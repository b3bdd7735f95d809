"""
Audit Logging System for Workflow Operations

Every committed change to a turf, booking, game or join request is written to
instance/logs/audit.log with timestamp, acting user and operation details.

Usage:
    from turfbook.audit import audit_log_create, audit_log_update

    # For new records
    audit_log_create('Booking', booking.id, f'Requested {booking.turf.name}', actor=identity)

    # For status changes
    audit_log_update('Booking', booking.id, 'Approved booking', {'status': 'pending'}, actor=identity)
"""

import logging
import os
from typing import Optional, Dict, Any, Union
from flask import current_app, has_request_context
from flask_login import current_user


# Configure audit logger
def setup_audit_logger():
    """Setup and configure the audit logger with proper formatting and file handling."""
    audit_logger = logging.getLogger('audit')
    audit_logger.setLevel(logging.INFO)

    # Prevent duplicate log entries
    if audit_logger.hasHandlers():
        return audit_logger

    log_dir = os.path.join(current_app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'audit.log')
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(formatter)
    audit_logger.addHandler(file_handler)

    # Prevent propagation to root logger
    audit_logger.propagate = False

    return audit_logger


def get_current_user_info(actor=None) -> str:
    """Describe the acting user for an audit line."""
    if actor is not None:
        return str(actor)
    if has_request_context() and current_user.is_authenticated:
        return f"{current_user.username} (ID: {current_user.id})"
    return "SYSTEM"


def _format_changes(changes: Optional[Dict[str, Any]]) -> str:
    if not changes:
        return ''
    return ' | Changes: ' + ', '.join(f"{field}={old}" for field, old in sorted(changes.items()))


def _write(level: int, message: str):
    # Audit logging should never break a committed workflow
    try:
        setup_audit_logger().log(level, message)
    except Exception as e:
        logging.getLogger(__name__).error(f"AUDIT_FAILURE | {message} | {e}")


def audit_log_create(model_name: str, record_id: Union[int, str], description: str,
                     actor=None):
    """
    Log record creation.

    Args:
        model_name: Name of the model (e.g., 'Turf', 'Booking', 'Game')
        record_id: ID of the created record
        description: Human-readable description of the operation
        actor: Identity that performed the operation, if known
    """
    user_info = get_current_user_info(actor)
    _write(logging.INFO, f"CREATE | {model_name} | ID: {record_id} | User: {user_info} | {description}")


def audit_log_update(model_name: str, record_id: Union[int, str], description: str,
                     changes: Optional[Dict[str, Any]] = None, actor=None):
    """
    Log record updates, including status transitions.

    Args:
        model_name: Name of the model
        record_id: ID of the updated record
        description: Human-readable description of the operation
        changes: Optional dictionary of field changes {'field': 'old_value'}
        actor: Identity that performed the operation, if known
    """
    user_info = get_current_user_info(actor)
    _write(logging.INFO,
           f"UPDATE | {model_name} | ID: {record_id} | User: {user_info} | {description}{_format_changes(changes)}")


def audit_log_bulk_operation(operation: str, model_name: str, count: int, description: str,
                             actor=None):
    """
    Log bulk updates (e.g. auto-rejecting the pending requests of a cancelled game).
    """
    user_info = get_current_user_info(actor)
    _write(logging.INFO, f"{operation} | {model_name} | Count: {count} | User: {user_info} | {description}")


def audit_log_security_event(event_type: str, description: str, actor=None):
    """
    Log security-related events.

    Args:
        event_type: Type of security event ('ACCESS_DENIED')
        description: Human-readable description of the event
        actor: Identity involved, if known
    """
    user_info = get_current_user_info(actor)
    _write(logging.WARNING, f"SECURITY | {event_type} | User: {user_info} | {description}")


def get_model_changes(model_instance, new_values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Detect changes between a model instance and incoming values.

    Returns:
        Dictionary of changed fields with their old values
    """
    changes = {}

    for field, new_value in new_values.items():
        if hasattr(model_instance, field):
            old_value = getattr(model_instance, field)
            if old_value != new_value:
                changes[field] = str(old_value) if old_value is not None else None

    return changes
