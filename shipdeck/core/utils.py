"""Utility functions for audit logging"""
import logging

from .models import AuditLog

logger = logging.getLogger('shipdeck.core')


def resolve_caller(caller):
    """Return the caller as a storable user reference, or None when anonymous"""
    if caller is not None and getattr(caller, 'is_authenticated', False):
        return caller
    return None


def serialize_change(value):
    """Make a field value JSON-safe for the audit log"""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [serialize_change(item) for item in value]
    if isinstance(value, dict):
        return {str(key): serialize_change(item) for key, item in value.items()}
    return str(value)


def diff_fields(instance, data):
    """
    Return {field: {'old': ..., 'new': ...}} for every key in data whose value
    differs from the instance's current attribute.
    """
    changes = {}
    for field, new_value in data.items():
        old_value = getattr(instance, field, None)
        if old_value != new_value:
            changes[field] = {'old': serialize_change(old_value), 'new': serialize_change(new_value)}
    return changes


def create_audit_log(user=None, action=None, model_name=None, object_id=None,
                     changes=None, object_name=None):
    """
    Create an audit log entry

    Args:
        user: The caller performing the action (anonymous users are stored as null)
        action: Action type (create, update, delete, qa_status_change, deploy)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        object_name: Human-readable name of the object (e.g., release name)
    """
    if not action or not model_name or object_id is None:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    try:
        return AuditLog.objects.create(
            user=resolve_caller(user),
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            changes=serialize_change(changes or {}),
        )
    except Exception as e:
        # Audit failures never fail the main operation
        logger.error(f"Failed to create audit log: {str(e)}", exc_info=True)
        return None
