"""Utility functions for audit logging"""
import logging

from .models import AuditLog

logger = logging.getLogger('backend.core')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def actor_name(user):
    """Username used in audit columns; 'system' for background work."""
    if user is not None and getattr(user, 'is_authenticated', False):
        return user.username
    return 'system'


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, recipe_deploy, transaction_void, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., receipt number)

    Never raises; a failed write is logged and None is returned.
    """
    if not action or not model_name or object_id in (None, ''):
        logger.warning(
            f"Audit log creation skipped: missing required fields "
            f"(action={action}, model_name={model_name}, object_id={object_id})"
        )
        return None

    audit_user = user
    if audit_user is None and request is not None:
        audit_user = getattr(request, 'user', None)

    try:
        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


ADMIN_GROUPS = ['Admin', 'Owner']
MANAGER_GROUPS = ADMIN_GROUPS + ['Manager']


def is_admin_user(user):
    """Superuser/staff or member of an administrative group"""
    if not user or not user.is_authenticated:
        return False
    return bool(
        user.is_superuser or user.is_staff or
        user.groups.filter(name__in=ADMIN_GROUPS).exists()
    )


def is_manager_user(user):
    if is_admin_user(user):
        return True
    return user.is_authenticated and user.groups.filter(name__in=MANAGER_GROUPS).exists()


def is_commissary_user(user):
    if is_manager_user(user):
        return True
    return user.is_authenticated and user.groups.filter(name='Commissary').exists()


def is_cashier_user(user):
    if is_manager_user(user):
        return True
    return user.is_authenticated and user.groups.filter(name='Cashier').exists()
