"""
Hotfix operations.

Creation resolves the parent release through the releases lookup and fails
with NotFound when it is gone. Listing by release does not: hotfixes of a
deleted release stay retrievable by its id.
"""
import logging
from rest_framework.exceptions import NotFound, ValidationError
from shipdeck.core.utils import create_audit_log, diff_fields, resolve_caller
from shipdeck.releases.services import get_release_or_404
from .models import Hotfix
from .serializers import HotfixWriteSerializer

logger = logging.getLogger('shipdeck.hotfixes')

MODEL_NAME = 'Hotfix'


def get_hotfix_or_404(hotfix_id):
    try:
        return Hotfix.objects.select_related('created_by').get(pk=hotfix_id)
    except (Hotfix.DoesNotExist, ValueError, TypeError, OverflowError):
        logger.warning(f"Hotfix {hotfix_id} not found")
        raise NotFound(f'Hotfix {hotfix_id} not found')


def create_hotfix(data, caller, release_id):
    """Create a hotfix under an existing release"""
    release = get_release_or_404(release_id)
    serializer = HotfixWriteSerializer(data=data)
    if not serializer.is_valid():
        logger.warning(f"Hotfix creation validation failed for release {release_id}: {serializer.errors}")
        raise ValidationError(serializer.errors)

    user = resolve_caller(caller)
    hotfix = serializer.save(release=release, created_by=user, updated_by=user)
    logger.info(f"Hotfix {hotfix.id} '{hotfix.title}' created for release {release.id}")
    create_audit_log(
        user=user, action='create', model_name=MODEL_NAME, object_id=hotfix.id,
        object_name=hotfix.title, changes={'release_id': release.id, **serializer.validated_data},
    )
    return hotfix


def find_all_hotfixes():
    return Hotfix.objects.select_related('created_by').order_by('id')


def find_hotfixes_by_release(release_id):
    """Hotfixes recorded against release_id, whether or not the release still exists"""
    return Hotfix.objects.filter(release_id=release_id).select_related('created_by').order_by('id')


def find_hotfix_by_id(hotfix_id):
    return get_hotfix_or_404(hotfix_id)


def update_hotfix(hotfix_id, data, caller):
    """Partial update of title, description and payload"""
    hotfix = get_hotfix_or_404(hotfix_id)
    serializer = HotfixWriteSerializer(hotfix, data=data, partial=True)
    if not serializer.is_valid():
        logger.warning(f"Hotfix {hotfix_id} update validation failed: {serializer.errors}")
        raise ValidationError(serializer.errors)

    user = resolve_caller(caller)
    changes = diff_fields(hotfix, serializer.validated_data)
    hotfix = serializer.save(updated_by=user)
    logger.info(f"Hotfix {hotfix.id} updated ({', '.join(changes) or 'no changes'})")
    create_audit_log(
        user=user, action='update', model_name=MODEL_NAME, object_id=hotfix.id,
        object_name=hotfix.title, changes=changes,
    )
    return hotfix


def delete_hotfix(hotfix_id, caller):
    hotfix = get_hotfix_or_404(hotfix_id)
    object_id, object_name = hotfix.id, hotfix.title
    hotfix.delete()
    logger.info(f"Hotfix {object_id} '{object_name}' deleted")
    create_audit_log(
        user=resolve_caller(caller), action='delete', model_name=MODEL_NAME,
        object_id=object_id, object_name=object_name,
    )
