"""
Release lifecycle operations.

Every write takes the caller explicitly instead of reading it from the
request. QA status is a flat field: any of the four values may be written
at any time and the last write wins. Deploy is allowed from any QA status
unless settings.REQUIRE_QA_APPROVAL_FOR_DEPLOY is enabled; deploying an
already-deployed release is a no-op that keeps the original deploy stamp.
"""
import logging
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError
from shipdeck.core.utils import create_audit_log, diff_fields, resolve_caller
from .filters import ReleaseFilter
from .models import Release
from .serializers import ReleaseCreateSerializer, ReleaseUpdateSerializer, QAStatusSerializer

logger = logging.getLogger('shipdeck.releases')

MODEL_NAME = 'Release'


class ReleaseNotApproved(ValidationError):
    error_code = 'RELEASE_NOT_APPROVED'
    default_detail = 'Release must be QA approved before it can be deployed.'
    default_code = 'release_not_approved'


def get_release_or_404(release_id, for_update=False):
    """Single existence lookup for every operation that resolves a release reference"""
    if for_update:
        queryset = Release.objects.select_for_update()
    else:
        queryset = Release.objects.select_related('created_by', 'deployed_by')
    try:
        return queryset.get(pk=release_id)
    except (Release.DoesNotExist, ValueError, TypeError, OverflowError):
        logger.warning(f"Release {release_id} not found")
        raise NotFound(f'Release {release_id} not found')


def create_release(data, caller):
    """Create a release in pending QA, not deployed"""
    serializer = ReleaseCreateSerializer(data=data)
    if not serializer.is_valid():
        logger.warning(f"Release creation validation failed: {serializer.errors}")
        raise ValidationError(serializer.errors)

    user = resolve_caller(caller)
    release = serializer.save(created_by=user, updated_by=user)
    logger.info(f"Release {release.id} '{release.name}' created in workspace {release.workspace_id}")
    create_audit_log(
        user=user, action='create', model_name=MODEL_NAME, object_id=release.id,
        object_name=str(release), changes=dict(serializer.validated_data),
    )
    return release


def find_releases_by_workspace(workspace_id, params=None):
    """Releases of a workspace in creation order, optionally narrowed by ReleaseFilter params"""
    queryset = Release.objects.filter(workspace_id=workspace_id).select_related(
        'created_by', 'deployed_by'
    ).order_by('id')
    if params:
        filterset = ReleaseFilter(params, queryset=queryset)
        if not filterset.is_valid():
            errors = {field: [str(e) for e in field_errors] for field, field_errors in filterset.errors.items()}
            raise ValidationError(errors)
        queryset = filterset.qs
    return queryset


def find_release_by_id(release_id):
    return get_release_or_404(release_id)


def update_release(release_id, data, caller):
    """Partial update of name, version, description and target date"""
    release = get_release_or_404(release_id)
    serializer = ReleaseUpdateSerializer(release, data=data, partial=True)
    if not serializer.is_valid():
        logger.warning(f"Release {release_id} update validation failed: {serializer.errors}")
        raise ValidationError(serializer.errors)

    user = resolve_caller(caller)
    changes = diff_fields(release, serializer.validated_data)
    release = serializer.save(updated_by=user)
    logger.info(f"Release {release.id} updated ({', '.join(changes) or 'no changes'})")
    create_audit_log(
        user=user, action='update', model_name=MODEL_NAME, object_id=release.id,
        object_name=str(release), changes=changes,
    )
    return release


def update_release_qa_status(release_id, qa_status, caller):
    """Set the QA status to any member of Release.QA_STATUS_CHOICES"""
    release = get_release_or_404(release_id)
    serializer = QAStatusSerializer(data={} if qa_status is None else {'qa_status': qa_status})
    if not serializer.is_valid():
        logger.warning(f"Invalid QA status {qa_status!r} for release {release_id}")
        raise ValidationError(serializer.errors)

    user = resolve_caller(caller)
    previous = release.qa_status
    release.qa_status = serializer.validated_data['qa_status']
    release.updated_by = user
    release.save(update_fields=['qa_status', 'updated_by', 'updated_at'])
    logger.info(f"Release {release.id} QA status {previous} -> {release.qa_status}")
    create_audit_log(
        user=user, action='qa_status_change', model_name=MODEL_NAME, object_id=release.id,
        object_name=str(release), changes={'qa_status': {'old': previous, 'new': release.qa_status}},
    )
    return release


def deploy_release(release_id, caller):
    """Mark a release deployed and stamp who and when"""
    user = resolve_caller(caller)
    with transaction.atomic():
        release = get_release_or_404(release_id, for_update=True)
        if release.deployed:
            logger.info(f"Release {release.id} already deployed at {release.deployed_at}, nothing to do")
            return get_release_or_404(release_id)

        if getattr(settings, 'REQUIRE_QA_APPROVAL_FOR_DEPLOY', False) and not release.is_approved:
            logger.warning(f"Deploy of release {release.id} rejected: QA status is {release.qa_status}")
            raise ReleaseNotApproved()

        release.deployed = True
        release.deployed_at = timezone.now()
        release.deployed_by = user
        release.updated_by = user
        release.save(update_fields=['deployed', 'deployed_at', 'deployed_by', 'updated_by', 'updated_at'])

    logger.info(f"Release {release.id} deployed (QA status {release.qa_status})")
    create_audit_log(
        user=user, action='deploy', model_name=MODEL_NAME, object_id=release.id,
        object_name=str(release), changes={'deployed_at': release.deployed_at, 'qa_status': release.qa_status},
    )
    return release


def delete_release(release_id, caller):
    """Delete a release; its hotfixes are left in place"""
    release = get_release_or_404(release_id)
    object_id, object_name = release.id, str(release)
    release.delete()
    logger.info(f"Release {object_id} '{object_name}' deleted")
    create_audit_log(
        user=resolve_caller(caller), action='delete', model_name=MODEL_NAME,
        object_id=object_id, object_name=object_name,
    )
