import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from shipdeck.core.responses import api_response, no_content_response
from . import services
from .serializers import ReleaseSerializer

logger = logging.getLogger('shipdeck.releases')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def release_create(request):
    """Create a release"""
    logger.info(f"User {request.user.username} creating release with data: {request.data}")
    release = services.create_release(request.data, request.user)
    return api_response(ReleaseSerializer(release).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def release_list_by_workspace(request, workspace_id):
    """List a workspace's releases in creation order (?qa_status=, ?deployed= supported)"""
    releases = services.find_releases_by_workspace(workspace_id, request.query_params)
    serializer = ReleaseSerializer(releases, many=True)
    return api_response(serializer.data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def release_detail(request, pk):
    """Retrieve, update or delete a release"""
    if request.method == 'GET':
        release = services.find_release_by_id(pk)
        return api_response(ReleaseSerializer(release).data)
    elif request.method in ('PUT', 'PATCH'):
        logger.info(f"User {request.user.username} updating release {pk} with data: {request.data}")
        release = services.update_release(pk, request.data, request.user)
        return api_response(ReleaseSerializer(release).data)
    else:  # DELETE
        logger.info(f"User {request.user.username} deleting release {pk}")
        services.delete_release(pk, request.user)
        return no_content_response()


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def release_deploy(request, pk):
    """Mark a release as deployed"""
    logger.info(f"User {request.user.username} deploying release {pk}")
    release = services.deploy_release(pk, request.user)
    return api_response(ReleaseSerializer(release).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def release_qa_status(request, pk):
    """Set a release's QA status from {"qa_status": ...} (camelCase "qaStatus" also accepted)"""
    data = request.data if hasattr(request.data, 'get') else {}
    qa_status = data.get('qa_status', data.get('qaStatus'))
    logger.info(f"User {request.user.username} setting QA status of release {pk} to {qa_status!r}")
    release = services.update_release_qa_status(pk, qa_status, request.user)
    return api_response(ReleaseSerializer(release).data)
