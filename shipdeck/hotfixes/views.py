import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from shipdeck.core.responses import api_response
from . import services
from .serializers import HotfixSerializer

logger = logging.getLogger('shipdeck.hotfixes')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hotfix_list(request):
    """List every hotfix across releases"""
    serializer = HotfixSerializer(services.find_all_hotfixes(), many=True)
    return api_response(serializer.data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def hotfix_list_create_for_release(request, release_id):
    """List a release's hotfixes or create a new one under it"""
    if request.method == 'GET':
        serializer = HotfixSerializer(services.find_hotfixes_by_release(release_id), many=True)
        return api_response(serializer.data)
    else:
        logger.info(f"User {request.user.username} creating hotfix for release {release_id} with data: {request.data}")
        hotfix = services.create_hotfix(request.data, request.user, release_id)
        return api_response(HotfixSerializer(hotfix).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def hotfix_detail(request, pk):
    """Retrieve, update or delete a hotfix"""
    if request.method == 'GET':
        return api_response(HotfixSerializer(services.find_hotfix_by_id(pk)).data)
    elif request.method == 'PATCH':
        logger.info(f"User {request.user.username} updating hotfix {pk} with data: {request.data}")
        hotfix = services.update_hotfix(pk, request.data, request.user)
        return api_response(HotfixSerializer(hotfix).data)
    else:  # DELETE
        logger.info(f"User {request.user.username} deleting hotfix {pk}")
        services.delete_hotfix(pk, request.user)
        return api_response(None)
