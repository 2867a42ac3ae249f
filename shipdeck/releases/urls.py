from django.urls import path
from .views import (
    release_create, release_list_by_workspace, release_detail,
    release_deploy, release_qa_status,
)

urlpatterns = [
    path('releases/', release_create, name='release-create'),
    path('releases/workspace/<str:workspace_id>/', release_list_by_workspace, name='release-list-by-workspace'),
    path('releases/<int:pk>/', release_detail, name='release-detail'),
    path('releases/<int:pk>/deploy/', release_deploy, name='release-deploy'),
    path('releases/<int:pk>/qa/', release_qa_status, name='release-qa-status'),
]
