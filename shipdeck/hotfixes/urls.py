from django.urls import path
from .views import hotfix_list, hotfix_list_create_for_release, hotfix_detail

urlpatterns = [
    path('hotfixes/', hotfix_list, name='hotfix-list'),
    path('hotfixes/release/<int:release_id>/', hotfix_list_create_for_release, name='hotfix-list-create-for-release'),
    path('hotfixes/<int:pk>/', hotfix_detail, name='hotfix-detail'),
]
