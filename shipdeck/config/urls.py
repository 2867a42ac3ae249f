"""
URL configuration for the shipdeck project.

Every app mounts its own urlpatterns under the versioned API prefix.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Shipdeck Admin Panel"
admin.site.site_title = "Shipdeck Admin Portal"
admin.site.index_title = "Releases & Hotfixes"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('shipdeck.core.urls')),
    path('api/v1/', include('shipdeck.releases.urls')),
    path('api/v1/', include('shipdeck.hotfixes.urls')),
]
