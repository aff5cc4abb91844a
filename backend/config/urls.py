"""
URL configuration for the POS back-office API.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "POS Back-Office Admin"
admin.site.site_title = "POS Back-Office Admin Portal"
admin.site.index_title = "Store, Recipe and Inventory Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.locations.urls')),
    path('api/v1/', include('backend.compliance.urls')),
    path('api/v1/', include('backend.recipes.urls')),
    path('api/v1/', include('backend.catalog.urls')),
    path('api/v1/', include('backend.inventory.urls')),
    path('api/v1/', include('backend.pos.urls')),
    path('api/v1/', include('backend.accounting.urls')),
    path('api/v1/', include('backend.reports.urls')),
]
