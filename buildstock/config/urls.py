"""
URL configuration for the buildstock project.

Every app mounts its function views under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.views.static import serve
from django.urls import re_path

admin.site.site_header = "BuildStock Admin Panel"
admin.site.site_title = "BuildStock Admin Portal"
admin.site.index_title = "Inventory, Purchasing and Sales"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('buildstock.core.urls')),
    path('api/v1/', include('buildstock.catalog.urls')),
    path('api/v1/', include('buildstock.parties.urls')),
    path('api/v1/', include('buildstock.inventory.urls')),
    path('api/v1/', include('buildstock.purchasing.urls')),
    path('api/v1/', include('buildstock.sales.urls')),
    path('api/v1/', include('buildstock.reports.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
