"""
URL configuration for the bizpos project.

All JSON endpoints live under /api/v1/; each app contributes its own urlpatterns.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "BizPOS Management Admin Panel"
admin.site.site_title = "BizPOS Admin Portal"
admin.site.index_title = "Welcome to the BizPOS Admin Panel"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('bizpos.core.urls')),
    path('api/v1/', include('bizpos.catalog.urls')),
    path('api/v1/', include('bizpos.purchasing.urls')),
    path('api/v1/', include('bizpos.pos.urls')),
    path('api/v1/', include('bizpos.parties.urls')),
    path('api/v1/', include('bizpos.reports.urls')),
]
