"""
URL configuration for the Aarogya Mitra / Raga music backend project.

The `urlpatterns` list routes URLs to views.  This module includes the
Django admin, the health endpoints from the core app, the healthcare
records API and the music API.  OpenAPI documentation is exposed at
``/swagger/`` and ``/redoc/``.
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="Aarogya Mitra API",
    default_version='v1',
    description="Healthcare records (visits, prescriptions, receipts, vitals) and the Raga music catalog.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Django admin site (useful for development)
    path('admin/', admin.site.urls),
    # Health checks
    path('', include('core.routers')),
    # Shared platform auth
    path('api/auth/', include('accounts.routers')),
    # Healthcare records
    path('api/', include('records.routers')),
    # Music catalog, streaming and payments
    path('api/music/', include('music.routers')),
    # Prometheus metrics
    path('', include('django_prometheus.urls')),
    # Swagger and ReDoc
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
