"""
URL mappings for the shared health endpoints.

Both ``/health`` and ``/healthz`` are served for load balancers and
uptime probes; trailing slashes are deliberately omitted.
"""
from django.urls import path

from .views import health

urlpatterns = [
    path('health', health.healthz, name='health'),
    path('healthz', health.healthz, name='healthz'),
]
