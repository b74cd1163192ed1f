"""URL mappings for the shared platform auth endpoints (``/api/auth``)."""
from django.urls import path

from .auth_views import register_view, login_view, verify_view, logout_view

urlpatterns = [
    path('register', register_view, name='register_view'),
    path('login', login_view, name='login_view'),
    path('verify', verify_view, name='verify_view'),
    path('logout', logout_view, name='logout_view'),
]
