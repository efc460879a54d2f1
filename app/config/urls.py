"""
URL configuration for the cash register service.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/registers/             - Cash register endpoints
        sessions/                  - Session list (filter by status, open date)
        sessions/open/             - Open the register
        sessions/current/          - Open session and live balance
        sessions/summary/daily/    - Totals for sessions opened on a day
        sessions/{id}/             - Session detail with entries
        sessions/{id}/close/       - Close and reconcile
        sessions/{id}/summary/     - Totals for one session
        entries/                   - Record a payment
        entries/{id}/              - Entry detail
        entries/{id}/cancel/       - Cancel an entry
        dashboard/                 - Sales dashboard

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Cash registers
    path("registers/", include("registers.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Cash Register Admin"
admin.site.site_title = "Cash Register Admin"
admin.site.index_title = "Register sessions and ledger"
