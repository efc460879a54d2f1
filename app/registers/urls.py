"""
URL configuration for registers API.

URL Structure:
    Sessions:
        /sessions/                     GET
        /sessions/open/                POST
        /sessions/current/             GET
        /sessions/summary/daily/       GET
        /sessions/{id}/                GET
        /sessions/{id}/close/          POST
        /sessions/{id}/summary/        GET

    Entries:
        /entries/                      POST
        /entries/{id}/                 GET
        /entries/{id}/cancel/          POST

    Dashboard:
        /dashboard/                    GET

All URLs are prefixed with /api/v1/registers/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from registers.views import DashboardView, LedgerEntryViewSet, RegisterSessionViewSet

router = DefaultRouter()
router.register(r"sessions", RegisterSessionViewSet, basename="register-session")
router.register(r"entries", LedgerEntryViewSet, basename="ledger-entry")

app_name = "registers"

urlpatterns = [
    path("", include(router.urls)),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
]
