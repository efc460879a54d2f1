"""
Django admin configuration for register models.

Sessions and entries are read-only here: sessions are opened and closed
through RegisterLifecycleService, and entries are appended through
PaymentRecorder. Neither can be deleted.
"""

from django.contrib import admin

from registers.models import LedgerEntry, RegisterSession


class LedgerEntryInline(admin.TabularInline):
    """Entries of a session in sequence order."""

    model = LedgerEntry
    fk_name = "session"
    extra = 0
    can_delete = False
    fields = [
        "sequence",
        "kind",
        "amount_cents",
        "method",
        "reference_id",
        "recorded_at",
        "recorded_by",
        "cancels",
    ]
    readonly_fields = fields
    ordering = ["sequence"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(RegisterSession)
class RegisterSessionAdmin(admin.ModelAdmin):
    """Admin interface for RegisterSession model."""

    list_display = [
        "id",
        "status",
        "opened_at",
        "opened_by",
        "opening_balance_cents",
        "closed_at",
        "expected_balance_cents",
        "difference_cents",
        "classification",
    ]
    list_filter = ["status", "classification", "opened_at"]
    search_fields = ["id", "observations_open", "observations_close"]
    readonly_fields = [
        "status",
        "opened_at",
        "opened_by",
        "opening_balance_cents",
        "closed_at",
        "closed_by",
        "closing_balance_declared_cents",
        "expected_balance_cents",
        "difference_cents",
        "classification",
        "last_sequence",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["opened_by", "closed_by"]
    inlines = [LedgerEntryInline]
    ordering = ["-opened_at"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """Admin interface for LedgerEntry model (view only)."""

    list_display = [
        "id",
        "session",
        "sequence",
        "kind",
        "amount_cents",
        "method",
        "reference_id",
        "recorded_at",
    ]
    list_filter = ["kind", "method", "recorded_at"]
    search_fields = ["reference_id", "description", "session__id"]
    raw_id_fields = ["session", "recorded_by", "cancels"]
    ordering = ["-recorded_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
