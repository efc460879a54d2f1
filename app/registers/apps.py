"""
Registers app configuration.
"""

from django.apps import AppConfig


class RegistersConfig(AppConfig):
    """Configuration for the registers application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "registers"
    verbose_name = "Cash Registers"
