"""
Django Formulary app configuration.
"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class FormularyConfig(AppConfig):
    """Formulary application configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "formulary"
    verbose_name = _("Fichas Técnicas")

    def ready(self):
        """Import signal handlers when app is ready."""
        from formulary.signals import handlers  # noqa: F401
