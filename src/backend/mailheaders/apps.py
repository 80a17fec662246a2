"""Mail headers application"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class MailHeadersConfig(AppConfig):
    """Configuration class for the mail headers app."""

    name = "mailheaders"
    label = "mailheaders"
    verbose_name = _("mail headers application")
