"""Wire formats handled by the mail headers application."""
