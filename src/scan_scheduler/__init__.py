"""Scheduled ControllerApp client with OAuth2 service authentication and audit trail."""

__version__ = "0.1.0"
