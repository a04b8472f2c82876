"""ControllerApp downstream access."""

from scan_scheduler.downstream.client import build_controller_app_client
from scan_scheduler.downstream.repository import ControllerAppRepository

__all__ = ["ControllerAppRepository", "build_controller_app_client"]
