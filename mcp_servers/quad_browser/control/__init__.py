"""Loopback HTTP control plane."""

from __future__ import annotations

from .api import ROUTES, ControlApi
from .server import ControlServer

__all__ = ["ROUTES", "ControlApi", "ControlServer"]
