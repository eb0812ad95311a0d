"""Handlers turning change notifications into work queue keys."""

from .base import BaseHandler
from .certificate import CertificateEventHandler
from .virtualserver import VirtualServerEventHandler

__all__ = [
    "BaseHandler",
    "CertificateEventHandler",
    "VirtualServerEventHandler",
]
