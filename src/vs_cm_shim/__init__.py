"""Keeps cert-manager Certificates in line with nginx VirtualServer TLS settings."""

__version__ = "0.1.0"
