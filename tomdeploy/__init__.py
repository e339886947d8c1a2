"""Idempotent provisioning of the TOM demo deployment on Google Cloud."""

__version__ = "0.1.0"
