"""
Application package initializer.

This package contains the main entrypoint for the API and its
submodules: configuration, logging and storage live in ``core``,
business rules in ``services``, request and response models in
``schemas`` and HTTP routes in ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
