"""
Application package initializer.

This package contains the main entrypoint for the API and its
submodules: configuration and infrastructure in ``core``, Pydantic
models in ``schemas``, persistence in ``services`` and the HTTP
handlers under ``api/<version>/endpoints``.
"""

from .main import app  # noqa: F401
