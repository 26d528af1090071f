"""Worktime package.

This package is organized by feature modules (users, time entries, sharing)
with a thin Flask controller layer and service/repository layers.
"""

__version__ = "0.1.0"
