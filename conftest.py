"""
Root pytest configuration for the Django project.

pytest-django reads DJANGO_SETTINGS_MODULE from pyproject.toml; the default
below covers tools that import the test modules directly. Shared fixtures
and markers live in app/conftest.py and the per-app conftest modules.
"""

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
