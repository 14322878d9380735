"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager and role property tests
- factories.py: Client, professional and admin user factories

Usage:
    pytest authentication/tests/
"""
