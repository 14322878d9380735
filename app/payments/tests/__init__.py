"""
Tests for payments app.

This package contains test modules for:
- test_state_transitions.py: Payment and Dispute FSM tests
- test_ledger_service.py: Payment creation, approval and release tests
- test_dispute_service.py / test_refund_service.py: Dispute and refund tests
- test_funds_service.py: Available balance tests
- test_tasks.py / test_locks.py: Escrow release task and locking tests
- test_views.py: API endpoint tests

Usage:
    pytest payments/tests/
    pytest payments/tests/test_ledger_service.py
"""
