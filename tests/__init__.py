"""
Validator Heartbeat Test Suite
==============================

Test organization:
- tests/unit/                 - Shared library (config, logging, chain clients)
- tests/services/heartbeat/   - Election cache, mark printer and command

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=shared --cov=services
"""
