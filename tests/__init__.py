"""
zkcredit Test Suite
===================

Test organization:
- tests/unit/          - Field, circuits, argument system, FHE, protocol, decisions
- tests/services/      - NBFC and Bank APIs over in-process ASGI transports

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
"""
