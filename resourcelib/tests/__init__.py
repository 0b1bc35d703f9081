"""
Test suite for resourcelib.

Covers:
- Core system (errors, settings, registry contract)
- Service system (params, pagination, events, completion, wrapper, registry)
- In-memory service
- Application facade
"""

import logging

# Configure test logging
logging.basicConfig(level=logging.WARNING)  # Reduce noise during tests
