"""
Test suite for the assistant bridge.

Provides:
- Run stream parsing and aggregation tests
- Dispatch and provisioning tests against mocked HTTP
- Concurrent session routing tests
- Ops endpoint tests
"""
