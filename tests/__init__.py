# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Quarterback API:
# - test_normalizer.py / test_context.py: Pure helpers
# - test_*_client.py: Integration clients with mocked transports
# - test_*_service.py: Services against the in-memory store (conftest.py)
# - test_api.py: Endpoints through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
