# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Gem Desk API:
# - test_csv_parsing.py: Tokenizer, cell parsers and CSV sources
# - test_import_service.py: Stock CSV import (row mapping, batching, errors)
# - test_models.py: Unit tests for Pydantic model validation
# - test_*_service.py: Service logic with a mocked datastore
# - test_api.py: Endpoints through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
