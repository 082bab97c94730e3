"""Unit tests for KB Index web route modules.

Structure:
    tests/unit/web/
    ├── test_routes_regions.py      # Time series and statistics routes
    ├── test_routes_settings.py     # Settings routes
    ├── test_routes_collection.py   # Collection trigger and status
    └── test_app.py                 # App-level handlers and health

Testing pattern:
    - Use FastAPI's TestClient for route testing
    - Mock get_session and the index service functions
    - Test request/response validation and error status mapping
"""
