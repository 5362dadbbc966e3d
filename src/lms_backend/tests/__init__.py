"""
Test package for lms_backend.

- test_permissions.py: authorization guard decisions
- test_hierarchy.py: lesson ordering and material removal
- test_enrollment.py: enrollment ledger and course counter
- test_storage_security.py: upload validation
- test_api_*.py: HTTP routes through the FastAPI TestClient
"""
