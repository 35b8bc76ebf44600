"""Collection Service: tester profiles, issue submission and export.

This service provides:
- Tester/device profile management (create, edit, cascade delete)
- Validated observation submission with automatic categorisation
- Filtering of the observation log and CSV export

Endpoints:
- GET /health, GET /ready
- GET|POST /sessions, PATCH|DELETE /sessions/<id>
- POST /classify
- GET|POST /observations
- GET /export.csv
"""

from .validation import (
    ValidationError,
    parse_draft,
    parse_session_input,
    validate_draft,
    validate_session_input,
)
from .filters import ObservationFilter, filter_observations
from .export import export_csv, CSV_HEADER
from .service import CollectionService
from .handler import app

__all__ = [
    "ValidationError",
    "parse_draft",
    "parse_session_input",
    "validate_draft",
    "validate_session_input",
    "ObservationFilter",
    "filter_observations",
    "export_csv",
    "CSV_HEADER",
    "CollectionService",
    "app",
]
