"""Collection Service HTTP handler - profiles, submissions and export.

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check (storage backend reachable)
- GET /sessions - List profiles (optional ?reporter=)
- POST /sessions - Create profile
- PATCH /sessions/<id> - Edit device details
- DELETE /sessions/<id> - Delete profile and its observations
- POST /classify - Preview classification of a draft
- GET /observations - Filtered observation list
- POST /observations - Submit an observation
- GET /export.csv - Filtered list as CSV
"""
import logging
import os
from typing import Optional

from flask import Flask, Response, jsonify, request

from ttsfeedback.shared.database import NotFoundError, RepositoryError
from ttsfeedback.shared.storage import StorageConfig, create_store
from .export import export_filename
from .filters import ObservationFilter
from .service import CollectionService
from .validation import ValidationError, parse_draft, parse_session_input, text_field

logger = logging.getLogger(__name__)

app = Flask(__name__)


# Global service instance
_service: Optional[CollectionService] = None


def get_service() -> CollectionService:
    """Get or create the global service instance."""
    global _service
    if _service is None:
        config = StorageConfig.from_env()
        _service = CollectionService(store=create_store(config), config=config)
    return _service


def set_service(service: CollectionService) -> None:
    """Set the global service (for testing)."""
    global _service
    _service = service


def _json_body(required: bool = True) -> dict:
    """Request body as a JSON object.

    Raises:
        ValidationError: If the body is missing (when required) or not an object
    """
    data = request.get_json(silent=True)
    if data is None and not required:
        return {}
    if not isinstance(data, dict) or (required and not data):
        raise ValidationError("body", "Request body must be a non-empty JSON object")
    return data


@app.errorhandler(ValidationError)
def handle_validation_error(error: ValidationError):
    return jsonify({"error": str(error), "field": error.field}), 400


@app.errorhandler(NotFoundError)
def handle_not_found(error: NotFoundError):
    return jsonify({"error": str(error)}), 404


@app.errorhandler(RepositoryError)
def handle_repository_error(error: RepositoryError):
    logger.error("STORAGE_ERROR", extra={"error": str(error), "path": request.path})
    return jsonify({"error": "Storage operation failed"}), 500


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "service": "collection-service"})


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check endpoint."""
    storage = get_service().store.health_check()
    if not storage.get("healthy"):
        return jsonify({"status": "not_ready", "storage": storage}), 503
    return jsonify({"status": "ready", "storage": storage})


@app.route("/sessions", methods=["GET"])
def list_sessions():
    """List profiles, newest first.

    Query params:
        reporter: Optional - only this reporter's profiles
    """
    service = get_service()
    reporter = request.args.get("reporter")
    sessions = (
        service.profiles_for_reporter(reporter) if reporter
        else service.list_sessions()
    )
    return jsonify({"sessions": [s.to_dict() for s in sessions]})


@app.route("/sessions", methods=["POST"])
def create_session():
    """Create a tester/device profile.

    Body:
        reporter_name: Required
        tester_device: Required
        tester_os: Optional
    """
    session = get_service().create_session(parse_session_input(_json_body()))
    return jsonify(session.to_dict()), 201


@app.route("/sessions/<session_id>", methods=["PATCH"])
def update_session(session_id: str):
    """Edit a profile's device and OS."""
    data = _json_body()
    session = get_service().update_session(
        session_id,
        tester_device=text_field(data, "tester_device"),
        tester_os=text_field(data, "tester_os"),
    )
    return jsonify(session.to_dict())


@app.route("/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str):
    """Delete a profile together with its observations."""
    removed = get_service().delete_session(session_id)
    return jsonify({"deleted": True, "observations_removed": removed})


@app.route("/classify", methods=["POST"])
def classify_draft():
    """Preview the category a draft would be stored with."""
    result = get_service().preview(parse_draft(_json_body(required=False)))
    return jsonify(result.to_dict())


def _filter_from_request() -> ObservationFilter:
    try:
        return ObservationFilter.from_args(request.args)
    except ValueError:
        raise ValidationError("category", "category must be one of: all, text, tts")


@app.route("/observations", methods=["GET"])
def list_observations():
    """Filtered observation list.

    Query params (all optional, "all" means no filter):
        category, course, reporter, tag, keyword, start_date, end_date
    """
    observations, _ = get_service().filtered_observations(_filter_from_request())
    return jsonify({
        "total": len(observations),
        "observations": [o.to_dict() for o in observations],
    })


@app.route("/observations", methods=["POST"])
def submit_observation():
    """Submit an observation; the category is assigned automatically.

    Body:
        session_id: Required - owning profile
        course_name, tags, issue_description, feeling_tags, feeling_other
    """
    data = _json_body()
    observation, classification = get_service().submit_observation(
        text_field(data, "session_id"),
        parse_draft(data),
    )
    return jsonify({
        "observation": observation.to_dict(),
        "classification": classification.to_dict(),
    }), 201


@app.route("/export.csv", methods=["GET"])
def export_observations():
    """Download the filtered observation list as CSV."""
    service = get_service()
    body = service.export(_filter_from_request())
    filename = export_filename(service.clock().date())
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8080"))
    app.run(host="0.0.0.0", port=port)
