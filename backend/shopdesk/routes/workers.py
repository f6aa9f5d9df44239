# Overview: Flask API routes for worker operations; parses input and returns JSON responses.

"""
Worker Routes

SECURITY: All routes require authentication and the `workers` capability.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..models import Worker
from ..models.auth import CAPABILITY_WORKERS
from ..services import worker_service
from ..validation import (
    json_object,
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_worker,
    ValidationError,
)

WORKER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "father_name", "phone", "cnic", "salary_cents", "bonus_cents",
        "role", "joining_date", "benefits",
    },
    required_on_create={"name"},
)

workers_bp = Blueprint("workers", __name__, url_prefix="/api/workers")


@workers_bp.get("")
@require_auth
@require_capability(CAPABILITY_WORKERS)
def list_workers_route():
    workers = worker_service.list_workers(
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
        search=request.args.get("search"),
    )
    return jsonify({"items": [w.to_dict() for w in workers], "count": len(workers)})


@workers_bp.post("")
@require_auth
@require_capability(CAPABILITY_WORKERS)
def create_worker_route():
    try:
        payload = json_object()
        patch = validate_payload(model=Worker, payload=payload, policy=WORKER_POLICY, partial=False)
        enforce_rules_worker(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    worker = worker_service.create_worker(patch=patch)
    return jsonify({"worker": worker.to_dict()}), 201


@workers_bp.get("/<int:worker_id>")
@require_auth
@require_capability(CAPABILITY_WORKERS)
def get_worker_route(worker_id: int):
    try:
        worker = worker_service.get_worker(worker_id)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"worker": worker.to_dict()})


@workers_bp.put("/<int:worker_id>")
@require_auth
@require_capability(CAPABILITY_WORKERS)
def update_worker_route(worker_id: int):
    try:
        payload = json_object()
        patch = validate_payload(model=Worker, payload=payload, policy=WORKER_POLICY, partial=True)
        enforce_rules_worker(patch)
        worker = worker_service.update_worker(worker_id=worker_id, patch=patch)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"worker": worker.to_dict()})


@workers_bp.delete("/<int:worker_id>")
@require_auth
@require_capability(CAPABILITY_WORKERS)
def deactivate_worker_route(worker_id: int):
    try:
        worker = worker_service.deactivate_worker(worker_id)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"worker": worker.to_dict()})
