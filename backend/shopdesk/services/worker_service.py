# Overview: Service-layer operations for workers; encapsulates business logic and database work.

"""
Worker Service

Shop floor staff records. Workers have no stock effect. They are
deactivated rather than deleted because sales receipts reference them.
"""

from ..errors import NotFoundError
from ..extensions import db
from ..models import Worker

WORKER_MUTABLE_FIELDS = {
    "name", "father_name", "phone", "cnic", "salary_cents", "bonus_cents",
    "role", "joining_date", "benefits",
}


def create_worker(*, patch: dict) -> Worker:
    worker = Worker(is_active=True)
    for k, v in patch.items():
        if k in WORKER_MUTABLE_FIELDS:
            setattr(worker, k, v)
    if worker.salary_cents is None:
        worker.salary_cents = 0
    if worker.bonus_cents is None:
        worker.bonus_cents = 0

    db.session.add(worker)
    db.session.commit()
    return worker


def get_worker(worker_id: int) -> Worker:
    worker = db.session.get(Worker, worker_id)
    if not worker:
        raise NotFoundError(f"Worker {worker_id} not found")
    return worker


def list_workers(*, include_inactive: bool = False, search: str | None = None) -> list[Worker]:
    query = db.session.query(Worker)
    if not include_inactive:
        query = query.filter(Worker.is_active.is_(True))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(db.or_(Worker.name.ilike(term), Worker.cnic.ilike(term), Worker.phone.ilike(term)))
    return query.order_by(Worker.name.asc(), Worker.id.asc()).all()


def update_worker(*, worker_id: int, patch: dict) -> Worker:
    worker = get_worker(worker_id)
    for k, v in patch.items():
        if k not in WORKER_MUTABLE_FIELDS:
            continue
        # money columns are NOT NULL
        if k in ("salary_cents", "bonus_cents") and v is None:
            v = 0
        setattr(worker, k, v)
    db.session.commit()
    return worker


def deactivate_worker(worker_id: int) -> Worker:
    worker = get_worker(worker_id)
    if worker.is_active:
        worker.is_active = False
        db.session.commit()
    return worker
