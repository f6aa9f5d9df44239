"""
Catalog tests: products, restock, archiving, vendors, workers.
"""

import pytest

from shopdesk.errors import ConflictError, NotFoundError, ValidationError
from shopdesk.models import StockMovement
from shopdesk.models.catalog import MOVEMENT_OPENING, MOVEMENT_RESTOCK
from shopdesk.services import products_service, purchase_service, vendor_service, worker_service

from conftest import make_product


class TestProducts:

    def test_create_records_opening_movement(self, db_session):
        product = products_service.create_product(
            patch={"name": "Kettle", "sell_price_cents": 4500, "retail_price_cents": 3000, "quantity": 4}
        )

        movement = db_session.query(StockMovement).filter_by(product_id=product.id).one()
        assert movement.movement_type == MOVEMENT_OPENING
        assert movement.quantity_delta == 4

    def test_create_without_quantity_has_no_movement(self, db_session):
        product = products_service.create_product(patch={"name": "Mug", "sell_price_cents": 900})
        assert product.quantity == 0
        assert db_session.query(StockMovement).filter_by(product_id=product.id).count() == 0

    def test_duplicate_name_is_conflict(self, db_session, product):
        with pytest.raises(ConflictError):
            products_service.create_product(patch={"name": "Soap", "sell_price_cents": 100})

    def test_update_does_not_touch_quantity(self, db_session, product):
        updated = products_service.update_product(
            product_id=product.id,
            patch={"sell_price_cents": 650, "quantity": 999},
        )
        assert updated.sell_price_cents == 650
        assert updated.quantity == 10

    def test_rename_to_existing_name_is_conflict(self, db_session, product):
        make_product(db_session, name="Brush")
        with pytest.raises(ConflictError):
            products_service.update_product(product_id=product.id, patch={"name": "Brush"})

    def test_list_and_search(self, db_session, product):
        make_product(db_session, name="Soap Bar Large", quantity=3)
        make_product(db_session, name="Detergent", quantity=1)

        result = products_service.list_products(search="soap")
        assert result["count"] == 2

        paged = products_service.list_products(page=1, per_page=2)
        assert paged["pagination"]["total"] == 3
        assert paged["pagination"]["has_next"] is True

        hits = products_service.search_products("DETER")
        assert [h["name"] for h in hits] == ["Detergent"]

    def test_archive_hides_product(self, db_session, product):
        products_service.archive_product(product_id=product.id)

        assert products_service.list_products()["count"] == 0
        assert products_service.list_products(include_archived=True)["count"] == 1
        assert products_service.get_product(product.id).is_archived is True
        with pytest.raises(NotFoundError):
            products_service.archive_product(product_id=product.id)

    def test_purchase_by_name_ignores_archived(self, db_session, vendor):
        soap = make_product(db_session, name="Old Soap", quantity=2)
        products_service.archive_product(product_id=soap.id)

        # The name is still taken by the archived row
        with pytest.raises(ConflictError):
            purchase_service.record_purchase_receipt(
                vendor_id=vendor.id,
                lines=[{"name": "Old Soap", "quantity": 1, "cost_price_cents": 100}],
            )
        db_session.refresh(soap)
        assert soap.quantity == 2


class TestRestock:

    def test_restock_increments_and_logs(self, db_session, product):
        restocked = products_service.restock(product_id=product.id, quantity_delta=5)

        assert restocked.quantity == 15
        movement = db_session.query(StockMovement).filter_by(movement_type=MOVEMENT_RESTOCK).one()
        assert movement.quantity_delta == 5
        assert movement.quantity_after == 15

    @pytest.mark.parametrize("delta", [0, -3, "5.5", True, None])
    def test_restock_requires_positive_integer(self, db_session, product, delta):
        with pytest.raises(ValidationError):
            products_service.restock(product_id=product.id, quantity_delta=delta)

    def test_restock_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            products_service.restock(product_id=31337, quantity_delta=1)

    def test_restock_archived_product(self, db_session, product):
        products_service.archive_product(product_id=product.id)
        with pytest.raises(NotFoundError):
            products_service.restock(product_id=product.id, quantity_delta=1)


class TestVendorsAndWorkers:

    def test_vendor_lifecycle(self, db_session):
        vendor = vendor_service.create_vendor(name="  Lahore Traders ", phone="042-111")
        assert vendor.name == "Lahore Traders"

        vendors, total = vendor_service.list_vendors()
        assert total == 1

        vendor_service.deactivate_vendor(vendor.id)
        assert vendor_service.list_vendors()[1] == 0
        assert vendor_service.list_vendors(include_inactive=True)[1] == 1

    def test_vendor_requires_name(self, db_session):
        with pytest.raises(ValidationError):
            vendor_service.create_vendor(name="  ")

    def test_worker_update_and_deactivate(self, db_session, worker):
        updated = worker_service.update_worker(
            worker_id=worker.id,
            patch={"bonus_cents": 50_000, "role": "cashier", "unknown": "ignored"},
        )
        assert updated.bonus_cents == 50_000
        assert updated.role == "cashier"

        worker_service.deactivate_worker(worker.id)
        assert worker_service.list_workers() == []
        assert len(worker_service.list_workers(include_inactive=True)) == 1

    def test_missing_worker(self, db_session):
        with pytest.raises(NotFoundError):
            worker_service.get_worker(404)
