"""
Checkout tests.

Verifies:
- A successful checkout decrements stock and fixes the receipt total
- A failing line rolls back every write of the call
- Payment status is validated, and the terminal status cannot change
- Reads after write return exactly what was committed
"""

import pytest

from shopdesk.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from shopdesk.models import SalesReceipt, SalesReceiptLine, StockMovement
from shopdesk.models.catalog import MOVEMENT_SALE
from shopdesk.models.sales import PAYMENT_ALL_REMOVED, PAYMENT_HOLD, PAYMENT_PENDING
from shopdesk.services import checkout_service

from conftest import make_product


def _sell(worker, *lines, **kwargs):
    return checkout_service.record_sale_receipt(
        worker_id=worker.id,
        customer_name=kwargs.pop("customer_name", "Ali"),
        lines=[{"product_id": p.id, "quantity": q, "sold_price_cents": price} for p, q, price in lines],
        **kwargs,
    )


class TestRecordSaleReceipt:

    def test_sale_decrements_stock_and_sets_total(self, db_session, worker, product):
        receipt = _sell(worker, (product, 3, 500))

        db_session.refresh(product)
        assert product.quantity == 7
        assert receipt.total_amount_cents == 1500
        assert receipt.payment_status == "paid"
        assert receipt.customer_name == "Ali"

    def test_multi_line_total_is_sum_of_lines(self, db_session, worker, product):
        other = make_product(db_session, name="Shampoo", quantity=5, sell_price_cents=1200)

        receipt = _sell(worker, (product, 2, 450), (other, 3, 1100))

        lines = db_session.query(SalesReceiptLine).filter_by(receipt_id=receipt.id).all()
        assert len(lines) == 2
        assert receipt.total_amount_cents == sum(l.quantity * l.sold_price_cents for l in lines) == 4200

    def test_customer_name_is_trimmed(self, db_session, worker, product):
        receipt = _sell(worker, (product, 1, 500), customer_name="  Sara  ")
        assert receipt.customer_name == "Sara"

    def test_sale_appends_movements(self, db_session, worker, product):
        receipt = _sell(worker, (product, 4, 500))

        movement = (
            db_session.query(StockMovement)
            .filter_by(product_id=product.id, movement_type=MOVEMENT_SALE)
            .one()
        )
        assert movement.quantity_delta == -4
        assert movement.quantity_after == 6
        assert movement.sales_receipt_id == receipt.id

        total_delta = sum(m.quantity_delta for m in db_session.query(StockMovement).filter_by(product_id=product.id))
        db_session.refresh(product)
        assert total_delta == product.quantity

    def test_selling_exact_stock_reaches_zero(self, db_session, worker, product):
        _sell(worker, (product, 10, 500))
        db_session.refresh(product)
        assert product.quantity == 0


class TestCheckoutAtomicity:

    def test_insufficient_stock_rejects_whole_call(self, db_session, worker, product):
        with pytest.raises(InsufficientStockError) as exc:
            _sell(worker, (product, 11, 500))

        assert exc.value.details["product_id"] == product.id
        assert exc.value.details["product_name"] == "Soap"
        assert exc.value.details["requested_quantity"] == 11
        assert exc.value.details["available_quantity"] == 10

        db_session.refresh(product)
        assert product.quantity == 10
        assert db_session.query(SalesReceipt).count() == 0
        assert db_session.query(SalesReceiptLine).count() == 0

    def test_failing_later_line_rolls_back_earlier_lines(self, db_session, worker, product):
        scarce = make_product(db_session, name="Perfume", quantity=1, sell_price_cents=9000)
        movements_before = db_session.query(StockMovement).count()

        with pytest.raises(InsufficientStockError):
            _sell(worker, (product, 4, 500), (scarce, 2, 9000))

        db_session.refresh(product)
        db_session.refresh(scarce)
        assert product.quantity == 10
        assert scarce.quantity == 1
        assert db_session.query(SalesReceipt).count() == 0
        assert db_session.query(StockMovement).count() == movements_before

    def test_missing_product_rolls_back(self, db_session, worker, product):
        with pytest.raises(NotFoundError):
            checkout_service.record_sale_receipt(
                worker_id=worker.id,
                customer_name="Ali",
                lines=[
                    {"product_id": product.id, "quantity": 1, "sold_price_cents": 500},
                    {"product_id": 999_999, "quantity": 1, "sold_price_cents": 500},
                ],
            )

        db_session.refresh(product)
        assert product.quantity == 10
        assert db_session.query(SalesReceipt).count() == 0

    def test_archived_product_cannot_be_sold(self, db_session, worker, product):
        product.is_archived = True
        db_session.commit()

        with pytest.raises(NotFoundError):
            _sell(worker, (product, 1, 500))

    def test_unknown_worker_is_not_found(self, db_session, product):
        with pytest.raises(NotFoundError):
            checkout_service.record_sale_receipt(
                worker_id=424242,
                customer_name="Ali",
                lines=[{"product_id": product.id, "quantity": 1, "sold_price_cents": 500}],
            )

    def test_repeated_sales_never_go_negative(self, db_session, worker, product):
        sold = 0
        for quantity in (4, 4, 4, 1, 1):
            try:
                _sell(worker, (product, quantity, 500))
                sold += quantity
            except InsufficientStockError:
                pass
            db_session.refresh(product)
            assert product.quantity >= 0

        assert product.quantity == 10 - sold


class TestCheckoutValidation:

    @pytest.mark.parametrize(
        "kwargs,fragment",
        [
            ({"lines": []}, "At least one sale line"),
            ({"customer_name": "   "}, "customer_name"),
            ({"lines": [{"product_id": 1, "quantity": 0, "sold_price_cents": 500}]}, "quantity"),
            ({"lines": [{"product_id": 1, "quantity": -2, "sold_price_cents": 500}]}, "quantity"),
            ({"lines": [{"product_id": 1, "quantity": 1, "sold_price_cents": 0}]}, "sold_price_cents"),
            ({"lines": [{"product_id": 1, "quantity": 1.5, "sold_price_cents": 500}]}, "quantity"),
            ({"lines": [{"product_id": 1, "quantity": 1, "sold_price_cents": 500}], "payment_status": "free"}, "payment_status"),
        ],
    )
    def test_rejects_malformed_cart(self, db_session, worker, product, kwargs, fragment):
        args = {
            "worker_id": worker.id,
            "customer_name": "Ali",
            "lines": [{"product_id": product.id, "quantity": 1, "sold_price_cents": 500}],
        }
        args.update(kwargs)

        with pytest.raises(ValidationError) as exc:
            checkout_service.record_sale_receipt(**args)

        assert fragment in str(exc.value)
        db_session.refresh(product)
        assert product.quantity == 10
        assert db_session.query(SalesReceipt).count() == 0

    @pytest.mark.parametrize("value,expected", [(None, "paid"), ("PENDING", "pending"), (" paid ", "paid")])
    def test_payment_status_normalization(self, value, expected):
        assert checkout_service.normalize_payment_status(value) == expected

    def test_hold_is_not_a_checkout_status(self):
        with pytest.raises(ValidationError):
            checkout_service.normalize_payment_status("hold")


class TestReceiptQueriesAndStatus:

    def test_read_after_write(self, db_session, worker, product):
        receipt = _sell(worker, (product, 2, 480), customer_phone="0321-0000000", payment_status="pending")

        detail = checkout_service.get_sales_receipt_detail(receipt.id)
        assert detail["receipt"]["total_amount_cents"] == 960
        assert detail["receipt"]["payment_status"] == "pending"
        assert detail["receipt"]["worker_name"] == "Bilal"
        assert [(l["product_name"], l["quantity"], l["sold_price_cents"]) for l in detail["lines"]] == [("Soap", 2, 480)]

    def test_list_filters_by_status(self, db_session, worker, product):
        _sell(worker, (product, 1, 500))
        _sell(worker, (product, 1, 500), payment_status="pending")

        result = checkout_service.list_sales_receipts(payment_status="pending")
        assert result["pagination"]["total"] == 1
        assert result["items"][0]["line_count"] == 1

    def test_operator_status_changes(self, db_session, worker, product):
        receipt = _sell(worker, (product, 1, 500))

        assert checkout_service.update_payment_status(receipt.id, "hold").payment_status == PAYMENT_HOLD
        assert checkout_service.update_payment_status(receipt.id, "pending").payment_status == PAYMENT_PENDING

    def test_terminal_status_cannot_be_left(self, db_session, worker, product):
        receipt = _sell(worker, (product, 1, 500))
        receipt.payment_status = PAYMENT_ALL_REMOVED
        db_session.commit()

        with pytest.raises(ConflictError):
            checkout_service.update_payment_status(receipt.id, "paid")

    def test_terminal_status_cannot_be_set_by_operator(self, db_session, worker, product):
        receipt = _sell(worker, (product, 1, 500))
        with pytest.raises(ValidationError):
            checkout_service.update_payment_status(receipt.id, PAYMENT_ALL_REMOVED)
