import pytest
from flask import Flask

from pos_stock.app_container import AppContainer, get_container
from pos_stock.models import CheckoutFlow, OrderType, SaleUnitKind
from pos_stock.repositories import MemoryCartStorage, SessionCartStorage


@pytest.fixture
def container(tmp_path, backend):
    AppContainer.reset_instance()
    c = AppContainer(base_path=str(tmp_path), gateway=backend, outlet_id=1, cart_storage=MemoryCartStorage())
    yield c
    AppContainer.reset_instance()


def test_container_is_singleton(container):
    assert get_container() is container
    assert container.cart_service is container.cart_service


def test_container_wires_full_sale(container, backend):
    unit = container.inventory_service.get_sale_unit(SaleUnitKind.PACKAGE, 10)
    container.cart_service.add_to_cart(unit)

    checkout = container.new_checkout(CheckoutFlow.POS, user='kasir01')
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([{'category': 'offline', 'method_name': 'Tunai', 'amount': 10000}])
    result = checkout.submit()

    assert result.ok
    assert container.audit_service.get_logs_for_transaction(result.transaction_id)
    assert container.payment_service.get_transaction_history()[0].id == result.transaction_id


def test_default_cart_storage_is_json_file(tmp_path):
    AppContainer.reset_instance()
    try:
        c = AppContainer(base_path=str(tmp_path))
        c.cart_service.clear_cart()
        assert (tmp_path / 'cart_storage.json').exists()
    finally:
        AppContainer.reset_instance()


def test_container_cart_follows_flask_session(tmp_path, backend):
    app = Flask(__name__)
    app.secret_key = 'test-secret'
    AppContainer.reset_instance()
    try:
        c = AppContainer(base_path=str(tmp_path), gateway=backend, outlet_id=1, cart_storage=SessionCartStorage())
        nasi = c.inventory_service.get_sale_unit(SaleUnitKind.PRODUCT, 1)

        with app.test_request_context('/'):
            c.cart_service.add_to_cart(nasi)
            assert [(line.unit_id, line.quantity) for line in c.cart_service.get_lines()] == [(1, 1)]

        with app.test_request_context('/'):
            assert c.cart_service.get_lines() == []
            assert c.cart_service.is_empty()
    finally:
        AppContainer.reset_instance()
