import io

import pytest
from werkzeug.datastructures import FileStorage

from pos_stock.models import (
    CheckoutFlow,
    CheckoutState,
    OrderType,
    PaymentSettings,
    SaleUnitKind,
)
from pos_stock.repositories import AuditRepository
from pos_stock.services import (
    AuditService,
    AuditWriteError,
    CollaboratorUnavailableError,
    PaymentMismatchError,
    ProofUploadError,
    StockConflictError,
    ValidationError,
)


def add(cart, inventory, kind, unit_id, times=1):
    for _ in range(times):
        unit = inventory.get_sale_unit(kind, unit_id)
        assert cart.add_to_cart(unit)['ok']


def cash(amount):
    return {'category': 'offline', 'method_name': 'Tunai', 'amount': amount}


def proof_file():
    return FileStorage(stream=io.BytesIO(b'\xff\xd8 jpeg'), filename='bukti.jpg', content_type='image/jpeg')


# =============================================================================
# CAJA (POS)
# =============================================================================

def test_pos_split_payment_commits(cart, inventory, backend, audit, make_checkout):
    add(cart, inventory, SaleUnitKind.BUNDLE, 20)
    add(cart, inventory, SaleUnitKind.PRODUCT, 3, times=2)
    checkout = make_checkout()

    assert checkout.select_order_type(OrderType.TAKEAWAY).ok
    result = checkout.set_allocations([
        cash(20000),
        {'category': 'online', 'sub_category': 'qris', 'method_name': 'QRIS', 'amount': '3000'},
    ])
    assert result.ok
    assert result.state == CheckoutState.PAYMENT_METHOD_CHOSEN

    result = checkout.submit()
    assert result.ok
    assert result.state == CheckoutState.COMMITTED
    assert result.transaction_id == 1
    assert result.warning is None

    # carrito limpio y foto invalidada
    assert cart.is_empty()
    assert not inventory.has_snapshot

    # el backend descontó combo (paquete + 2 teh) y 2 teh sueltos
    stock = {p.id: p.stock for p in backend.list_products()}
    assert stock[1] == 8
    assert stock[2] == 4
    assert stock[3] == 16

    tx = backend.transactions[0]
    assert tx.total == 23000
    assert [i.kind for i in tx.items] == [SaleUnitKind.BUNDLE, SaleUnitKind.PRODUCT]

    logs = audit.get_logs_for_transaction(1)
    assert [log['type'] for log in logs].count('PAGO') == 2
    assert [log['type'] for log in logs].count('VENTA') == 1


def test_stock_drop_rejects_whole_checkout(cart, inventory, backend, audit, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 2, times=5)
    add(cart, inventory, SaleUnitKind.PRODUCT, 3)
    checkout = make_checkout()
    checkout.select_order_type('takeaway')
    checkout.set_allocations([cash(19000)])

    # otra caja vendió 2 telur
    backend.set_product_stock(2, 3)

    result = checkout.submit()
    assert result.ok is False
    assert isinstance(result.error, StockConflictError)
    assert [(c.unit_id, c.requested, c.available) for c in result.error.conflicts] == [(2, 5, 3)]
    assert 'Telur' in result.error.message

    # nada se envió y el carrito sigue igual
    assert backend.transactions == []
    assert [(line.unit_id, line.quantity) for line in cart.get_lines()] == [(2, 5), (3, 1)]
    assert checkout.state == CheckoutState.PAYMENT_METHOD_CHOSEN
    assert audit.get_logs_by_type('STOCK')


def test_backend_is_final_authority_on_shared_products(cart, inventory, backend, make_checkout):
    # cada línea cabe sola, pero juntas necesitan 6 telur
    add(cart, inventory, SaleUnitKind.PACKAGE, 10, times=5)
    add(cart, inventory, SaleUnitKind.PRODUCT, 2)
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(53000)])

    result = checkout.submit()
    assert isinstance(result.error, StockConflictError)
    assert backend.transactions == []
    assert len(cart.get_lines()) == 2


def test_payment_must_match_total(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1, times=3)
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)

    result = checkout.set_allocations([cash(14999)])
    assert isinstance(result.error, PaymentMismatchError)
    assert result.error.expected_total == 15000
    assert checkout.state == CheckoutState.SELECTING

    assert checkout.set_allocations([cash(15000)]).ok


def test_cart_change_after_payment_is_caught(cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(5000)])

    add(cart, inventory, SaleUnitKind.PRODUCT, 1)

    result = checkout.submit()
    assert isinstance(result.error, PaymentMismatchError)
    assert backend.transactions == []


def test_order_type_is_required(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout()

    result = checkout.set_allocations([cash(5000)])
    assert isinstance(result.error, ValidationError)

    result = checkout.submit()
    assert isinstance(result.error, ValidationError)
    assert checkout.state == CheckoutState.SELECTING


def test_empty_cart_is_rejected(make_checkout):
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)

    assert isinstance(checkout.set_allocations([cash(1000)]).error, ValidationError)
    assert isinstance(checkout.submit().error, ValidationError)


def test_missing_outlet_is_rejected(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    inventory.outlet_id = None
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(5000)])

    result = checkout.submit()
    assert isinstance(result.error, ValidationError)


def test_outlet_override_moves_inventory_to_that_outlet(cart, inventory, backend, make_checkout):
    checkout = make_checkout(outlet_id=2)
    assert inventory.outlet_id == 2

    add(cart, inventory, SaleUnitKind.PRODUCT, 5)
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(8000)])
    result = checkout.submit()

    assert result.ok
    assert backend.transactions[0].outlet_id == 2
    assert {p.id: p.stock for p in backend.list_products()}[5] == 49


def test_outlet_override_revalidates_against_new_outlet(cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout(outlet_id=2)
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(5000)])

    result = checkout.submit()

    # Nasi no se vende en la tienda 2
    assert isinstance(result.error, StockConflictError)
    assert result.error.conflicts[0].available == 0
    assert backend.transactions == []
    assert len(cart.get_lines()) == 1


def test_collaborator_down_propagates_and_keeps_cart(cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1, times=2)
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(10000)])

    backend.connected = False
    with pytest.raises(CollaboratorUnavailableError):
        checkout.submit()

    assert cart.get_lines()[0].quantity == 2
    assert checkout.state == CheckoutState.PAYMENT_METHOD_CHOSEN

    # reintento cuando vuelve la conexión
    backend.connected = True
    assert checkout.submit().ok


def test_cancel_has_no_side_effects(cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(5000)])

    result = checkout.cancel()
    assert result.ok
    assert result.state == CheckoutState.ABORTED
    assert len(cart.get_lines()) == 1
    assert backend.transactions == []

    assert isinstance(checkout.submit().error, ValidationError)
    assert checkout.cancel().ok is False


def test_proof_not_allowed_for_cash_takeaway(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout()
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.set_allocations([cash(5000)])

    result = checkout.attach_proof(proof_file())
    assert isinstance(result.error, ValidationError)
    assert checkout.proof is None


# =============================================================================
# KIOSKO
# =============================================================================

def test_kiosk_delivery_with_proof(cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.BUNDLE, 21, times=2)
    checkout = make_checkout(CheckoutFlow.KIOSK, user='')

    assert checkout.select_order_type(OrderType.DELIVERY).ok
    assert checkout.set_guest('Budi', '0812000', 'Jl. Merdeka 1').ok
    assert checkout.choose_payment_method('qris').ok
    assert checkout.allocations[0].amount == 15000

    result = checkout.attach_proof(proof_file())
    assert result.ok
    assert result.state == CheckoutState.PROOF_ATTACHED

    result = checkout.submit()
    assert result.ok
    assert backend.proofs[result.transaction_id]['content_type'] == 'image/jpeg'
    assert backend.transactions[0].payment_methods[0].method_name == 'QRIS Statis'


def test_kiosk_allocation_follows_cart_total(cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 3)
    checkout = make_checkout(CheckoutFlow.KIOSK)
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.choose_payment_method('bankTransfer')

    add(cart, inventory, SaleUnitKind.PRODUCT, 3)
    result = checkout.submit()

    assert result.ok
    assert backend.transactions[0].payment_methods[0].amount == 8000


def test_proof_upload_failure_is_warning(cart, inventory, backend, audit, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout(CheckoutFlow.KIOSK)
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.choose_payment_method('qris')
    checkout.attach_proof(proof_file())

    backend.fail_proof_upload = True
    result = checkout.submit()

    assert result.ok
    assert result.state == CheckoutState.COMMITTED
    assert isinstance(result.warning, ProofUploadError)
    assert result.warning.transaction_id == result.transaction_id
    assert cart.is_empty()
    assert len(backend.transactions) == 1
    assert audit.get_logs_by_type('SISTEMA')


def test_audit_write_failure_after_commit_is_warning(tmp_path, cart, inventory, backend, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    repo = AuditRepository(str(tmp_path))
    repo.file_path = str(tmp_path / 'borrado' / 'audit.json')
    checkout = make_checkout(CheckoutFlow.KIOSK, audit_service=AuditService(repo))
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.choose_payment_method('qris')
    checkout.attach_proof(proof_file())

    result = checkout.submit()

    assert result.ok
    assert result.state == CheckoutState.COMMITTED
    assert result.transaction_id == 1
    assert isinstance(result.warning, AuditWriteError)
    assert result.warning.transaction_id == 1
    assert cart.is_empty()
    assert len(backend.transactions) == 1
    # el comprobante se sube aunque la auditoría falle
    assert 1 in backend.proofs


def test_kiosk_settings_gate_choices(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    settings = PaymentSettings(delivery_enabled=False, bank_transfer_enabled=False)
    checkout = make_checkout(CheckoutFlow.KIOSK, payment_settings=settings)

    assert isinstance(checkout.select_order_type(OrderType.DELIVERY).error, ValidationError)
    assert checkout.select_order_type(OrderType.TAKEAWAY).ok
    assert isinstance(checkout.choose_payment_method('bankTransfer').error, ValidationError)
    assert checkout.choose_payment_method('qris').ok


def test_kiosk_rejects_split_payment(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout(CheckoutFlow.KIOSK)
    checkout.select_order_type(OrderType.TAKEAWAY)

    assert isinstance(checkout.set_allocations([cash(5000)]).error, ValidationError)


def test_guest_delivery_requires_address(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout(CheckoutFlow.KIOSK)
    checkout.select_order_type(OrderType.DELIVERY)

    result = checkout.set_guest('Budi', '0812000')
    assert isinstance(result.error, ValidationError)
    assert checkout.guest is None


def test_summary(cart, inventory, make_checkout):
    add(cart, inventory, SaleUnitKind.PRODUCT, 1)
    checkout = make_checkout(CheckoutFlow.KIOSK)
    checkout.select_order_type(OrderType.TAKEAWAY)
    checkout.choose_payment_method('qris')

    summary = checkout.get_summary()
    assert summary['state'] == 'PAYMENT_METHOD_CHOSEN'
    assert summary['total'] == 5000
    assert summary['proof_allowed'] is True
