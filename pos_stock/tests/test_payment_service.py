from decimal import Decimal

import pytest

from pos_stock.models import (
    KioskPaymentMethod,
    PaymentAllocation,
    PaymentCategory,
    PaymentSubCategory,
)
from pos_stock.services import PaymentMismatchError, PaymentService, ValidationError
from pos_stock.services.payment_service import parse_amount


@pytest.fixture
def payments(backend):
    return PaymentService(backend)


def cash(amount):
    return {'category': 'offline', 'method_name': 'Tunai', 'amount': amount}


def test_total_minus_one_is_rejected(payments):
    allocations, error = payments.validate_allocations(15000, [cash(14999)])

    assert allocations == []
    assert isinstance(error, PaymentMismatchError)
    assert error.expected_total == 15000


def test_exact_total_is_accepted(payments):
    allocations, error = payments.validate_allocations(15000, [
        cash(10000),
        {'category': 'online', 'sub_category': 'qris', 'method_name': 'QRIS', 'amount': '5000'},
    ])

    assert error is None
    assert [a.amount for a in allocations] == [10000, 5000]
    assert allocations[1].sub_category == PaymentSubCategory.QRIS


def test_decimal_text_within_epsilon(payments):
    allocations, error = payments.validate_allocations(15000, [cash('15000.00')])
    assert error is None
    assert allocations[0].amount == 15000


def test_decimal_text_outside_epsilon(payments):
    _, error = payments.validate_allocations(15000, [cash('14999.98')])
    assert isinstance(error, PaymentMismatchError)


def test_allocation_objects_are_accepted(payments):
    alloc = PaymentAllocation(PaymentCategory.FOOD_DELIVERY, 'GoFood', 8000, PaymentSubCategory.GO_FOOD)
    allocations, error = payments.validate_allocations(8000, [alloc])
    assert error is None
    assert allocations == [alloc]


@pytest.mark.parametrize('raw', [
    [],
    [cash('abc')],
    [cash(0)],
    [cash(-100)],
    [{'category': 'cash', 'method_name': 'Tunai', 'amount': 100}],
    [{'category': 'offline', 'method_name': '', 'amount': 100}],
])
def test_invalid_allocations(payments, raw):
    allocations, error = payments.validate_allocations(100, raw)
    assert allocations == []
    assert isinstance(error, ValidationError)


def test_parse_amount():
    assert parse_amount(' 1500.5 ') == Decimal('1500.5')
    assert parse_amount(200) == Decimal(200)
    assert parse_amount(None) is None
    assert parse_amount(True) is None
    assert parse_amount('NaN') is None
    assert parse_amount('') is None


def test_kiosk_allocation_uses_full_total(payments):
    qris = payments.build_kiosk_allocation(KioskPaymentMethod.QRIS, 22500)
    assert qris.category == PaymentCategory.ONLINE
    assert qris.sub_category == PaymentSubCategory.QRIS
    assert qris.method_name == 'QRIS Statis'
    assert qris.amount == 22500

    transfer = payments.build_kiosk_allocation('bankTransfer', 22500)
    assert transfer.method_name == 'Transfer Bank'
    assert transfer.sub_category is None


def test_history_without_gateway_is_empty():
    assert PaymentService().get_transaction_history() == []
