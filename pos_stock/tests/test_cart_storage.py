import json
import os

import pytest
from flask import Flask, session

from pos_stock.models import SaleUnit, SaleUnitKind
from pos_stock.repositories import (
    ICartStorage,
    JsonCartStorage,
    MemoryCartStorage,
    SessionCartStorage,
)
from pos_stock.services import CartService


def unit(stock=5):
    return SaleUnit(id=3, kind=SaleUnitKind.BUNDLE, name='Combo Teh', price=7500, available_stock=stock)


@pytest.fixture
def flask_app():
    app = Flask(__name__)
    app.secret_key = 'test-secret'
    return app


def test_storages_implement_protocol(tmp_path):
    assert isinstance(MemoryCartStorage(), ICartStorage)
    assert isinstance(JsonCartStorage(str(tmp_path)), ICartStorage)
    assert isinstance(SessionCartStorage(), ICartStorage)


def test_memory_storage_copies_values():
    storage = MemoryCartStorage()
    value = {'cart': []}
    storage.write('k', value)
    value['cart'].append('x')
    assert storage.read('k') == {'cart': []}


def test_json_storage_persists_to_file(tmp_path):
    storage = JsonCartStorage(str(tmp_path))
    CartService(storage).add_to_cart(unit())

    with open(os.path.join(str(tmp_path), 'cart_storage.json'), 'r', encoding='utf-8') as f:
        data = json.load(f)
    assert data['kiosk-cart-storage']['cart'][0]['kind'] == 'bundle'

    reopened = CartService(JsonCartStorage(str(tmp_path)))
    assert reopened.total() == 7500


def test_json_storage_corrupt_file_is_empty(tmp_path):
    path = os.path.join(str(tmp_path), 'cart_storage.json')
    with open(path, 'w', encoding='utf-8') as f:
        f.write('{not json')

    assert CartService(JsonCartStorage(str(tmp_path))).get_lines() == []


def test_session_storage_keeps_cart_in_flask_session(flask_app):
    with flask_app.test_request_context('/'):
        cart = CartService(SessionCartStorage())
        cart.add_to_cart(unit())

        assert session['kiosk-cart-storage']['cart'][0]['unit_id'] == 3
        assert session.modified

        assert CartService(SessionCartStorage()).total() == 7500


def test_one_service_keeps_each_browser_session_apart(flask_app):
    cart = CartService(SessionCartStorage())

    with flask_app.test_request_context('/'):
        cart.add_to_cart(unit())
        assert cart.total() == 7500

    with flask_app.test_request_context('/'):
        assert dict(session) == {}
        assert cart.get_lines() == []
        assert cart.total() == 0
        cart.add_to_cart(unit())
        cart.add_to_cart(unit())
        assert cart.get_lines()[0].quantity == 2
