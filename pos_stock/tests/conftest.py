import os
import sys

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from pos_stock.models import (
    AtomicProduct,
    Bundle,
    BundlePackageItem,
    BundleProductItem,
    CheckoutFlow,
    Outlet,
    PackageComponent,
    PaymentSettings,
    ProductPackage,
)
from pos_stock.repositories import AuditRepository, InMemoryBackend, MemoryCartStorage
from pos_stock.services import (
    AuditService,
    CartService,
    CheckoutReconciler,
    InventoryService,
)


OUTLET_ID = 1


def make_products():
    return [
        AtomicProduct(id=1, name='Nasi', price=5000, stock=10, outlet_id=OUTLET_ID),
        AtomicProduct(id=2, name='Telur', price=3000, stock=5, outlet_id=OUTLET_ID),
        AtomicProduct(id=3, name='Teh', price=4000, stock=20, outlet_id=OUTLET_ID),
        AtomicProduct(id=4, name='Kopi', price=6000, stock=0, outlet_id=OUTLET_ID),
        AtomicProduct(id=5, name='Roti', price=8000, stock=50, outlet_id=2),
        AtomicProduct(id=6, name='Susu', price=7000, stock=30, outlet_id=OUTLET_ID, is_deleted=True),
    ]


def make_packages():
    return [
        # min(10 // 2, 5 // 1) = 5
        ProductPackage(
            id=10, name='Paket Nasi Telur', price=10000,
            components=(PackageComponent(1, 2), PackageComponent(2, 1)),
            outlet_id=OUTLET_ID
        ),
        ProductPackage(
            id=11, name='Paket Susu', price=9000,
            components=(PackageComponent(6, 1),),
            outlet_id=OUTLET_ID
        ),
        ProductPackage(
            id=12, name='Paket Lama', price=9000,
            components=(PackageComponent(3, 1),),
            outlet_id=OUTLET_ID, is_active=False
        ),
    ]


def make_bundles():
    return [
        # min(paquete 10 = 5, 20 // 2 = 10) = 5
        Bundle(
            id=20, name='Combo Hemat', price=15000,
            items=(BundlePackageItem(10, 1), BundleProductItem(3, 2)),
            outlet_id=OUTLET_ID
        ),
        Bundle(
            id=21, name='Combo Teh', price=7500,
            items=(BundleProductItem(3, 2),),
            outlet_id=OUTLET_ID
        ),
    ]


@pytest.fixture
def backend():
    return InMemoryBackend(
        products=make_products(),
        packages=make_packages(),
        bundles=make_bundles(),
        outlets=[Outlet(id=OUTLET_ID, name='Toko Pusat'), Outlet(id=2, name='Toko Cabang')],
        settings=PaymentSettings(),
        user_id='kasir01'
    )


@pytest.fixture
def inventory(backend):
    return InventoryService(backend, OUTLET_ID)


@pytest.fixture
def storage():
    return MemoryCartStorage()


@pytest.fixture
def cart(storage):
    return CartService(storage)


@pytest.fixture
def audit(tmp_path):
    return AuditService(AuditRepository(str(tmp_path)))


@pytest.fixture
def make_checkout(cart, inventory, backend, audit):
    def _make(flow=CheckoutFlow.POS, **kwargs):
        return CheckoutReconciler(
            cart_service=cart,
            inventory_service=inventory,
            gateway=backend,
            flow=flow,
            audit_service=kwargs.pop('audit_service', audit),
            user=kwargs.pop('user', 'kasir01'),
            **kwargs
        )
    return _make
