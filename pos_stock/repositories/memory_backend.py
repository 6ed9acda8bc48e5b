# ==============================================================================
# BACKEND EN MEMORIA
# ==============================================================================
# Implementación en proceso de IBackendGateway, para tests y demos.
# Se comporta como el backend real en lo que importa al checkout:
#   - Descuenta stock de forma ATÓMICA al registrar la venta
#     (paquetes y combos se expanden a sus productos)
#   - Rechaza la venta completa si algún producto no alcanza
#   - Puede simular caída de conexión (connected = False)
# ==============================================================================

import threading
import time
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from pos_stock.models.entities import (
    AtomicProduct,
    Bundle,
    BundlePackageItem,
    Outlet,
    PaymentSettings,
    ProductPackage,
    SaleUnitKind,
    Transaction,
    TransactionItem,
    TransactionRequest,
)
from pos_stock.services.errors import (
    CollaboratorUnavailableError,
    ProofUploadError,
    StockConflict,
    StockConflictError,
    ValidationError,
)


class InMemoryBackend:
    """
    Backend simulado con catálogo sembrable.

    Attributes:
        connected: Si es False, toda llamada lanza CollaboratorUnavailableError
        fail_proof_upload: Si es True, la subida de comprobante falla
        user_id: Usuario "logueado" para el historial
    """

    def __init__(
        self,
        products: Iterable[AtomicProduct] = (),
        packages: Iterable[ProductPackage] = (),
        bundles: Iterable[Bundle] = (),
        outlets: Iterable[Outlet] = (),
        settings: Optional[PaymentSettings] = None,
        user_id: str = 'kasir'
    ):
        self._lock = threading.RLock()
        self._products: Dict[int, AtomicProduct] = {p.id: p for p in products}
        self._packages: Dict[int, ProductPackage] = {p.id: p for p in packages}
        self._bundles: Dict[int, Bundle] = {b.id: b for b in bundles}
        self._outlets: Dict[int, Outlet] = {o.id: o for o in outlets}
        self._settings = settings or PaymentSettings()
        self._transactions: List[Transaction] = []
        self._next_id = 1

        self.user_id = user_id
        self.connected = True
        self.fail_proof_upload = False
        self.proofs: Dict[int, Dict[str, object]] = {}

    # ==========================================================================
    # SIEMBRA Y AJUSTES (solo para tests / demos)
    # ==========================================================================

    def set_product_stock(self, product_id: int, stock: int) -> None:
        """Simula un cambio de stock hecho por otra caja."""
        with self._lock:
            self._products[product_id] = replace(self._products[product_id], stock=stock)

    def upsert_product(self, product: AtomicProduct) -> None:
        with self._lock:
            self._products[product.id] = product

    def upsert_package(self, package: ProductPackage) -> None:
        with self._lock:
            self._packages[package.id] = package

    def upsert_bundle(self, bundle: Bundle) -> None:
        with self._lock:
            self._bundles[bundle.id] = bundle

    def set_payment_settings(self, settings: PaymentSettings) -> None:
        self._settings = settings

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    # ==========================================================================
    # IBackendGateway
    # ==========================================================================

    def _check_connection(self) -> None:
        if not self.connected:
            raise CollaboratorUnavailableError()

    def list_products(self) -> List[AtomicProduct]:
        self._check_connection()
        with self._lock:
            return list(self._products.values())

    def list_packages(self) -> List[ProductPackage]:
        self._check_connection()
        with self._lock:
            return list(self._packages.values())

    def list_bundles(self) -> List[Bundle]:
        self._check_connection()
        with self._lock:
            return list(self._bundles.values())

    def list_outlets(self) -> List[Outlet]:
        self._check_connection()
        return list(self._outlets.values())

    def get_payment_settings(self) -> PaymentSettings:
        self._check_connection()
        return self._settings

    def _expand_item(self, item: TransactionItem, needed: Dict[int, int]) -> bool:
        """
        Suma a `needed` los productos atómicos que consume una línea.

        Returns:
            False si la línea apunta a algo inexistente o inactivo
        """
        kind = item.kind
        if kind == SaleUnitKind.PRODUCT:
            needed[item.unit_id] += item.quantity
            return item.unit_id in self._products

        if kind == SaleUnitKind.PACKAGE:
            pkg = self._packages.get(item.unit_id)
            if pkg is None or not pkg.is_active:
                return False
            for comp in pkg.components:
                needed[comp.product_id] += comp.quantity * item.quantity
            return True

        bundle = self._bundles.get(item.unit_id)
        if bundle is None or not bundle.is_active:
            return False
        for b_item in bundle.items:
            if isinstance(b_item, BundlePackageItem):
                pkg = self._packages.get(b_item.package_id)
                if pkg is None or not pkg.is_active:
                    return False
                for comp in pkg.components:
                    needed[comp.product_id] += comp.quantity * b_item.quantity * item.quantity
            else:
                needed[b_item.product_id] += b_item.quantity * item.quantity
        return True

    def create_transaction(self, request: TransactionRequest) -> int:
        """
        Registra la venta y descuenta stock atómicamente.

        Raises:
            CollaboratorUnavailableError: Sin conexión
            ValidationError: Pedido sin ítems o con unidades inexistentes
            StockConflictError: Algún producto no alcanza (nada se descuenta)
        """
        self._check_connection()
        if not request.items:
            raise ValidationError("La transacción no tiene ítems")

        with self._lock:
            needed: Dict[int, int] = defaultdict(int)
            for item in request.items:
                if not self._expand_item(item, needed):
                    raise ValidationError(f"Unidad {item.unit_id} no disponible")

            conflicts = []
            for product_id, qty in needed.items():
                product = self._products.get(product_id)
                available = 0 if product is None or product.is_deleted else product.stock
                if qty > available:
                    conflicts.append(StockConflict(
                        unit_id=product_id,
                        kind=SaleUnitKind.PRODUCT,
                        name=product.name if product else str(product_id),
                        requested=qty,
                        available=available
                    ))
            if conflicts:
                raise StockConflictError(conflicts)

            for product_id, qty in needed.items():
                product = self._products[product_id]
                self._products[product_id] = replace(product, stock=product.stock - qty)

            transaction_id = self._next_id
            self._next_id += 1
            self._transactions.append(Transaction(
                id=transaction_id,
                user_id=self.user_id,
                outlet_id=request.outlet_id,
                items=list(request.items),
                total=request.total,
                timestamp=int(time.time() * 1000),
                payment_methods=list(request.payment_methods)
            ))
            return transaction_id

    def upload_payment_proof(self, transaction_id: int, payload: bytes, content_type: str) -> None:
        """
        Raises:
            CollaboratorUnavailableError: Sin conexión
            ProofUploadError: Transacción inexistente o fallo simulado
        """
        self._check_connection()
        if self.fail_proof_upload:
            raise ProofUploadError(transaction_id)
        if not any(t.id == transaction_id for t in self._transactions):
            raise ProofUploadError(transaction_id, f"Transacción {transaction_id} no encontrada")
        self.proofs[transaction_id] = {'payload': payload, 'content_type': content_type}

    def get_user_transaction_history(self) -> List[Transaction]:
        """Transacciones del usuario, más recientes primero."""
        self._check_connection()
        return sorted(
            (t for t in self._transactions if t.user_id == self.user_id),
            key=lambda t: t.timestamp,
            reverse=True
        )
