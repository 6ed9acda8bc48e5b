# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Obtiene del backend la foto (snapshot) del catálogo de UNA tienda y expone
# el stock vendible de productos, paquetes y combos.
#
# CICLO DE VIDA DEL SNAPSHOT:
#   get_snapshot()  → usa la foto cacheada (para pantallas)
#   refresh()       → SIEMPRE vuelve a pedir al backend (para el checkout)
#   invalidate()    → descarta la foto; la próxima lectura refresca
# ==============================================================================

from typing import Any, Dict, List, Optional

from pos_stock.models.entities import (
    InventorySnapshot,
    Outlet,
    PaymentSettings,
    SaleUnit,
    SaleUnitKind,
)
from pos_stock.repositories.interfaces import IBackendGateway
from pos_stock.services import stock_resolver


class InventoryService:
    """
    Servicio de inventario de una tienda.

    Responsabilidades:
    - Pedir el catálogo al backend y filtrarlo por tienda
    - Mantener la foto vigente e invalidarla tras una venta
    - Entregar unidades vendibles (SaleUnit) con stock calculado
    """

    def __init__(self, gateway: IBackendGateway, outlet_id: Optional[int] = None):
        """
        Args:
            gateway: Backend remoto
            outlet_id: Tienda activa
        """
        self.gateway = gateway
        self.outlet_id = outlet_id
        self._snapshot: Optional[InventorySnapshot] = None
        self._generation = 0

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def set_outlet(self, outlet_id: int) -> None:
        """Cambia de tienda. La foto anterior deja de servir."""
        if outlet_id != self.outlet_id:
            self.outlet_id = outlet_id
            self.invalidate()

    def refresh(self) -> InventorySnapshot:
        """
        Pide el catálogo completo al backend y arma una foto nueva.

        Filtros:
        - Productos de la tienda y no borrados
        - Paquetes y combos de la tienda y activos

        Raises:
            CollaboratorUnavailableError: Si el backend no responde
        """
        outlet_id = self.outlet_id
        products = [
            p for p in self.gateway.list_products()
            if not p.is_deleted and (outlet_id is None or p.outlet_id == outlet_id)
        ]
        packages = [
            p for p in self.gateway.list_packages()
            if p.is_active and (outlet_id is None or p.outlet_id == outlet_id)
        ]
        bundles = [
            b for b in self.gateway.list_bundles()
            if b.is_active and (outlet_id is None or b.outlet_id == outlet_id)
        ]

        self._generation += 1
        self._snapshot = InventorySnapshot.build(
            outlet_id, products, packages, bundles, generation=self._generation
        )
        return self._snapshot

    # Alias con el nombre de la operación de lectura remota
    fetch_snapshot = refresh

    def get_snapshot(self) -> InventorySnapshot:
        """Foto vigente; si no hay, la pide al backend."""
        if self._snapshot is None:
            return self.refresh()
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    # =========================================================================
    # STOCK VENDIBLE
    # =========================================================================

    def available_for(self, kind: SaleUnitKind, unit_id: int) -> int:
        """Stock vendible de una unidad según la foto vigente."""
        return stock_resolver.unit_stock(kind, unit_id, self.get_snapshot())

    def get_sale_unit(self, kind: SaleUnitKind, unit_id: int) -> Optional[SaleUnit]:
        """
        Arma la SaleUnit que la pantalla entrega al carrito.

        Returns:
            SaleUnit con stock calculado, o None si no existe en la tienda
        """
        snapshot = self.get_snapshot()
        if kind == SaleUnitKind.PRODUCT:
            product = snapshot.products.get(unit_id)
            return SaleUnit.from_product(product) if product else None

        if kind == SaleUnitKind.PACKAGE:
            pkg = snapshot.packages.get(unit_id)
            if pkg is None:
                return None
            return SaleUnit.from_package(pkg, stock_resolver.package_stock(pkg, snapshot.products))

        bundle = snapshot.bundles.get(unit_id)
        if bundle is None:
            return None
        return SaleUnit.from_bundle(
            bundle,
            stock_resolver.bundle_stock(bundle, snapshot.products, snapshot.packages)
        )

    def list_products(self) -> List[SaleUnit]:
        """Productos vendibles de la tienda."""
        return [SaleUnit.from_product(p) for p in self.get_snapshot().sellable_products()]

    def list_packages(self) -> List[SaleUnit]:
        """Paquetes activos con su stock calculado."""
        snapshot = self.get_snapshot()
        pairs = stock_resolver.packages_with_stock(snapshot.active_packages(), snapshot.products)
        return [SaleUnit.from_package(pkg, stock) for pkg, stock in pairs]

    def list_bundles(self) -> List[SaleUnit]:
        """Combos activos con su stock calculado."""
        snapshot = self.get_snapshot()
        pairs = stock_resolver.bundles_with_stock(
            snapshot.active_bundles(), snapshot.products, snapshot.packages
        )
        return [SaleUnit.from_bundle(b, stock) for b, stock in pairs]

    def get_catalog(self) -> Dict[str, Any]:
        """
        Catálogo completo para mostrar.

        Returns:
            Dict con products, packages, bundles (listas de SaleUnit) y generation
        """
        return {
            'products': self.list_products(),
            'packages': self.list_packages(),
            'bundles': self.list_bundles(),
            'generation': self.get_snapshot().generation
        }

    # =========================================================================
    # DATOS DE LA TIENDA
    # =========================================================================

    def list_outlets(self) -> List[Outlet]:
        return self.gateway.list_outlets()

    def get_outlet(self, outlet_id: int) -> Optional[Outlet]:
        for outlet in self.gateway.list_outlets():
            if outlet.id == outlet_id:
                return outlet
        return None

    def get_payment_settings(self) -> PaymentSettings:
        return self.gateway.get_payment_settings()
