# ==============================================================================
# RESOLVEDOR DE STOCK COMPUESTO
# ==============================================================================
# Calcula cuántos paquetes y combos se pueden vender con el stock atómico.
#
# REGLAS:
#   - Paquete = mínimo de floor(stock_producto / cantidad) entre componentes
#   - Combo   = mínimo de floor(disponible_item / cantidad) entre ítems,
#               donde un ítem paquete aporta el stock calculado del paquete
#   - Un componente roto (no existe, borrado, inactivo) deja la unidad completa en 0
#   - Lista vacía → 0
#
# Son funciones puras: sin estado, sin caché, mismo resultado para la misma
# entrada. Se pueden llamar en cada cambio de pantalla sin coordinación.
# ==============================================================================

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from pos_stock.models.entities import (
    AtomicProduct,
    Bundle,
    BundlePackageItem,
    InventorySnapshot,
    ProductPackage,
    SaleUnitKind,
)
from pos_stock.performance_logger import profile_function


ProductIndex = Mapping[int, AtomicProduct]
PackageIndex = Mapping[int, ProductPackage]


def product_stock(product: Optional[AtomicProduct]) -> int:
    """Stock vendible de un producto atómico (0 si no existe o está borrado)."""
    if product is None or product.is_deleted:
        return 0
    return product.stock


def package_stock(pkg: ProductPackage, product_index: ProductIndex) -> int:
    """
    Calcula cuántos paquetes completos se pueden armar.

    Args:
        pkg: Paquete a evaluar
        product_index: Diccionario {product_id: producto}

    Returns:
        Cantidad de paquetes vendibles (>= 0)
    """
    if not pkg.components:
        return 0

    min_stock = None
    for component in pkg.components:
        product = product_index.get(component.product_id)
        if product is None or product.is_deleted:
            # Un solo componente roto anula todo el paquete
            return 0

        possible = product.stock // component.quantity
        if min_stock is None or possible < min_stock:
            min_stock = possible

    return min_stock


def bundle_stock(
    bundle: Bundle,
    product_index: ProductIndex,
    package_index: PackageIndex
) -> int:
    """
    Calcula cuántos combos completos se pueden armar.

    Un ítem paquete se resuelve con package_stock (profundidad máxima:
    combo → paquete → producto, los paquetes no contienen combos).

    Args:
        bundle: Combo a evaluar
        product_index: Diccionario {product_id: producto}
        package_index: Diccionario {package_id: paquete}

    Returns:
        Cantidad de combos vendibles (>= 0)
    """
    if not bundle.items:
        return 0

    min_stock = None
    for item in bundle.items:
        if isinstance(item, BundlePackageItem):
            pkg = package_index.get(item.package_id)
            if pkg is None or not pkg.is_active:
                return 0
            available = package_stock(pkg, product_index)
        else:
            product = product_index.get(item.product_id)
            if product is None or product.is_deleted:
                return 0
            available = product.stock

        possible = available // item.quantity
        if min_stock is None or possible < min_stock:
            min_stock = possible

    return min_stock


@profile_function(name="Stock de paquetes")
def packages_stock(
    packages: Iterable[ProductPackage],
    product_index: ProductIndex
) -> Dict[int, int]:
    """Stock de varios paquetes a la vez: {package_id: stock}."""
    return {pkg.id: package_stock(pkg, product_index) for pkg in packages}


@profile_function(name="Stock de combos")
def bundles_stock(
    bundles: Iterable[Bundle],
    product_index: ProductIndex,
    package_index: PackageIndex
) -> Dict[int, int]:
    """Stock de varios combos a la vez: {bundle_id: stock}."""
    return {b.id: bundle_stock(b, product_index, package_index) for b in bundles}


def packages_with_stock(
    packages: Iterable[ProductPackage],
    product_index: ProductIndex
) -> List[Tuple[ProductPackage, int]]:
    """Pares (paquete, stock) para mostrar en pantalla."""
    return [(pkg, package_stock(pkg, product_index)) for pkg in packages]


def bundles_with_stock(
    bundles: Iterable[Bundle],
    product_index: ProductIndex,
    package_index: PackageIndex
) -> List[Tuple[Bundle, int]]:
    """Pares (combo, stock) para mostrar en pantalla."""
    return [(b, bundle_stock(b, product_index, package_index)) for b in bundles]


def unit_stock(kind: SaleUnitKind, unit_id: int, snapshot: InventorySnapshot) -> int:
    """
    Stock vendible de cualquier unidad según su tipo.
    Paquetes y combos inactivos o inexistentes valen 0.
    """
    if kind == SaleUnitKind.PRODUCT:
        return product_stock(snapshot.products.get(unit_id))

    if kind == SaleUnitKind.PACKAGE:
        pkg = snapshot.packages.get(unit_id)
        if pkg is None or not pkg.is_active:
            return 0
        return package_stock(pkg, snapshot.products)

    bundle = snapshot.bundles.get(unit_id)
    if bundle is None or not bundle.is_active:
        return 0
    return bundle_stock(bundle, snapshot.products, snapshot.packages)
