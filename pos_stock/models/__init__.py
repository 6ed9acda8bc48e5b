# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Beneficios:
#   - Type hints para mejor documentación y autocompletado
#   - Uniones etiquetadas: un ítem de combo es producto O paquete
#   - Fácil serialización/deserialización para JSON
#   - Independiente del backend (el catálogo llega como snapshot)
# ==============================================================================

from .entities import (
    # Enumeraciones
    SaleUnitKind,
    PaymentCategory,
    PaymentSubCategory,
    OrderType,
    KioskPaymentMethod,
    CheckoutFlow,
    CheckoutState,

    # Catálogo
    Outlet,
    AtomicProduct,
    PackageComponent,
    ProductPackage,
    BundleProductItem,
    BundlePackageItem,
    BundleItem,
    bundle_item_from_dict,
    Bundle,
    InventorySnapshot,

    # Carrito
    SaleUnit,
    CartLine,

    # Pagos
    PaymentAllocation,
    PaymentSettings,
    GuestCustomer,

    # Transacciones
    TransactionItem,
    TransactionRequest,
    Transaction,
)

__all__ = [
    # Enumeraciones
    'SaleUnitKind',
    'PaymentCategory',
    'PaymentSubCategory',
    'OrderType',
    'KioskPaymentMethod',
    'CheckoutFlow',
    'CheckoutState',

    # Catálogo
    'Outlet',
    'AtomicProduct',
    'PackageComponent',
    'ProductPackage',
    'BundleProductItem',
    'BundlePackageItem',
    'BundleItem',
    'bundle_item_from_dict',
    'Bundle',
    'InventorySnapshot',

    # Carrito
    'SaleUnit',
    'CartLine',

    # Pagos
    'PaymentAllocation',
    'PaymentSettings',
    'GuestCustomer',

    # Transacciones
    'TransactionItem',
    'TransactionRequest',
    'Transaction',
]
