# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene toda la lógica de negocio del motor de stock y checkout.
# Los servicios usan repositorios/puertos para acceder a datos.
#
# ESTRUCTURA:
# ├── errors.py            → Errores tipados del carrito y checkout
# ├── stock_resolver.py    → Stock de paquetes y combos (funciones puras)
# ├── inventory_service.py → Foto del catálogo de la tienda
# ├── cart_service.py      → Carrito limitado por stock
# ├── payment_service.py   → Reparto y validación de pagos
# ├── proof_service.py     → Validación del comprobante (imagen)
# ├── audit_service.py     → Registro de auditoría
# └── checkout_service.py  → Máquina de estados del checkout
# ==============================================================================

from .errors import (
    CheckoutError,
    ValidationError,
    PaymentMismatchError,
    StockConflict,
    StockConflictError,
    CollaboratorUnavailableError,
    ProofUploadError,
    AuditWriteError,
)
from . import stock_resolver
from .audit_service import AuditService
from .inventory_service import InventoryService
from .cart_service import CartService
from .payment_service import PaymentService
from .proof_service import ProofAttachment, ProofService
from .checkout_service import CheckoutReconciler, CheckoutResult

__all__ = [
    # Errores
    'CheckoutError',
    'ValidationError',
    'PaymentMismatchError',
    'StockConflict',
    'StockConflictError',
    'CollaboratorUnavailableError',
    'ProofUploadError',
    'AuditWriteError',

    # Servicios
    'stock_resolver',
    'AuditService',
    'InventoryService',
    'CartService',
    'PaymentService',
    'ProofAttachment',
    'ProofService',
    'CheckoutReconciler',
    'CheckoutResult',
]
