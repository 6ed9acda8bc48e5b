# ==============================================================================
# ERRORES DEL CHECKOUT
# ==============================================================================
# Las condiciones esperadas (stock agotado, pago que no cuadra) NO salen del
# checkout como excepción: se devuelven como instancias dentro de
# CheckoutResult.error / .warning (el backend sí puede lanzarlas).
# La única excepción que se propaga es CollaboratorUnavailableError.
# ==============================================================================

from dataclasses import dataclass
from typing import List, Optional

from pos_stock.models.entities import SaleUnitKind


class CheckoutError(Exception):
    """Base de todos los errores del carrito y checkout."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'type': type(self).__name__, 'error': self.message}


class ValidationError(CheckoutError):
    """Falta una selección obligatoria o el dato ingresado no es válido."""


class PaymentMismatchError(CheckoutError):
    """La suma de los pagos no coincide con el total del carrito."""

    def __init__(self, expected_total: int, received_total, message: Optional[str] = None):
        super().__init__(
            message or f"El total de pagos debe ser igual al total de la venta ({expected_total})"
        )
        self.expected_total = expected_total
        self.received_total = received_total

    def to_dict(self) -> dict:
        d = super().to_dict()
        d['expected_total'] = self.expected_total
        d['received_total'] = str(self.received_total)
        return d


@dataclass(frozen=True)
class StockConflict:
    """Línea del carrito que ya no tiene stock suficiente."""
    unit_id: int
    kind: SaleUnitKind
    name: str
    requested: int
    available: int

    def to_dict(self) -> dict:
        return {
            'unit_id': self.unit_id,
            'kind': self.kind.value,
            'name': self.name,
            'requested': self.requested,
            'available': self.available
        }


class StockConflictError(CheckoutError):
    """Al revalidar antes de enviar, una o más líneas superan el stock actual."""

    def __init__(self, conflicts: List[StockConflict]):
        detail = "; ".join(
            f"{c.name} (Solicitado: {c.requested}, Disponible: {c.available})"
            for c in conflicts
        )
        super().__init__(f"Stock insuficiente: {detail}")
        self.conflicts = list(conflicts)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d['conflicts'] = [c.to_dict() for c in self.conflicts]
        return d


class CollaboratorUnavailableError(CheckoutError):
    """No hay conexión o sesión con el backend."""

    def __init__(self, message: str = "Backend no disponible"):
        super().__init__(message)


class ProofUploadError(CheckoutError):
    """
    Falló la subida del comprobante DESPUÉS de registrar la venta.
    Es solo una advertencia: la transacción no se revierte.
    """

    def __init__(self, transaction_id: int, message: Optional[str] = None):
        super().__init__(
            message or f"La venta {transaction_id} se registró pero no se pudo subir el comprobante"
        )
        self.transaction_id = transaction_id


class AuditWriteError(CheckoutError):
    """
    No se pudo escribir la auditoría DESPUÉS de registrar la venta.
    Es solo una advertencia: la transacción no se revierte.
    """

    def __init__(self, transaction_id: int, reason: str):
        super().__init__(
            f"La venta {transaction_id} se registró pero no se pudo escribir la auditoría: {reason}"
        )
        self.transaction_id = transaction_id
        self.reason = reason
