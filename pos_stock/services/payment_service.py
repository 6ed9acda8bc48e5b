# ==============================================================================
# SERVICIO DE PAGOS
# ==============================================================================
# Centraliza la validación del reparto de pago de una venta.
#
# REGLAS:
#   - Al menos un método de pago
#   - Cada monto > 0 (se acepta entero o texto decimal "15000.00")
#   - La suma debe ser EXACTAMENTE el total del carrito
#     (la tolerancia 0.01 solo absorbe el parseo de texto decimal)
# ==============================================================================

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple, Union

from pos_stock import config
from pos_stock.models.entities import (
    KioskPaymentMethod,
    PaymentAllocation,
    PaymentCategory,
    PaymentSubCategory,
    Transaction,
)
from pos_stock.repositories.interfaces import IBackendGateway
from pos_stock.services.errors import CheckoutError, PaymentMismatchError, ValidationError


# Nombres visibles de los métodos del kiosko
KIOSK_METHOD_NAMES = {
    KioskPaymentMethod.QRIS: 'QRIS Statis',
    KioskPaymentMethod.BANK_TRANSFER: 'Transfer Bank',
}

RawAllocation = Union[PaymentAllocation, Dict[str, Any]]


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Convierte un monto ingresado a Decimal.

    Returns:
        Decimal finito, o None si el valor no es un número
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def to_money(amount: Decimal) -> int:
    """Redondea a la unidad mínima (medio hacia arriba)."""
    return int(amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class PaymentService:
    """
    Servicio para validación de pagos.

    Responsabilidades:
    - Parsear y validar montos ingresados
    - Verificar que el reparto cuadre con el total
    - Armar el pago único del kiosko
    - Consultar el historial de transacciones
    """

    def __init__(self, gateway: IBackendGateway = None):
        """
        Args:
            gateway: Backend (solo para el historial)
        """
        self.gateway = gateway

    def validate_allocations(
        self,
        total: int,
        raw_allocations: List[RawAllocation]
    ) -> Tuple[List[PaymentAllocation], Optional[CheckoutError]]:
        """
        Valida el reparto del pago contra el total de la venta.

        Args:
            total: Total del carrito
            raw_allocations: PaymentAllocation o dicts con
                category, sub_category, method_name, amount (int o texto)

        Returns:
            Tupla (asignaciones normalizadas, error). Si hay error la lista
            viene vacía.
        """
        if not raw_allocations:
            return [], ValidationError('Agregue al menos un método de pago')

        parsed: List[Tuple[PaymentAllocation, Decimal]] = []
        for raw in raw_allocations:
            if isinstance(raw, PaymentAllocation):
                data = raw.to_dict()
            elif isinstance(raw, dict):
                data = raw
            else:
                return [], ValidationError('Método de pago inválido')

            amount = parse_amount(data.get('amount'))
            if amount is None:
                return [], ValidationError(f"Monto inválido: {data.get('amount')!r}")
            if amount <= 0:
                return [], ValidationError('El monto debe ser mayor a 0')

            try:
                category = PaymentCategory(data.get('category'))
                sub = data.get('sub_category')
                sub_category = PaymentSubCategory(sub) if sub else None
            except ValueError:
                return [], ValidationError('Categoría de pago inválida')

            method_name = (data.get('method_name') or '').strip()
            if not method_name:
                return [], ValidationError('Falta el nombre del método de pago')

            parsed.append((
                PaymentAllocation(
                    category=category,
                    method_name=method_name,
                    amount=to_money(amount),
                    sub_category=sub_category
                ),
                amount
            ))

        received = sum((amount for _, amount in parsed), Decimal(0))
        if abs(Decimal(total) - received) > config.PAYMENT_EPSILON:
            return [], PaymentMismatchError(total, received)

        allocations = [alloc for alloc, _ in parsed]
        # Ya redondeado a enteros, el reparto debe cuadrar sin tolerancia
        if sum(a.amount for a in allocations) != total:
            return [], PaymentMismatchError(total, sum(a.amount for a in allocations))

        return allocations, None

    def build_kiosk_allocation(self, method: KioskPaymentMethod, total: int) -> PaymentAllocation:
        """El kiosko cobra con un único método online por el total."""
        method = KioskPaymentMethod(method)
        return PaymentAllocation(
            category=PaymentCategory.ONLINE,
            method_name=KIOSK_METHOD_NAMES[method],
            amount=total,
            sub_category=PaymentSubCategory.QRIS if method == KioskPaymentMethod.QRIS else None
        )

    def get_transaction_history(self) -> List[Transaction]:
        """Historial del usuario (solo lectura)."""
        if self.gateway is None:
            return []
        return self.gateway.get_user_transaction_history()
