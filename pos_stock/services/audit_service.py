# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza el registro de eventos del checkout.
# Formatea mensajes humanizados y categoriza eventos.
# ==============================================================================

from typing import Any, Dict, List

from pos_stock.repositories.interfaces import IAuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Centraliza:
    - Registro de eventos con mensajes humanizados
    - Categorización de eventos (VENTA, PAGO, STOCK, SISTEMA)
    - Búsqueda y filtrado de logs

    La regla de oro: Si entra dinero → siempre log de PAGO
    """

    # Tipos de eventos de auditoría
    TYPE_VENTA = 'VENTA'
    TYPE_PAGO = 'PAGO'
    TYPE_STOCK = 'STOCK'
    TYPE_SISTEMA = 'SISTEMA'

    def __init__(self, audit_repo: IAuditRepository):
        """
        Args:
            audit_repo: Repositorio de auditoría
        """
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """Registra un evento de auditoría genérico."""
        self.audit_repo.log(log_type, user, message, related_id, details)

    def log_sale_created(
        self,
        user: str,
        transaction_id: int,
        total: int,
        items_count: int,
        outlet_id: int,
        flow: str
    ) -> None:
        """
        Registra una venta aceptada por el backend.

        Args:
            user: Usuario que confirmó la venta
            transaction_id: ID devuelto por el backend
            total: Total de la venta
            items_count: Cantidad de unidades vendidas
            outlet_id: Tienda
            flow: 'kiosk' o 'pos'
        """
        message = (
            f"Venta {transaction_id} registrada por {user or 'kiosko'} - Total: {total} "
            f"- {items_count} items - Tienda {outlet_id} ({flow})"
        )
        self.log(
            self.TYPE_VENTA,
            user,
            message,
            str(transaction_id),
            {'total': total, 'items_count': items_count, 'outlet_id': outlet_id, 'flow': flow}
        )

    def log_payment(
        self,
        user: str,
        transaction_id: int,
        amount: int,
        method: str,
        category: str,
        total: int = None
    ) -> None:
        """
        Registra un pago recibido.
        REGLA DE ORO: Si entra dinero, siempre se debe llamar esta función.

        Args:
            user: Usuario que registró el pago
            transaction_id: ID de la transacción
            amount: Monto de esta asignación
            method: Nombre del método ("Tunai", "QRIS Statis"...)
            category: Categoría del pago
            total: Total de la venta (opcional)
        """
        message = f"Pago recibido en venta {transaction_id}: {amount} ({method}, {category})"
        self.log(
            self.TYPE_PAGO,
            user,
            message,
            str(transaction_id),
            {'amount': amount, 'method': method, 'category': category, 'total': total}
        )

    def log_stock_conflict(self, user: str, conflicts: List[Dict[str, Any]]) -> None:
        """
        Registra un checkout rechazado por falta de stock.

        Args:
            user: Usuario del intento
            conflicts: Líneas en conflicto (StockConflict.to_dict())
        """
        names = ", ".join(
            f"{c['name']} ({c['requested']}/{c['available']})" for c in conflicts
        )
        message = f"Checkout rechazado por stock insuficiente: {names}"
        self.log(self.TYPE_STOCK, user, message, '', {'conflicts': conflicts})

    def log_proof_upload_failed(self, user: str, transaction_id: int, reason: str) -> None:
        """Registra que la venta quedó sin comprobante adjunto."""
        message = f"Venta {transaction_id}: no se pudo subir el comprobante - {reason}"
        self.log(self.TYPE_SISTEMA, user, message, str(transaction_id), {'reason': reason})

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self.audit_repo.get_recent_logs(limit)

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        return [log for log in self.audit_repo.load() if log.get('type') == log_type]

    def get_logs_for_transaction(self, transaction_id: int) -> List[Dict[str, Any]]:
        """Todos los eventos de una transacción."""
        tid = str(transaction_id)
        return [log for log in self.audit_repo.load() if log.get('related_id') == tid]
