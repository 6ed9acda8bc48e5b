# ==============================================================================
# INTERFACES DE REPOSITORIOS Y DEL BACKEND
# ==============================================================================
#
# Los servicios dependen de estos protocolos, NO de implementaciones:
#
# 1. ICartStorage
#    - Slot durable clave/valor donde vive el carrito del dispositivo
#    - Implementaciones: memoria (tests), archivo JSON (kiosko), sesión Flask
#
# 2. IBackendGateway
#    - El backend remoto (colaborador externo): catálogo, transacciones,
#      comprobantes. El transporte NO es responsabilidad de este paquete.
#    - Cualquier método puede lanzar CollaboratorUnavailableError
#
# 3. IAuditRepository
#    - Registro de actividad
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pos_stock.models.entities import (
    AtomicProduct,
    Bundle,
    Outlet,
    PaymentSettings,
    ProductPackage,
    Transaction,
    TransactionRequest,
)


@runtime_checkable
class ICartStorage(Protocol):
    """Slot durable para el estado del carrito."""

    def read(self, key: str) -> Optional[Any]:
        """Lee el valor guardado (None si no hay nada)."""
        ...

    def write(self, key: str, value: Any) -> None:
        """Guarda el valor (debe ser serializable a JSON)."""
        ...


@runtime_checkable
class IBackendGateway(Protocol):
    """
    Contrato con el backend. Cada llamada es pedido/respuesta: una llamada,
    una respuesta, sin reintentos automáticos.
    """

    def list_products(self) -> List[AtomicProduct]:
        """Todos los productos (incluye borrados, se filtran en cliente)."""
        ...

    def list_packages(self) -> List[ProductPackage]:
        """Todos los paquetes (incluye inactivos)."""
        ...

    def list_bundles(self) -> List[Bundle]:
        """Todos los combos (incluye inactivos)."""
        ...

    def list_outlets(self) -> List[Outlet]:
        """Todas las tiendas."""
        ...

    def get_payment_settings(self) -> PaymentSettings:
        """Opciones de cobro del kiosko."""
        ...

    def create_transaction(self, request: TransactionRequest) -> int:
        """Registra la venta y descuenta stock. Devuelve el id de transacción."""
        ...

    def upload_payment_proof(self, transaction_id: int, payload: bytes, content_type: str) -> None:
        """Adjunta el comprobante de pago a una transacción."""
        ...

    def get_user_transaction_history(self) -> List[Transaction]:
        """Transacciones del usuario actual (solo para mostrar)."""
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Interfaz para el repositorio de auditoría."""

    def load(self) -> List[Dict[str, Any]]:
        """Carga todos los logs (más recientes primero)."""
        ...

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """Registra un evento."""
        ...

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Logs más recientes."""
        ...
