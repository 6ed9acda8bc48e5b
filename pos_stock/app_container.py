# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener el backend, los repositorios locales y los
# servicios ya cableados. Facilita:
#   - Inyección de dependencias
#   - Testing (se inyecta un backend en memoria o un slot de carrito propio)
#   - Cambiar de backend sin tocar los servicios
#
# ═══════════════════════════════════════════════════════════════════════════════
# BACKEND REAL
# ═══════════════════════════════════════════════════════════════════════════════
#
#   container = AppContainer(gateway=MiClienteHttp(...), outlet_id=3)
#   checkout = container.new_checkout(CheckoutFlow.POS, user='kasir01')
#
# Sin gateway se usa InMemoryBackend (vacío).
# ==============================================================================

from typing import Optional

from pos_stock import config
from pos_stock.models.entities import CheckoutFlow

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Persistencia local y puerto al backend
# ═══════════════════════════════════════════════════════════════════════════════
from pos_stock.repositories import (
    AuditRepository,
    IBackendGateway,
    ICartStorage,
    InMemoryBackend,
    JsonCartStorage,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from pos_stock.services import (
    AuditService,
    CartService,
    CheckoutReconciler,
    InventoryService,
    PaymentService,
    ProofService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(base_path='/var/lib/pos', outlet_id=1)
        cart = container.cart_service
        checkout = container.new_checkout(CheckoutFlow.KIOSK)
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, *args, **kwargs):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        base_path: str = None,
        gateway: IBackendGateway = None,
        outlet_id: Optional[int] = None,
        cart_storage: ICartStorage = None
    ):
        """
        Args:
            base_path: Carpeta de los JSON locales (por defecto config.DATA_DIR)
            gateway: Backend remoto (por defecto InMemoryBackend)
            outlet_id: Tienda activa
            cart_storage: Slot del carrito (por defecto JsonCartStorage)
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        self._gateway: Optional[IBackendGateway] = gateway
        self._outlet_id = outlet_id
        self._cart_storage: Optional[ICartStorage] = cart_storage

        # Repositorios (lazy loading)
        self._audit_repo: Optional[AuditRepository] = None

        # Servicios (lazy loading)
        self._audit_service: Optional[AuditService] = None
        self._inventory_service: Optional[InventoryService] = None
        self._cart_service: Optional[CartService] = None
        self._payment_service: Optional[PaymentService] = None
        self._proof_service: Optional[ProofService] = None

        self._initialized = True

    # =========================================================================
    # BACKEND Y REPOSITORIOS
    # =========================================================================

    @property
    def gateway(self) -> IBackendGateway:
        """Backend remoto (singleton)."""
        if self._gateway is None:
            self._gateway = InMemoryBackend()
        return self._gateway

    @property
    def audit_repo(self) -> AuditRepository:
        """Repositorio de auditoría (singleton)."""
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(
                self._base_path, config.AUDIT_FILE_NAME, config.AUDIT_MAX_LOGS
            )
        return self._audit_repo

    @property
    def cart_storage(self) -> ICartStorage:
        """Slot durable del carrito (singleton)."""
        if self._cart_storage is None:
            self._cart_storage = JsonCartStorage(self._base_path, config.CART_FILE_NAME)
        return self._cart_storage

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        """Servicio de auditoría (singleton)."""
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def inventory_service(self) -> InventoryService:
        """Servicio de inventario (singleton)."""
        if self._inventory_service is None:
            self._inventory_service = InventoryService(self.gateway, self._outlet_id)
        return self._inventory_service

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (singleton)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.cart_storage)
        return self._cart_service

    @property
    def payment_service(self) -> PaymentService:
        """Servicio de pagos (singleton)."""
        if self._payment_service is None:
            self._payment_service = PaymentService(self.gateway)
        return self._payment_service

    @property
    def proof_service(self) -> ProofService:
        """Servicio de comprobantes (singleton)."""
        if self._proof_service is None:
            self._proof_service = ProofService()
        return self._proof_service

    def new_checkout(self, flow: CheckoutFlow = CheckoutFlow.POS, user: str = '') -> CheckoutReconciler:
        """
        Crea un intento de checkout nuevo (uno por cobro).

        Args:
            flow: KIOSK o POS
            user: Usuario que cobra
        """
        return CheckoutReconciler(
            cart_service=self.cart_service,
            inventory_service=self.inventory_service,
            gateway=self.gateway,
            flow=flow,
            payment_service=self.payment_service,
            proof_service=self.proof_service,
            audit_service=self.audit_service,
            user=user
        )

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia los repositorios y servicios.
        El backend y el slot del carrito inyectados se conservan.
        """
        self._audit_repo = None

        self._audit_service = None
        self._inventory_service = None
        self._cart_service = None
        self._payment_service = None
        self._proof_service = None

    @classmethod
    def get_instance(cls, base_path: str = None, **kwargs) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Ruta base (solo se usa en primera llamada)

        Returns:
            Instancia del contenedor
        """
        if cls._instance is None:
            return cls(base_path, **kwargs)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(base_path: str = None, **kwargs) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Ruta base del proyecto

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(base_path, **kwargs)
