# ==============================================================================
# SERVICIO DE CHECKOUT (RECONCILIADOR)
# ==============================================================================
# Lleva un intento de cobro desde la selección hasta la venta registrada.
#
# ESTADOS:
#   SELECTING → PAYMENT_METHOD_CHOSEN → [PROOF_ATTACHED] → SUBMITTING → COMMITTED
#   Cualquier estado antes de SUBMITTING → ABORTED (cancel)
#
# AL CONFIRMAR (submit):
#   1. Se vuelve a pedir el inventario al backend
#   2. Se recalcula el stock de CADA línea; si alguna no alcanza se rechaza
#      el checkout COMPLETO (StockConflictError) y el carrito queda intacto
#   3. Se registra la transacción (el backend descuenta stock)
#   4. Se limpia el carrito, se invalida la foto y se sube el comprobante
#   5. Se audita la venta; si la auditoría falla queda como advertencia
#
# Las condiciones esperadas vuelven en CheckoutResult.error / .warning.
# Solo CollaboratorUnavailableError se propaga.
# ==============================================================================

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from werkzeug.datastructures import FileStorage

from pos_stock.models.entities import (
    CheckoutFlow,
    CheckoutState,
    GuestCustomer,
    KioskPaymentMethod,
    OrderType,
    PaymentAllocation,
    PaymentCategory,
    PaymentSettings,
    TransactionItem,
    TransactionRequest,
)
from pos_stock.performance_logger import profile_function
from pos_stock.repositories.interfaces import IBackendGateway
from pos_stock.services import stock_resolver
from pos_stock.services.audit_service import AuditService
from pos_stock.services.cart_service import CartService
from pos_stock.services.errors import (
    AuditWriteError,
    CheckoutError,
    CollaboratorUnavailableError,
    ProofUploadError,
    StockConflict,
    StockConflictError,
    ValidationError,
)
from pos_stock.services.inventory_service import InventoryService
from pos_stock.services.payment_service import PaymentService, RawAllocation
from pos_stock.services.proof_service import ProofAttachment, ProofService


# Estados en los que todavía se puede cambiar la selección o cancelar
OPEN_STATES = frozenset([
    CheckoutState.SELECTING,
    CheckoutState.PAYMENT_METHOD_CHOSEN,
    CheckoutState.PROOF_ATTACHED,
])


@dataclass
class CheckoutResult:
    """
    Resultado de una operación del checkout.

    Attributes:
        ok: Si la operación se aplicó
        state: Estado del checkout después de la operación
        transaction_id: ID de la venta (solo al confirmar)
        error: Instancia de CheckoutError si ok es False
        warning: Aviso no fatal (p. ej. ProofUploadError tras la venta)
    """
    ok: bool
    state: CheckoutState
    transaction_id: Optional[int] = None
    error: Optional[CheckoutError] = None
    warning: Optional[CheckoutError] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'state': self.state.value,
            'transaction_id': self.transaction_id,
            'error': self.error.to_dict() if self.error else None,
            'warning': self.warning.to_dict() if self.warning else None
        }


class CheckoutReconciler:
    """
    Máquina de estados de un intento de checkout.

    Una instancia = un intento. Después de COMMITTED o ABORTED se crea otra.
    """

    def __init__(
        self,
        cart_service: CartService,
        inventory_service: InventoryService,
        gateway: IBackendGateway,
        flow: CheckoutFlow = CheckoutFlow.POS,
        payment_service: PaymentService = None,
        proof_service: ProofService = None,
        audit_service: AuditService = None,
        user: str = '',
        outlet_id: Optional[int] = None,
        payment_settings: Optional[PaymentSettings] = None
    ):
        """
        Args:
            cart_service: Carrito del dispositivo
            inventory_service: Inventario de la tienda
            gateway: Backend donde se registra la venta
            flow: KIOSK (autoservicio) o POS (caja atendida)
            payment_service: Validación de pagos
            proof_service: Validación de comprobantes
            audit_service: Auditoría (opcional)
            user: Usuario que cobra (vacío en kiosko)
            outlet_id: Tienda; si se indica, el inventario pasa a esa tienda
            payment_settings: Opciones del kiosko (si faltan se piden al backend)
        """
        self.cart_service = cart_service
        self.inventory_service = inventory_service
        self.gateway = gateway
        self.flow = CheckoutFlow(flow)
        self.payment_service = payment_service or PaymentService(gateway)
        self.proof_service = proof_service or ProofService()
        self.audit_service = audit_service
        self.user = user
        if outlet_id is not None:
            inventory_service.set_outlet(outlet_id)
        self._payment_settings = payment_settings

        self.state = CheckoutState.SELECTING
        self.order_type: Optional[OrderType] = None
        self.kiosk_method: Optional[KioskPaymentMethod] = None
        self.allocations: List[PaymentAllocation] = []
        self.proof: Optional[ProofAttachment] = None
        self.guest: Optional[GuestCustomer] = None
        self.transaction_id: Optional[int] = None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _ok(self, **kwargs) -> CheckoutResult:
        return CheckoutResult(ok=True, state=self.state, **kwargs)

    def _fail(self, error: CheckoutError) -> CheckoutResult:
        return CheckoutResult(ok=False, state=self.state, error=error)

    def _closed_error(self) -> Optional[ValidationError]:
        if self.state not in OPEN_STATES:
            return ValidationError(f"El checkout ya no admite cambios (estado {self.state.value})")
        return None

    @property
    def payment_settings(self) -> PaymentSettings:
        """Opciones de cobro del kiosko (se piden al backend una sola vez)."""
        if self._payment_settings is None:
            self._payment_settings = self.inventory_service.get_payment_settings()
        return self._payment_settings

    @property
    def outlet_id(self) -> Optional[int]:
        """La venta se registra en la misma tienda con la que se revalida el stock."""
        return self.inventory_service.outlet_id

    @property
    def total(self) -> int:
        return self.cart_service.total()

    def proof_allowed(self) -> bool:
        """El comprobante solo aplica a pedidos delivery o pagos online."""
        if self.order_type == OrderType.DELIVERY:
            return True
        return any(a.category == PaymentCategory.ONLINE for a in self.allocations)

    def _drop_ineligible_proof(self) -> None:
        if self.proof is not None and not self.proof_allowed():
            self.proof = None
            self.state = CheckoutState.PAYMENT_METHOD_CHOSEN

    # =========================================================================
    # SELECCIÓN
    # =========================================================================

    def select_order_type(self, order_type: Union[OrderType, str]) -> CheckoutResult:
        """Elige para llevar o delivery (obligatorio antes del pago)."""
        closed = self._closed_error()
        if closed:
            return self._fail(closed)

        try:
            order_type = OrderType(order_type)
        except ValueError:
            return self._fail(ValidationError('Tipo de pedido inválido'))

        if self.flow == CheckoutFlow.KIOSK and not self.payment_settings.allows_order_type(order_type):
            return self._fail(ValidationError(f"Pedido '{order_type.value}' no disponible"))

        self.order_type = order_type
        self._drop_ineligible_proof()
        return self._ok()

    def set_guest(self, name: str, phone: str, address: str = '') -> CheckoutResult:
        """Datos del cliente invitado (kiosko sin cuenta)."""
        closed = self._closed_error()
        if closed:
            return self._fail(closed)

        name = (name or '').strip()
        phone = (phone or '').strip()
        address = (address or '').strip()
        if not name or not phone:
            return self._fail(ValidationError('Nombre y teléfono son obligatorios'))
        if self.order_type == OrderType.DELIVERY and not address:
            return self._fail(ValidationError('La dirección es obligatoria para delivery'))

        self.guest = GuestCustomer(name=name, phone=phone, address=address)
        return self._ok()

    def _payment_precheck(self, expected_flow: CheckoutFlow) -> Optional[CheckoutError]:
        closed = self._closed_error()
        if closed:
            return closed
        if self.flow != expected_flow:
            return ValidationError('Método de pago no disponible en este modo')
        if self.order_type is None:
            return ValidationError('Seleccione el tipo de pedido')
        if self.cart_service.is_empty():
            return ValidationError('El carrito está vacío')
        return None

    def choose_payment_method(self, method: Union[KioskPaymentMethod, str]) -> CheckoutResult:
        """
        Kiosko: un único método online por el total del carrito.

        Args:
            method: 'qris' o 'bankTransfer'
        """
        error = self._payment_precheck(CheckoutFlow.KIOSK)
        if error:
            return self._fail(error)

        try:
            method = KioskPaymentMethod(method)
        except ValueError:
            return self._fail(ValidationError('Método de pago inválido'))

        if not self.payment_settings.allows_kiosk_method(method):
            return self._fail(ValidationError('Método de pago no habilitado'))

        self.kiosk_method = method
        self.allocations = [self.payment_service.build_kiosk_allocation(method, self.total)]
        if self.state == CheckoutState.SELECTING:
            self.state = CheckoutState.PAYMENT_METHOD_CHOSEN
        return self._ok()

    def set_allocations(self, raw_allocations: List[RawAllocation]) -> CheckoutResult:
        """
        Caja: reparte el pago entre uno o más métodos.
        La suma debe ser exactamente el total del carrito.
        """
        error = self._payment_precheck(CheckoutFlow.POS)
        if error:
            return self._fail(error)

        allocations, error = self.payment_service.validate_allocations(self.total, raw_allocations)
        if error:
            return self._fail(error)

        self.allocations = allocations
        if self.state == CheckoutState.SELECTING:
            self.state = CheckoutState.PAYMENT_METHOD_CHOSEN
        self._drop_ineligible_proof()
        return self._ok()

    # =========================================================================
    # COMPROBANTE
    # =========================================================================

    def attach_proof(self, file: FileStorage) -> CheckoutResult:
        """Adjunta la imagen del comprobante (opcional)."""
        closed = self._closed_error()
        if closed:
            return self._fail(closed)
        if self.state == CheckoutState.SELECTING:
            return self._fail(ValidationError('Seleccione primero el método de pago'))
        if not self.proof_allowed():
            return self._fail(ValidationError('Este pedido no requiere comprobante'))

        proof, error = self.proof_service.validate(file)
        if error:
            return self._fail(error)

        self.proof = proof
        self.state = CheckoutState.PROOF_ATTACHED
        return self._ok()

    def remove_proof(self) -> CheckoutResult:
        closed = self._closed_error()
        if closed:
            return self._fail(closed)
        self.proof = None
        if self.state == CheckoutState.PROOF_ATTACHED:
            self.state = CheckoutState.PAYMENT_METHOD_CHOSEN
        return self._ok()

    # =========================================================================
    # CANCELAR
    # =========================================================================

    def cancel(self) -> CheckoutResult:
        """Abandona el intento. El carrito no se toca."""
        closed = self._closed_error()
        if closed:
            return self._fail(closed)
        self.state = CheckoutState.ABORTED
        return self._ok()

    # =========================================================================
    # CONFIRMAR
    # =========================================================================

    def _submit_precheck(self) -> Optional[CheckoutError]:
        closed = self._closed_error()
        if closed:
            return closed
        if self.outlet_id is None:
            return ValidationError('Seleccione una tienda')
        if self.cart_service.is_empty():
            return ValidationError('El carrito está vacío')
        if self.order_type is None:
            return ValidationError('Seleccione el tipo de pedido')
        if self.state == CheckoutState.SELECTING or not self.allocations:
            return ValidationError('Seleccione el método de pago')
        if (self.order_type == OrderType.DELIVERY and self.guest is not None
                and not self.guest.address):
            return ValidationError('La dirección es obligatoria para delivery')
        return None

    def _current_allocations(self):
        """
        Reparto vigente contra el total ACTUAL del carrito
        (el carrito pudo cambiar después de elegir el pago).
        """
        if self.flow == CheckoutFlow.KIOSK:
            return [self.payment_service.build_kiosk_allocation(self.kiosk_method, self.total)], None
        return self.payment_service.validate_allocations(self.total, self.allocations)

    def find_stock_conflicts(self, snapshot) -> List[StockConflict]:
        """Líneas del carrito que superan el stock de la foto dada."""
        conflicts = []
        for line in self.cart_service.get_lines():
            available = stock_resolver.unit_stock(line.kind, line.unit_id, snapshot)
            if line.quantity > available:
                conflicts.append(StockConflict(
                    unit_id=line.unit_id,
                    kind=line.kind,
                    name=line.name,
                    requested=line.quantity,
                    available=available
                ))
        return conflicts

    @profile_function(name="Confirmar venta")
    def submit(self) -> CheckoutResult:
        """
        Revalida stock con datos frescos y registra la venta.

        Returns:
            CheckoutResult con transaction_id si se registró

        Raises:
            CollaboratorUnavailableError: Backend caído (el carrito se conserva)
        """
        error = self._submit_precheck()
        if error:
            return self._fail(error)

        allocations, error = self._current_allocations()
        if error:
            return self._fail(error)

        previous_state = self.state
        self.state = CheckoutState.SUBMITTING

        try:
            snapshot = self.inventory_service.refresh()
        except CollaboratorUnavailableError:
            self.state = previous_state
            raise

        conflicts = self.find_stock_conflicts(snapshot)
        if conflicts:
            self.state = previous_state
            conflict_error = StockConflictError(conflicts)
            if self.audit_service:
                self.audit_service.log_stock_conflict(self.user, [c.to_dict() for c in conflicts])
            return self._fail(conflict_error)

        lines = self.cart_service.get_lines()
        request = TransactionRequest(
            outlet_id=self.outlet_id,
            items=[TransactionItem.from_cart_line(line) for line in lines],
            payment_methods=allocations,
            guest=self.guest
        )

        try:
            transaction_id = self.gateway.create_transaction(request)
        except CollaboratorUnavailableError:
            self.state = previous_state
            raise
        except CheckoutError as e:
            # El backend es la autoridad final (otra caja pudo vender antes)
            self.state = previous_state
            if isinstance(e, StockConflictError) and self.audit_service:
                self.audit_service.log_stock_conflict(self.user, [c.to_dict() for c in e.conflicts])
            return self._fail(e)

        self.state = CheckoutState.COMMITTED
        self.transaction_id = transaction_id
        self.allocations = allocations

        self.cart_service.clear_cart()
        self.inventory_service.invalidate()

        # Con la venta ya registrada nada de lo que sigue puede fallar el cobro
        proof_warning = self._upload_proof(transaction_id)
        audit_warning = self._audit_sale(transaction_id, request, allocations, proof_warning)
        return self._ok(transaction_id=transaction_id, warning=proof_warning or audit_warning)

    def _upload_proof(self, transaction_id: int) -> Optional[ProofUploadError]:
        """Sube el comprobante tras la venta. Un fallo es solo advertencia."""
        if self.proof is None:
            return None

        try:
            self.gateway.upload_payment_proof(
                transaction_id, self.proof.payload, self.proof.content_type
            )
        except ProofUploadError as e:
            return e
        except CollaboratorUnavailableError as e:
            return ProofUploadError(transaction_id, f"{e.message}: comprobante no subido")
        return None

    def _audit_sale(
        self,
        transaction_id: int,
        request: TransactionRequest,
        allocations: List[PaymentAllocation],
        proof_warning: Optional[ProofUploadError]
    ) -> Optional[AuditWriteError]:
        """
        Registra la venta en la auditoría.

        Returns:
            AuditWriteError si el archivo de auditoría no se pudo escribir
        """
        if not self.audit_service:
            return None

        try:
            self.audit_service.log_sale_created(
                self.user, transaction_id, request.total,
                sum(item.quantity for item in request.items),
                self.outlet_id, self.flow.value
            )
            # REGLA DE ORO: un log de PAGO por cada método
            for alloc in allocations:
                self.audit_service.log_payment(
                    self.user, transaction_id, alloc.amount,
                    alloc.method_name, alloc.category.value, request.total
                )
            if proof_warning:
                self.audit_service.log_proof_upload_failed(
                    self.user, transaction_id, proof_warning.message
                )
        except OSError as e:
            return AuditWriteError(transaction_id, str(e))
        return None

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Estado del intento para mostrar en pantalla."""
        return {
            'state': self.state.value,
            'flow': self.flow.value,
            'outlet_id': self.outlet_id,
            'order_type': self.order_type.value if self.order_type else None,
            'total': self.total,
            'allocations': [a.to_dict() for a in self.allocations],
            'proof_allowed': self.proof_allowed(),
            'proof_attached': self.proof is not None,
            'guest': self.guest.to_dict() if self.guest else None,
            'transaction_id': self.transaction_id
        }
