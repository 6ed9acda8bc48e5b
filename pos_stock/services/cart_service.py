# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica del carrito: agregar, cambiar cantidades, quitar y
# calcular totales contra el stock vendible conocido.
#
# El carrito vive SOLO en el slot durable inyectado (ICartStorage): cada
# consulta lo lee y cada cambio lo vuelve a guardar. Así un mismo servicio
# sirve a varios navegadores cuando el slot es la sesión Flask.
#
# Formato guardado:
#   {"version": 1, "cart": [{unit_id, kind, name, price, quantity, ...}]}
# ==============================================================================

from typing import Any, Dict, List, Optional, Union

from pos_stock import config
from pos_stock.models.entities import CartLine, SaleUnit, SaleUnitKind
from pos_stock.repositories.interfaces import ICartStorage


STORAGE_VERSION = 1


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar líneas
    - Limitar cantidades al stock disponible (sin lanzar excepciones)
    - Calcular totales (siempre desde las líneas)
    - Persistir en el slot del dispositivo

    Una línea por (unit_id, kind). Las líneas con cantidad <= 0 no existen.
    """

    def __init__(self, storage: ICartStorage, storage_key: str = config.CART_STORAGE_KEY):
        """
        Args:
            storage: Slot durable (memoria, archivo JSON, sesión Flask)
            storage_key: Clave del slot
        """
        self.storage = storage
        self.storage_key = storage_key

    # =========================================================================
    # PERSISTENCIA
    # =========================================================================

    def _load(self) -> List[CartLine]:
        """
        Lee el carrito guardado.
        Datos corruptos o de otro formato → carrito vacío.
        Claves (unit_id, kind) repetidas → se conserva la primera línea.
        """
        raw = self.storage.read(self.storage_key)
        if not isinstance(raw, dict) or not isinstance(raw.get('cart'), list):
            return []

        try:
            lines = [CartLine.from_dict(item) for item in raw['cart']]
        except (TypeError, ValueError, AttributeError):
            return []

        cart = []
        seen = set()
        for line in lines:
            if line.quantity <= 0 or line.key in seen:
                continue
            seen.add(line.key)
            cart.append(line)
        return cart

    def _save(self, lines: List[CartLine]) -> None:
        self.storage.write(self.storage_key, {
            'version': STORAGE_VERSION,
            'cart': [line.to_dict() for line in lines]
        })

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    @staticmethod
    def _find(lines: List[CartLine], unit_id: int, kind: SaleUnitKind) -> Optional[CartLine]:
        for line in lines:
            if line.unit_id == unit_id and line.kind == kind:
                return line
        return None

    def get_lines(self) -> List[CartLine]:
        """Líneas recién leídas del slot (modificarlas no altera el carrito)."""
        return self._load()

    def is_empty(self) -> bool:
        return not self._load()

    def total(self) -> int:
        """Total del carrito, recalculado en cada llamada."""
        return sum(line.price * line.quantity for line in self._load())

    def total_items(self) -> int:
        return sum(line.quantity for line in self._load())

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items, total_items, total_monto, items_count
        """
        lines = self._load()
        cart = self._summary(lines)
        cart['items'] = [line.to_dict() for line in lines]
        return cart

    @staticmethod
    def _summary(lines: List[CartLine]) -> Dict[str, Any]:
        return {
            'total_items': sum(line.quantity for line in lines),
            'total_monto': sum(line.price * line.quantity for line in lines),
            'items_count': len(lines)
        }

    def _rejected(self, lines: List[CartLine], error: str, disponible: int = None) -> Dict[str, Any]:
        """Resultado de una operación que no cambió nada."""
        result = {'ok': False, 'changed': False, 'error': error, 'carrito': self._summary(lines)}
        if disponible is not None:
            result['disponible'] = disponible
        return result

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def add_to_cart(self, unit: SaleUnit) -> Dict[str, Any]:
        """
        Agrega UNA unidad al carrito.

        - Si la línea existe: +1 solo si la nueva cantidad no supera el stock
        - Si es nueva: cantidad 1 solo si hay stock (> 0)
        - Si no se puede, no cambia nada (sin excepción)

        Args:
            unit: Unidad vendible con su stock calculado

        Returns:
            Dict con resultado (ok, changed, mensaje/error, carrito)
        """
        lines = self._load()
        existing = self._find(lines, unit.id, unit.kind)

        if existing:
            nueva_cantidad = existing.quantity + 1
            if nueva_cantidad > unit.available_stock:
                return self._rejected(
                    lines,
                    f"Stock insuficiente. Ya tienes {existing.quantity} en carrito. "
                    f"Disponible: {unit.available_stock}",
                    unit.available_stock
                )
            existing.quantity = nueva_cantidad
            existing.available_stock = unit.available_stock
        else:
            if unit.available_stock <= 0:
                return self._rejected(lines, f"{unit.name} sin stock", 0)
            lines.append(CartLine(
                unit_id=unit.id,
                kind=unit.kind,
                name=unit.name,
                price=unit.price,
                quantity=1,
                available_stock=unit.available_stock,
                outlet_id=unit.outlet_id
            ))

        self._save(lines)

        return {
            'ok': True,
            'changed': True,
            'mensaje': f"{unit.name} agregado al carrito",
            'carrito': self._summary(lines)
        }

    def update_quantity(
        self,
        unit_id: int,
        kind: Union[SaleUnitKind, str],
        delta: int
    ) -> Dict[str, Any]:
        """
        Cambia la cantidad de una línea en `delta` (positivo o negativo).

        - nueva > stock conocido de la línea → no cambia nada
        - nueva <= 0 → la línea se elimina

        Returns:
            Dict con resultado (ok, changed, mensaje/error, carrito)
        """
        lines = self._load()
        try:
            kind = SaleUnitKind(kind)
            delta = int(delta)
        except (TypeError, ValueError):
            return self._rejected(lines, 'Datos inválidos')

        line = self._find(lines, unit_id, kind)
        if not line:
            return self._rejected(lines, 'Item no encontrado en el carrito')

        nueva_cantidad = line.quantity + delta
        if nueva_cantidad > line.available_stock:
            return self._rejected(
                lines,
                f"Stock insuficiente. Disponible: {line.available_stock}",
                line.available_stock
            )

        if nueva_cantidad <= 0:
            lines.remove(line)
            mensaje = f"{line.name} eliminado del carrito"
        else:
            line.quantity = nueva_cantidad
            mensaje = 'Cantidad actualizada'

        self._save(lines)

        return {
            'ok': True,
            'changed': True,
            'mensaje': mensaje,
            'carrito': self._summary(lines)
        }

    def remove_from_cart(self, unit_id: int, kind: Union[SaleUnitKind, str]) -> Dict[str, Any]:
        """Elimina la línea sin condiciones."""
        lines = self._load()
        try:
            kind = SaleUnitKind(kind)
        except ValueError:
            return self._rejected(lines, 'Tipo de unidad inválido')

        line = self._find(lines, unit_id, kind)
        if not line:
            return self._rejected(lines, 'Item no encontrado en el carrito')

        lines.remove(line)
        self._save(lines)

        return {
            'ok': True,
            'changed': True,
            'mensaje': f"{line.name} eliminado del carrito",
            'carrito': self._summary(lines)
        }

    def clear_cart(self) -> Dict[str, Any]:
        """Vacía el carrito."""
        self._save([])
        return {'ok': True, 'changed': True, 'mensaje': 'Carrito limpiado', 'carrito': self._summary([])}
