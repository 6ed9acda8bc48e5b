# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Todo el dinero es ENTERO (unidad mínima de la moneda, p. ej. Rp 15000).
# Las entidades del catálogo son inmutables: el motor de stock solo lee
# una foto (snapshot) del inventario que entrega el backend.
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class SaleUnitKind(str, Enum):
    """Tipo de unidad vendible."""
    PRODUCT = "product"   # Producto atómico con stock propio
    PACKAGE = "package"   # Paquete armado con productos
    BUNDLE = "bundle"     # Combo de productos y/o paquetes


class PaymentCategory(str, Enum):
    """Categorías de pago aceptadas por el backend."""
    OFFLINE = "offline"
    ONLINE = "online"
    FOOD_DELIVERY = "foodDelivery"


class PaymentSubCategory(str, Enum):
    """Subcategorías de pago (billeteras, QR, apps de delivery)."""
    E_WALLET = "eWallet"
    QRIS = "qris"
    SHOPEE_FOOD = "shopeeFood"
    GO_FOOD = "goFood"
    GRAB_FOOD = "grabFood"
    MAXIM_FOOD = "maximFood"
    TIKTOK = "tiktok"


class OrderType(str, Enum):
    """Tipos de pedido del kiosko."""
    TAKEAWAY = "takeaway"  # Cliente recoge en tienda
    DELIVERY = "delivery"  # Envío


class KioskPaymentMethod(str, Enum):
    """Métodos que el cliente puede elegir en el kiosko."""
    QRIS = "qris"
    BANK_TRANSFER = "bankTransfer"


class CheckoutFlow(str, Enum):
    """Flujo de cobro."""
    KIOSK = "kiosk"  # Autoservicio: un solo método, monto = total
    POS = "pos"      # Caja atendida: pago dividido en varios métodos


class CheckoutState(str, Enum):
    """Estados de un intento de checkout."""
    SELECTING = "SELECTING"
    PAYMENT_METHOD_CHOSEN = "PAYMENT_METHOD_CHOSEN"
    PROOF_ATTACHED = "PROOF_ATTACHED"
    SUBMITTING = "SUBMITTING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

@dataclass(frozen=True)
class Outlet:
    """Tienda / local dueño de productos, paquetes y combos."""
    id: int
    name: str
    address: str = ''
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Outlet':
        """Crea instancia desde diccionario."""
        return cls(
            id=_to_int(data.get('id')),
            name=data.get('name', ''),
            address=data.get('address', ''),
            is_active=bool(data.get('is_active', True))
        )


@dataclass(frozen=True)
class AtomicProduct:
    """
    Producto atómico: es lo único que tiene stock real.

    Attributes:
        id: Identificador del producto
        name: Nombre
        price: Precio (entero, unidad mínima)
        stock: Cantidad en inventario (>= 0)
        outlet_id: Tienda dueña
        is_deleted: Borrado lógico (soft-delete)
        category_id: Categoría (opcional)
        brand_id: Marca (opcional)
    """
    id: int
    name: str
    price: int
    stock: int
    outlet_id: int
    is_deleted: bool = False
    category_id: Optional[int] = None
    brand_id: Optional[int] = None

    def __post_init__(self):
        if self.stock < 0:
            raise ValueError(f"Stock negativo en producto {self.id}: {self.stock}")

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'stock': self.stock,
            'outlet_id': self.outlet_id,
            'is_deleted': self.is_deleted,
            'category_id': self.category_id,
            'brand_id': self.brand_id
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AtomicProduct':
        """Crea instancia desde diccionario. El stock negativo se lleva a 0."""
        return cls(
            id=_to_int(data.get('id')),
            name=data.get('name', ''),
            price=_to_int(data.get('price')),
            stock=max(0, _to_int(data.get('stock'))),
            outlet_id=_to_int(data.get('outlet_id')),
            is_deleted=bool(data.get('is_deleted', False)),
            category_id=data.get('category_id'),
            brand_id=data.get('brand_id')
        )


@dataclass(frozen=True)
class PackageComponent:
    """
    Componente de un paquete: SIEMPRE un producto atómico.
    Un paquete no puede contener combos ni otros paquetes.
    """
    product_id: int
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"Cantidad inválida en componente {self.product_id}: {self.quantity}")

    def to_dict(self) -> Dict[str, Any]:
        return {'product_id': self.product_id, 'quantity': self.quantity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackageComponent':
        return cls(
            product_id=_to_int(data.get('product_id')),
            quantity=_to_int(data.get('quantity'))
        )


@dataclass(frozen=True)
class ProductPackage:
    """
    Paquete armado con productos. Su stock se CALCULA, nunca se guarda.

    Attributes:
        id: Identificador del paquete
        name: Nombre
        price: Precio del paquete
        components: Productos y cantidades requeridas
        outlet_id: Tienda dueña
        is_active: Si está a la venta
    """
    id: int
    name: str
    price: int
    components: Tuple[PackageComponent, ...] = ()
    outlet_id: int = 0
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'components': [c.to_dict() for c in self.components],
            'outlet_id': self.outlet_id,
            'is_active': self.is_active
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductPackage':
        """Crea instancia desde diccionario."""
        return cls(
            id=_to_int(data.get('id')),
            name=data.get('name', ''),
            price=_to_int(data.get('price')),
            components=tuple(PackageComponent.from_dict(c) for c in data.get('components', [])),
            outlet_id=_to_int(data.get('outlet_id')),
            is_active=bool(data.get('is_active', True))
        )


@dataclass(frozen=True)
class BundleProductItem:
    """Ítem de combo que apunta directo a un producto."""
    product_id: int
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"Cantidad inválida en ítem de combo (producto {self.product_id})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'package_id': None,
            'is_package': False,
            'quantity': self.quantity
        }


@dataclass(frozen=True)
class BundlePackageItem:
    """Ítem de combo que apunta a un paquete."""
    package_id: int
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"Cantidad inválida en ítem de combo (paquete {self.package_id})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': None,
            'package_id': self.package_id,
            'is_package': True,
            'quantity': self.quantity
        }


# Un ítem de combo es producto O paquete, nunca ambos
BundleItem = Union[BundleProductItem, BundlePackageItem]


def bundle_item_from_dict(data: Dict[str, Any]) -> BundleItem:
    """
    Crea el ítem de combo correcto según la bandera is_package.

    Raises:
        ValueError: Si is_package=True pero no hay package_id
    """
    quantity = _to_int(data.get('quantity'))
    if data.get('is_package'):
        if data.get('package_id') is None:
            raise ValueError("Ítem de combo marcado como paquete sin package_id")
        return BundlePackageItem(package_id=_to_int(data['package_id']), quantity=quantity)
    return BundleProductItem(product_id=_to_int(data.get('product_id')), quantity=quantity)


@dataclass(frozen=True)
class Bundle:
    """
    Combo de productos y/o paquetes. Su stock se CALCULA, nunca se guarda.

    Attributes:
        id: Identificador del combo
        name: Nombre
        price: Precio del combo
        items: Ítems (producto o paquete) con cantidades
        outlet_id: Tienda dueña
        is_active: Si está a la venta
    """
    id: int
    name: str
    price: int
    items: Tuple[BundleItem, ...] = ()
    outlet_id: int = 0
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'items': [i.to_dict() for i in self.items],
            'outlet_id': self.outlet_id,
            'is_active': self.is_active
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Bundle':
        """Crea instancia desde diccionario."""
        return cls(
            id=_to_int(data.get('id')),
            name=data.get('name', ''),
            price=_to_int(data.get('price')),
            items=tuple(bundle_item_from_dict(i) for i in data.get('items', [])),
            outlet_id=_to_int(data.get('outlet_id')),
            is_active=bool(data.get('is_active', True))
        )


# ==============================================================================
# SNAPSHOT DE INVENTARIO
# ==============================================================================

@dataclass(frozen=True)
class InventorySnapshot:
    """
    Foto inmutable del catálogo de una tienda en un momento dado.

    Los índices son de solo lectura (MappingProxyType). Para cambios
    se pide una foto nueva al backend.
    """
    outlet_id: Optional[int]
    products: Mapping[int, AtomicProduct] = field(default_factory=lambda: MappingProxyType({}))
    packages: Mapping[int, ProductPackage] = field(default_factory=lambda: MappingProxyType({}))
    bundles: Mapping[int, Bundle] = field(default_factory=lambda: MappingProxyType({}))
    fetched_at: str = ''
    generation: int = 0

    @classmethod
    def build(
        cls,
        outlet_id: Optional[int],
        products: Iterable[AtomicProduct] = (),
        packages: Iterable[ProductPackage] = (),
        bundles: Iterable[Bundle] = (),
        generation: int = 0
    ) -> 'InventorySnapshot':
        """Arma la foto indexando cada colección por id."""
        return cls(
            outlet_id=outlet_id,
            products=MappingProxyType({p.id: p for p in products}),
            packages=MappingProxyType({p.id: p for p in packages}),
            bundles=MappingProxyType({b.id: b for b in bundles}),
            fetched_at=datetime.now(timezone.utc).isoformat(),
            generation=generation
        )

    def sellable_products(self) -> List[AtomicProduct]:
        """Productos no borrados."""
        return [p for p in self.products.values() if not p.is_deleted]

    def active_packages(self) -> List[ProductPackage]:
        """Paquetes activos."""
        return [p for p in self.packages.values() if p.is_active]

    def active_bundles(self) -> List[Bundle]:
        """Combos activos."""
        return [b for b in self.bundles.values() if b.is_active]


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass
class SaleUnit:
    """
    Unidad que la pantalla entrega al carrito al pulsar "agregar".

    Attributes:
        id: ID del producto, paquete o combo
        kind: Tipo de unidad
        name: Nombre a mostrar
        price: Precio unitario
        available_stock: Stock vendible calculado en ese momento
        outlet_id: Tienda
    """
    id: int
    kind: SaleUnitKind
    name: str
    price: int
    available_stock: int
    outlet_id: Optional[int] = None

    @classmethod
    def from_product(cls, product: AtomicProduct) -> 'SaleUnit':
        return cls(
            id=product.id,
            kind=SaleUnitKind.PRODUCT,
            name=product.name,
            price=product.price,
            available_stock=0 if product.is_deleted else product.stock,
            outlet_id=product.outlet_id
        )

    @classmethod
    def from_package(cls, package: ProductPackage, stock: int) -> 'SaleUnit':
        return cls(
            id=package.id,
            kind=SaleUnitKind.PACKAGE,
            name=package.name,
            price=package.price,
            available_stock=stock,
            outlet_id=package.outlet_id
        )

    @classmethod
    def from_bundle(cls, bundle: Bundle, stock: int) -> 'SaleUnit':
        return cls(
            id=bundle.id,
            kind=SaleUnitKind.BUNDLE,
            name=bundle.name,
            price=bundle.price,
            available_stock=stock,
            outlet_id=bundle.outlet_id
        )


@dataclass
class CartLine:
    """
    Línea del carrito. La clave (unit_id, kind) es única dentro del carrito.

    Attributes:
        unit_id: ID de la unidad vendida
        kind: Tipo de unidad
        name: Nombre
        price: Precio unitario
        quantity: Cantidad en carrito (> 0)
        available_stock: Último stock conocido al agregar/actualizar
        outlet_id: Tienda
    """
    unit_id: int
    kind: SaleUnitKind
    name: str
    price: int
    quantity: int
    available_stock: int
    outlet_id: Optional[int] = None

    @property
    def key(self) -> Tuple[int, SaleUnitKind]:
        return (self.unit_id, self.kind)

    @property
    def subtotal(self) -> int:
        """Subtotal de esta línea."""
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para el almacenamiento del carrito."""
        return {
            'unit_id': self.unit_id,
            'kind': self.kind.value,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'available_stock': self.available_stock,
            'outlet_id': self.outlet_id
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        """
        Crea instancia desde el almacenamiento.

        Raises:
            ValueError: Si el tipo de unidad no es válido
        """
        return cls(
            unit_id=_to_int(data.get('unit_id')),
            kind=SaleUnitKind(data.get('kind')),
            name=data.get('name', ''),
            price=_to_int(data.get('price')),
            quantity=_to_int(data.get('quantity')),
            available_stock=_to_int(data.get('available_stock')),
            outlet_id=data.get('outlet_id')
        )


# ==============================================================================
# ENTIDADES DE PAGO
# ==============================================================================

@dataclass
class PaymentAllocation:
    """
    Parte del pago asignada a un método.

    Attributes:
        category: Categoría (offline, online, foodDelivery)
        method_name: Nombre visible del método ("Tunai", "QRIS Statis"...)
        amount: Monto (entero, unidad mínima)
        sub_category: Subcategoría opcional
    """
    category: PaymentCategory
    method_name: str
    amount: int
    sub_category: Optional[PaymentSubCategory] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para el backend."""
        return {
            'category': self.category.value,
            'sub_category': self.sub_category.value if self.sub_category else None,
            'method_name': self.method_name,
            'amount': self.amount
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaymentAllocation':
        """Crea instancia desde diccionario."""
        sub = data.get('sub_category')
        return cls(
            category=PaymentCategory(data.get('category')),
            method_name=data.get('method_name', ''),
            amount=_to_int(data.get('amount')),
            sub_category=PaymentSubCategory(sub) if sub else None
        )


@dataclass
class PaymentSettings:
    """
    Opciones de cobro habilitadas para el kiosko.
    Las administra el backend; aquí solo se leen.
    """
    takeaway_enabled: bool = True
    delivery_enabled: bool = True
    qris_static_enabled: bool = True
    bank_transfer_enabled: bool = True
    qris_merchant_name: str = ''
    bank_name: str = ''
    bank_account_number: str = ''
    bank_account_name: str = ''

    def allows_order_type(self, order_type: OrderType) -> bool:
        if order_type == OrderType.TAKEAWAY:
            return self.takeaway_enabled
        return self.delivery_enabled

    def allows_kiosk_method(self, method: KioskPaymentMethod) -> bool:
        if method == KioskPaymentMethod.QRIS:
            return self.qris_static_enabled
        return self.bank_transfer_enabled

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaymentSettings':
        return cls(
            takeaway_enabled=bool(data.get('takeaway_enabled', True)),
            delivery_enabled=bool(data.get('delivery_enabled', True)),
            qris_static_enabled=bool(data.get('qris_static_enabled', True)),
            bank_transfer_enabled=bool(data.get('bank_transfer_enabled', True)),
            qris_merchant_name=data.get('qris_merchant_name', ''),
            bank_name=data.get('bank_name', ''),
            bank_account_number=data.get('bank_account_number', ''),
            bank_account_name=data.get('bank_account_name', '')
        )


@dataclass
class GuestCustomer:
    """Datos de un cliente sin cuenta (kiosko)."""
    name: str
    phone: str
    address: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'phone': self.phone, 'address': self.address}


# ==============================================================================
# ENTIDADES DE TRANSACCIÓN
# ==============================================================================

@dataclass
class TransactionItem:
    """Línea enviada al backend al confirmar la venta."""
    unit_id: int
    quantity: int
    price: int
    is_package: bool = False
    is_bundle: bool = False

    @property
    def kind(self) -> SaleUnitKind:
        if self.is_bundle:
            return SaleUnitKind.BUNDLE
        if self.is_package:
            return SaleUnitKind.PACKAGE
        return SaleUnitKind.PRODUCT

    @classmethod
    def from_cart_line(cls, line: CartLine) -> 'TransactionItem':
        return cls(
            unit_id=line.unit_id,
            quantity=line.quantity,
            price=line.price,
            is_package=line.kind == SaleUnitKind.PACKAGE,
            is_bundle=line.kind == SaleUnitKind.BUNDLE
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unit_id': self.unit_id,
            'quantity': self.quantity,
            'price': self.price,
            'is_package': self.is_package,
            'is_bundle': self.is_bundle
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransactionItem':
        return cls(
            unit_id=_to_int(data.get('unit_id')),
            quantity=_to_int(data.get('quantity')),
            price=_to_int(data.get('price')),
            is_package=bool(data.get('is_package', False)),
            is_bundle=bool(data.get('is_bundle', False))
        )


@dataclass
class TransactionRequest:
    """
    Pedido de creación de transacción.

    Attributes:
        outlet_id: Tienda donde se vende
        items: Líneas vendidas
        payment_methods: Reparto del pago
        guest: Cliente invitado (solo kiosko)
    """
    outlet_id: int
    items: List[TransactionItem]
    payment_methods: List[PaymentAllocation]
    guest: Optional[GuestCustomer] = None

    @property
    def total(self) -> int:
        return sum(i.price * i.quantity for i in self.items)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para el backend."""
        return {
            'outlet_id': self.outlet_id,
            'items': [i.to_dict() for i in self.items],
            'payment_methods': [p.to_dict() for p in self.payment_methods],
            'guest': self.guest.to_dict() if self.guest else None
        }


@dataclass
class Transaction:
    """Transacción registrada por el backend (historial)."""
    id: int
    user_id: str
    outlet_id: int
    items: List[TransactionItem] = field(default_factory=list)
    total: int = 0
    timestamp: int = 0
    payment_methods: List[PaymentAllocation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para mostrar en historial."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'outlet_id': self.outlet_id,
            'items': [i.to_dict() for i in self.items],
            'total': self.total,
            'timestamp': self.timestamp,
            'payment_methods': [p.to_dict() for p in self.payment_methods]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Crea instancia desde diccionario."""
        return cls(
            id=_to_int(data.get('id')),
            user_id=str(data.get('user_id', '')),
            outlet_id=_to_int(data.get('outlet_id')),
            items=[TransactionItem.from_dict(i) for i in data.get('items', [])],
            total=_to_int(data.get('total')),
            timestamp=_to_int(data.get('timestamp')),
            payment_methods=[PaymentAllocation.from_dict(p) for p in data.get('payment_methods', [])]
        )
