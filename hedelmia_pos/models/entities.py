# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia.
# Los montos se guardan como float redondeado a centavos.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime


DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def now_str() -> str:
    """Timestamp actual en el formato usado por todos los archivos JSON."""
    return datetime.now().strftime(DATE_FORMAT)


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class MovementType(str, Enum):
    """Dirección de un movimiento de stock o de caja."""
    ENTRADA = "entrada"
    SALIDA = "salida"


class CashBox(str, Enum):
    """Cajas de efectivo del negocio."""
    CHICA = "chica"    # Gastos menores
    GRANDE = "grande"  # Recibe las ventas


class CashSource(str, Enum):
    """Origen de un movimiento de caja."""
    MANUAL = "manual"
    VENTA = "venta"


class CustomerMovementType(str, Enum):
    """Tipos de movimiento en la cuenta de un cliente."""
    CARGO = "cargo"    # Aumenta el saldo (venta a crédito)
    ABONO = "abono"    # Disminuye el saldo (pago)
    AJUSTE = "ajuste"  # Corrección administrativa del saldo


class DiscountType(str, Enum):
    """Tipos de descuento aplicables a una venta."""
    AMOUNT = "amount"
    PERCENT = "percent"


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    EFECTIVO = "efectivo"
    TRANSFERENCIA = "transferencia"
    TARJETA = "tarjeta"
    CREDITO = "credito"


class NoteStatus(str, Enum):
    """Estados de un pagaré."""
    VIGENTE = "vigente"
    PAGADO = "pagado"
    CANCELADO = "cancelado"


class CreditStatus(str, Enum):
    """Estados de un crédito. Solo cambian por acción explícita."""
    PENDIENTE = "pendiente"
    PAGADO = "pagado"


class FridgeStatus(str, Enum):
    """Estados de un préstamo de refrigerador."""
    ENTREGADO = "entregado"
    DEVUELTO = "devuelto"


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    VENTA = "VENTA"
    CAJA = "CAJA"
    CREDITO = "CREDITO"
    STOCK = "STOCK"
    PRODUCTO = "PRODUCTO"
    SISTEMA = "SISTEMA"


# ==============================================================================
# ENTIDADES DE INVENTARIO
# ==============================================================================

@dataclass
class Product:
    """
    Producto terminado del catálogo (paleta, helado, etc.).

    Attributes:
        id: Identificador único
        name: Nombre visible; si falta se arma con sabor, tipo y presentación
        flavor: Sabor
        product_type: Tipo (paleta, helado, ...)
        presentation: Presentación (pieza, litro, ...)
        sku: Código interno
        price: Precio de venta
        cost: Costo unitario
        stock: Unidades disponibles, nunca negativo
        min_stock: Umbral de alerta de stock bajo
        active: False = desactivado (nunca se borra)
    """
    id: int
    name: str
    flavor: str = ''
    product_type: str = ''
    presentation: str = ''
    sku: str = ''
    price: float = 0.0
    cost: float = 0.0
    stock: int = 0
    min_stock: int = 0
    active: bool = True
    created_at: str = field(default_factory=now_str)

    @staticmethod
    def build_name(flavor: str, product_type: str, presentation: str) -> str:
        """Nombre compuesto: 'Paleta Mango (pieza)'."""
        base = ' '.join(p for p in (product_type.strip(), flavor.strip()) if p)
        if presentation.strip():
            base = f"{base} ({presentation.strip()})" if base else presentation.strip()
        return base

    def is_low_stock(self, threshold: int) -> bool:
        """Stock bajo: igual o menor al mínimo propio o al umbral general."""
        return self.stock <= max(self.min_stock, threshold)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'id': self.id,
            'name': self.name,
            'flavor': self.flavor,
            'product_type': self.product_type,
            'presentation': self.presentation,
            'sku': self.sku,
            'price': self.price,
            'cost': self.cost,
            'stock': self.stock,
            'min_stock': self.min_stock,
            'active': self.active,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """Crea instancia desde diccionario."""
        return cls(
            id=int(data['id']),
            name=data.get('name', ''),
            flavor=data.get('flavor', ''),
            product_type=data.get('product_type', ''),
            presentation=data.get('presentation', ''),
            sku=data.get('sku', ''),
            price=float(data.get('price', 0.0)),
            cost=float(data.get('cost', 0.0)),
            stock=int(data.get('stock', 0)),
            min_stock=int(data.get('min_stock', 0)),
            active=bool(data.get('active', True)),
            created_at=data.get('created_at', ''),
        )


@dataclass
class StockMovement:
    """Movimiento de stock de producto terminado (entrada/salida)."""
    id: int
    product_id: int
    type: MovementType
    quantity: int
    reference: str = ''
    date: str = field(default_factory=now_str)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'type': _enum_value(self.type),
            'quantity': self.quantity,
            'reference': self.reference,
            'date': self.date,
        }


@dataclass
class RawMaterial:
    """
    Materia prima (azúcar, fruta, leche...).

    Attributes:
        stock: Cantidad disponible en la unidad indicada (admite decimales)
        avg_cost: Costo promedio ponderado por unidad
    """
    id: int
    name: str
    unit: str = 'kg'
    stock: float = 0.0
    avg_cost: float = 0.0
    min_stock: float = 0.0
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'unit': self.unit,
            'stock': self.stock,
            'avg_cost': self.avg_cost,
            'min_stock': self.min_stock,
            'active': self.active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawMaterial':
        return cls(
            id=int(data['id']),
            name=data.get('name', ''),
            unit=data.get('unit', 'kg'),
            stock=float(data.get('stock', 0.0)),
            avg_cost=float(data.get('avg_cost', 0.0)),
            min_stock=float(data.get('min_stock', 0.0)),
            active=bool(data.get('active', True)),
        )


@dataclass
class RawMaterialMovement:
    """Entrada o salida de materia prima. cost_total solo aplica a entradas."""
    id: int
    material_id: int
    type: MovementType
    quantity: float
    cost_total: Optional[float] = None
    note: str = ''
    date: str = field(default_factory=now_str)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'material_id': self.material_id,
            'type': _enum_value(self.type),
            'quantity': self.quantity,
            'cost_total': self.cost_total,
            'note': self.note,
            'date': self.date,
        }


# ==============================================================================
# ENTIDADES DE CLIENTES Y CRÉDITO
# ==============================================================================

@dataclass
class Customer:
    """
    Cliente con cuenta de crédito.

    Attributes:
        credit_limit: Saldo máximo permitido
        balance: Saldo adeudado actual, nunca negativo
    """
    id: int
    name: str
    phone: str = ''
    address: str = ''
    notes: str = ''
    credit_limit: float = 0.0
    balance: float = 0.0
    active: bool = True

    @property
    def available_credit(self) -> float:
        return round(max(0.0, self.credit_limit - self.balance), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'notes': self.notes,
            'credit_limit': self.credit_limit,
            'balance': self.balance,
            'active': self.active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=int(data['id']),
            name=data.get('name', ''),
            phone=data.get('phone', ''),
            address=data.get('address', ''),
            notes=data.get('notes', ''),
            credit_limit=float(data.get('credit_limit', 0.0)),
            balance=float(data.get('balance', 0.0)),
            active=bool(data.get('active', True)),
        )


@dataclass
class CustomerMovement:
    """Historial de cambios de saldo de un cliente."""
    id: int
    customer_id: int
    type: CustomerMovementType
    concept: str
    amount: float
    reference: str = ''
    date: str = field(default_factory=now_str)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'type': _enum_value(self.type),
            'concept': self.concept,
            'amount': self.amount,
            'reference': self.reference,
            'date': self.date,
        }


@dataclass
class PromissoryNote:
    """
    Pagaré firmado por un cliente.
    Es un documento de respaldo: NO modifica el saldo del cliente.
    """
    id: int
    customer_id: int
    amount: float
    date: str = field(default_factory=now_str)
    status: NoteStatus = NoteStatus.VIGENTE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'amount': self.amount,
            'date': self.date,
            'status': _enum_value(self.status),
        }


@dataclass
class CreditPayment:
    """Pago aplicado a un crédito."""
    id: int
    amount: float
    date: str = field(default_factory=now_str)
    note: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': self.amount,
            'date': self.date,
            'note': self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CreditPayment':
        return cls(
            id=int(data.get('id', 0)),
            amount=float(data.get('amount', 0.0)),
            date=data.get('date', ''),
            note=data.get('note', ''),
        )


@dataclass
class Credit:
    """
    Crédito otorgado a un cliente con sus pagos.

    El estado NO cambia automáticamente al liquidarse: se marca pagado
    mediante una acción explícita.
    """
    id: int
    customer_id: int
    amount: float
    date: str = field(default_factory=now_str)
    status: CreditStatus = CreditStatus.PENDIENTE
    concept: str = ''
    payments: List[CreditPayment] = field(default_factory=list)

    @property
    def paid(self) -> float:
        return round(sum(p.amount for p in self.payments), 2)

    @property
    def remaining(self) -> float:
        """Saldo pendiente, nunca menor a cero."""
        return round(max(0.0, self.amount - self.paid), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'amount': self.amount,
            'date': self.date,
            'status': _enum_value(self.status),
            'concept': self.concept,
            'payments': [p.to_dict() for p in self.payments],
            'paid': self.paid,
            'remaining': self.remaining,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Credit':
        try:
            status = CreditStatus(data.get('status', 'pendiente'))
        except ValueError:
            status = CreditStatus.PENDIENTE
        return cls(
            id=int(data['id']),
            customer_id=int(data.get('customer_id', 0)),
            amount=float(data.get('amount', 0.0)),
            date=data.get('date', ''),
            status=status,
            concept=data.get('concept', ''),
            payments=[CreditPayment.from_dict(p) for p in data.get('payments', [])],
        )


# ==============================================================================
# ENTIDADES DE VENTA
# ==============================================================================

@dataclass
class SaleItem:
    """
    Ítem individual dentro de una venta.
    unit_price es una copia del precio al momento de vender.
    """
    product_id: int
    name: str
    quantity: int
    unit_price: float

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'line_total': self.line_total,
        }


@dataclass
class Discount:
    """
    Descuento de una venta.

    Attributes:
        type: amount (monto fijo) o percent (porcentaje, máximo 100)
        value: Valor capturado
    """
    type: DiscountType = DiscountType.AMOUNT
    value: float = 0.0

    def resolve(self, subtotal: float) -> float:
        """
        Monto a descontar sobre el subtotal.
        Nunca supera el subtotal, así el total no baja de cero.
        """
        if self.value <= 0:
            return 0.0
        if self.type == DiscountType.PERCENT:
            amount = subtotal * min(self.value, 100.0) / 100.0
        else:
            amount = self.value
        return round(min(amount, subtotal), 2)

    def to_dict(self, subtotal: float) -> Dict[str, Any]:
        return {
            'type': _enum_value(self.type),
            'value': self.value,
            'amount': self.resolve(subtotal),
        }


@dataclass
class Sale:
    """
    Venta registrada. Inmutable una vez creada.

    Attributes:
        folio: Identificador legible único (V-000001)
        customer_id: Cliente seleccionado (informativo salvo venta a crédito)
        client_name: Nombre libre para clientes sin registro
        is_credit_sale: True = el total se carga a la cuenta del cliente
    """
    id: int
    folio: str
    items: List[SaleItem]
    discount: Discount = field(default_factory=Discount)
    customer_id: Optional[int] = None
    client_name: str = ''
    is_credit_sale: bool = False
    payment_method: PaymentMethod = PaymentMethod.EFECTIVO
    notes: str = ''
    user: str = ''
    date: str = field(default_factory=now_str)

    @property
    def subtotal(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)

    @property
    def total(self) -> float:
        return round(max(0.0, self.subtotal - self.discount.resolve(self.subtotal)), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'folio': self.folio,
            'date': self.date,
            'items': [item.to_dict() for item in self.items],
            'subtotal': self.subtotal,
            'discount': self.discount.to_dict(self.subtotal),
            'total': self.total,
            'customer_id': self.customer_id,
            'client_name': self.client_name,
            'is_credit_sale': self.is_credit_sale,
            'payment_method': _enum_value(self.payment_method),
            'notes': self.notes,
            'user': self.user,
        }


# ==============================================================================
# ENTIDADES DE CAJA
# ==============================================================================

@dataclass
class CashMovement:
    """
    Movimiento de caja. amount siempre es positivo; kind define el signo.
    """
    id: int
    box: CashBox
    kind: MovementType
    concept: str
    amount: float
    source: CashSource = CashSource.MANUAL
    reference: str = ''
    date: str = field(default_factory=now_str)

    @property
    def signed_amount(self) -> float:
        return self.amount if self.kind == MovementType.ENTRADA else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'box': _enum_value(self.box),
            'kind': _enum_value(self.kind),
            'concept': self.concept,
            'amount': self.amount,
            'source': _enum_value(self.source),
            'reference': self.reference,
            'date': self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CashMovement':
        return cls(
            id=int(data.get('id', 0)),
            box=CashBox(data.get('box', CashBox.GRANDE.value)),
            kind=MovementType(data.get('kind', MovementType.ENTRADA.value)),
            concept=data.get('concept', ''),
            amount=float(data.get('amount', 0.0)),
            source=CashSource(data.get('source', CashSource.MANUAL.value)),
            reference=data.get('reference', ''),
            date=data.get('date', ''),
        )


# ==============================================================================
# ENTIDADES DE REFRIGERADORES
# ==============================================================================

@dataclass
class FridgeLoan:
    """Refrigeradores prestados a un cliente."""
    id: int
    customer_id: int
    quantity: int
    delivery_date: str = field(default_factory=now_str)
    status: FridgeStatus = FridgeStatus.ENTREGADO
    return_date: Optional[str] = None
    notes: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'quantity': self.quantity,
            'delivery_date': self.delivery_date,
            'status': _enum_value(self.status),
            'return_date': self.return_date,
            'notes': self.notes,
        }


# ==============================================================================
# ENTIDADES DE AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """
    Registro de auditoría.

    Attributes:
        type: Tipo de evento
        user: Usuario que realizó la acción
        message: Mensaje humanizado
        related_id: Folio, ID de producto, etc.
        details: Información adicional
    """
    type: AuditType
    user: str
    message: str
    timestamp: str = field(default_factory=now_str)
    related_id: str = ''
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': _enum_value(self.type),
            'user': self.user,
            'message': self.message,
            'timestamp': self.timestamp,
            'related_id': self.related_id,
            'details': self.details,
        }
