# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses, independientes del almacenamiento.
# ==============================================================================

from .entities import (
    # Utilidades
    now_str,
    DATE_FORMAT,

    # Inventario
    Product,
    StockMovement,
    RawMaterial,
    RawMaterialMovement,
    MovementType,

    # Clientes y crédito
    Customer,
    CustomerMovement,
    CustomerMovementType,
    PromissoryNote,
    NoteStatus,
    Credit,
    CreditPayment,
    CreditStatus,

    # Ventas
    Sale,
    SaleItem,
    Discount,
    DiscountType,
    PaymentMethod,

    # Caja
    CashMovement,
    CashBox,
    CashSource,

    # Refrigeradores
    FridgeLoan,
    FridgeStatus,

    # Auditoría
    AuditLog,
    AuditType,
)

__all__ = [
    'now_str',
    'DATE_FORMAT',
    'Product',
    'StockMovement',
    'RawMaterial',
    'RawMaterialMovement',
    'MovementType',
    'Customer',
    'CustomerMovement',
    'CustomerMovementType',
    'PromissoryNote',
    'NoteStatus',
    'Credit',
    'CreditPayment',
    'CreditStatus',
    'Sale',
    'SaleItem',
    'Discount',
    'DiscountType',
    'PaymentMethod',
    'CashMovement',
    'CashBox',
    'CashSource',
    'FridgeLoan',
    'FridgeStatus',
    'AuditLog',
    'AuditType',
]
