# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza toda la lógica de registro de auditoría.
# Formatea mensajes humanizados y categoriza eventos.
# ==============================================================================

import logging
from typing import Any, Dict, List

from hedelmia_pos.errors import StoreError
from hedelmia_pos.models import AuditType
from hedelmia_pos.repositories.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Centraliza:
    - Registro de eventos con mensajes humanizados
    - Categorización de eventos (VENTA, CAJA, CREDITO, STOCK, PRODUCTO, SISTEMA)

    La auditoría se escribe después de confirmar cada operación; si el
    archivo de auditoría falla, la operación ya guardada no se revierte.
    """

    def __init__(self, audit_repo: AuditRepository):
        """
        Inicializa el servicio de auditoría.

        Args:
            audit_repo: Repositorio de auditoría
        """
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: AuditType,
        user: str,
        message: str,
        related_id: Any = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento de auditoría genérico.

        Args:
            log_type: Tipo de evento
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: Folio, ID de producto, etc.
            details: Detalles adicionales
        """
        try:
            self.audit_repo.log(log_type.value, user, message, str(related_id or ''), details)
        except StoreError:
            logger.exception("No se pudo registrar auditoría: %s", message)

    def log_sale_created(self, user: str, sale: Dict[str, Any]) -> None:
        """Registra una venta confirmada."""
        items_count = sum(item['quantity'] for item in sale['items'])
        message = (
            f"Venta {sale['folio']} - Total: ${sale['total']:.2f} - "
            f"{items_count} productos"
        )
        if sale.get('is_credit_sale'):
            message += ' - A crédito'
        self.log(
            AuditType.VENTA,
            user,
            message,
            sale['folio'],
            {
                'total': sale['total'],
                'discount': sale['discount']['amount'],
                'customer_id': sale.get('customer_id'),
                'is_credit_sale': sale.get('is_credit_sale', False),
            }
        )

    def log_cash_movement(self, user: str, movement: Dict[str, Any]) -> None:
        """Registra una entrada o salida de caja manual."""
        sign = '+' if movement['kind'] == 'entrada' else '-'
        message = (
            f"Caja {movement['box']}: {sign}${movement['amount']:.2f} - {movement['concept']}"
        )
        self.log(AuditType.CAJA, user, message, movement['id'], movement)

    def log_cash_movement_deleted(self, user: str, movement: Dict[str, Any]) -> None:
        message = (
            f"Movimiento de caja #{movement['id']} eliminado "
            f"({movement['kind']} ${movement['amount']:.2f}, {movement['concept']})"
        )
        self.log(AuditType.CAJA, user, message, movement['id'], movement)

    def log_customer_balance(
        self,
        user: str,
        customer: Dict[str, Any],
        movement_type: str,
        amount: float,
        old_balance: float
    ) -> None:
        """
        Registra un cambio de saldo de cliente (cargo, abono o ajuste).

        Args:
            user: Usuario
            customer: Cliente ya actualizado
            movement_type: cargo, abono o ajuste
            amount: Monto del movimiento
            old_balance: Saldo previo
        """
        message = (
            f"Cliente {customer['name']}: {movement_type} ${amount:.2f} "
            f"(saldo ${old_balance:.2f} → ${customer['balance']:.2f})"
        )
        self.log(
            AuditType.CREDITO,
            user,
            message,
            customer['id'],
            {'type': movement_type, 'amount': amount, 'from': old_balance, 'to': customer['balance']}
        )

    def log_note_issued(self, user: str, note: Dict[str, Any], customer_name: str) -> None:
        message = f"Pagaré #{note['id']} de {customer_name} por ${note['amount']:.2f}"
        self.log(AuditType.CREDITO, user, message, note['id'], note)

    def log_credit_event(self, user: str, credit: Dict[str, Any], message: str) -> None:
        """Registra alta, pago o cambio de estado de un crédito."""
        self.log(
            AuditType.CREDITO,
            user,
            f"Crédito #{credit['id']}: {message}",
            credit['id'],
            {'amount': credit['amount'], 'remaining': credit['remaining'], 'status': credit['status']}
        )

    def log_stock_change(
        self,
        user: str,
        product: Dict[str, Any],
        movement_type: str,
        quantity: int,
        old_stock: int,
        reference: str = ''
    ) -> None:
        """
        Registra una entrada o salida de stock de producto.

        Args:
            user: Usuario
            product: Producto ya actualizado
            movement_type: entrada o salida
            quantity: Unidades movidas
            old_stock: Stock previo
            reference: Motivo o folio
        """
        sign = '+' if movement_type == 'entrada' else '-'
        message = (
            f"{product['name']}: {sign}{quantity} "
            f"(stock {old_stock} → {product['stock']})"
        )
        if reference:
            message += f" - {reference}"
        self.log(AuditType.STOCK, user, message, product['id'], {'reference': reference})

    def log_material_movement(
        self,
        user: str,
        material: Dict[str, Any],
        movement: Dict[str, Any]
    ) -> None:
        sign = '+' if movement['type'] == 'entrada' else '-'
        message = (
            f"Materia prima {material['name']}: {sign}{movement['quantity']} {material['unit']} "
            f"(stock {material['stock']}, costo prom. ${material['avg_cost']:.2f})"
        )
        self.log(AuditType.STOCK, user, message, material['id'], movement)

    def log_product_event(self, user: str, product: Dict[str, Any], action: str) -> None:
        """Registra alta, edición o desactivación de producto."""
        message = f"Producto {product['name']} {action}"
        self.log(AuditType.PRODUCTO, user, message, product['id'])

    def log_system(self, user: str, message: str, related_id: Any = '') -> None:
        self.log(AuditType.SISTEMA, user, message, related_id)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Últimos eventos registrados."""
        return self.audit_repo.load()[:limit]

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        return self.audit_repo.get_logs_by_type(log_type)
