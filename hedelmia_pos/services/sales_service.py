# ==============================================================================
# SERVICIO DE VENTAS
# ==============================================================================
# Centraliza la confirmación de ventas del punto de venta.
#
# Flujo de una venta:
#   ARMADO (carrito) → VALIDACIÓN → CONFIRMADA | RECHAZADA
#
# Toda la validación ocurre antes de escribir nada. La escritura se hace en
# una sola transacción y en este orden: venta → caja → crédito → stock.
# Si algo falla, todos los archivos vuelven a su estado previo.
# ==============================================================================

import logging
import math
from typing import Any, Dict, List, Optional

from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.models import Discount, DiscountType, PaymentMethod, Sale, SaleItem, now_str
from hedelmia_pos.performance_logger import profile_function
from hedelmia_pos.repositories import SalesRepository, transaction
from hedelmia_pos.services.audit_service import AuditService
from hedelmia_pos.services.cash_service import CashService
from hedelmia_pos.services.credit_service import CreditService
from hedelmia_pos.services.inventory_service import InventoryService
from hedelmia_pos.services.validators import parse_id

logger = logging.getLogger(__name__)


class SalesService:
    """
    Servicio para gestión de ventas.

    Responsabilidades:
    - Validar y confirmar ventas (carrito o lista de renglones)
    - Calcular subtotal, descuento y total
    - Asignar folio consecutivo
    - Coordinar inventario, caja y crédito en una sola transacción
    """

    def __init__(
        self,
        sales_repo: SalesRepository,
        inventory_service: InventoryService,
        cash_service: CashService,
        credit_service: CreditService,
        audit_service: AuditService = None
    ):
        """
        Inicializa el servicio de ventas.

        Args:
            sales_repo: Repositorio de ventas
            inventory_service: Servicio de inventario
            cash_service: Servicio de caja
            credit_service: Servicio de crédito
            audit_service: Servicio de auditoría (opcional)
        """
        self.sales_repo = sales_repo
        self.inventory_service = inventory_service
        self.cash_service = cash_service
        self.credit_service = credit_service
        self.audit_service = audit_service

    # =========================================================================
    # VALIDACIONES
    # =========================================================================

    @staticmethod
    def _parse_discount(discount: Any) -> Any:
        """
        Convierte el descuento recibido en un Discount.

        Args:
            discount: None, Discount o dict {'type': 'amount'|'percent', 'value': n}

        Returns:
            Discount o resultado de error
        """
        if discount is None or discount == {}:
            return Discount()
        if isinstance(discount, Discount):
            return discount
        if not isinstance(discount, dict):
            return fail(ErrorCode.INVALID_INPUT, 'Descuento inválido')
        try:
            discount_type = DiscountType(discount.get('type') or DiscountType.AMOUNT.value)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Tipo de descuento inválido')
        try:
            value = float(discount.get('value') or 0)
        except (TypeError, ValueError):
            return fail(ErrorCode.INVALID_AMOUNT, 'El descuento no es un número válido')
        if not math.isfinite(value) or value < 0:
            return fail(ErrorCode.INVALID_AMOUNT, 'El descuento no puede ser negativo')
        return Discount(type=discount_type, value=round(value, 2))

    def _build_items(
        self,
        cart_items: List[Dict[str, Any]],
        products: Dict[int, Dict[str, Any]]
    ) -> List[SaleItem]:
        """
        Construye los renglones de venta con el precio de catálogo leído
        dentro de la transacción. El precio que traiga el renglón se ignora.
        """
        sale_items = []
        for cart_item in cart_items:
            pid = parse_id(cart_item.get('product_id'))
            product = products[pid]
            sale_items.append(SaleItem(
                product_id=pid,
                name=product['name'],
                quantity=int(float(cart_item['quantity'])),
                unit_price=round(float(product.get('price', 0)), 2),
            ))
        return sale_items

    # =========================================================================
    # CONFIRMACIÓN DE VENTAS
    # =========================================================================

    @profile_function(name="Confirmar venta")
    def checkout(
        self,
        cart_items: List[Dict[str, Any]],
        customer_id: Any = None,
        is_credit_sale: bool = False,
        discount: Any = None,
        payment_method: str = None,
        client_name: str = '',
        notes: str = '',
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Confirma una venta.
        Esta es la ÚNICA función que crea ventas.

        Args:
            cart_items: Renglones [{'product_id', 'quantity'}]; el precio sale del catálogo
            customer_id: Cliente seleccionado (solo informativo si no es a crédito)
            is_credit_sale: True = cargar el total a la cuenta del cliente
            discount: {'type': 'amount'|'percent', 'value': n}
            payment_method: efectivo, transferencia, tarjeta o credito
            client_name: Nombre libre para clientes sin registro
            notes: Observaciones
            user: Usuario que vende

        Returns:
            {'ok': True, 'sale': {...}} o
            {'ok': False, 'code': ..., 'error': ..., 'product_id'/'customer_id'?}
        """
        if cart_items and (
            not isinstance(cart_items, list)
            or not all(isinstance(item, dict) for item in cart_items)
        ):
            return fail(ErrorCode.INVALID_INPUT, 'Los renglones de la venta tienen un formato inválido')
        if not cart_items:
            return fail(ErrorCode.EMPTY_CART, 'El carrito está vacío')

        parsed_discount = self._parse_discount(discount)
        if isinstance(parsed_discount, dict):
            return parsed_discount

        if not payment_method:
            payment_method = PaymentMethod.CREDITO.value if is_credit_sale else PaymentMethod.EFECTIVO.value
        try:
            payment_method = PaymentMethod(payment_method)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Método de pago inválido')
        if (payment_method == PaymentMethod.CREDITO) != bool(is_credit_sale):
            return fail(
                ErrorCode.INVALID_INPUT,
                'El método de pago no corresponde al tipo de venta (crédito o contado)'
            )

        selected_customer_id = None
        if customer_id not in (None, ''):
            selected_customer_id = parse_id(customer_id)
            if selected_customer_id is None:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
        if is_credit_sale and selected_customer_id is None:
            return fail(ErrorCode.INVALID_INPUT, 'Selecciona un cliente para la venta a crédito')

        repos = (
            self.sales_repo,
            self.cash_service.cash_repo,
            self.credit_service.customer_repo,
            self.credit_service.customer_movement_repo,
            self.inventory_service.product_repo,
            self.inventory_service.stock_movement_repo,
        )
        with transaction(*repos):
            # ── VALIDACIÓN (lee el estado actual, no escribe) ──
            check = self.inventory_service.reserve_for_sale(cart_items)
            if not check['ok']:
                logger.warning("Venta rechazada: %s", check['error'])
                return check

            sale_items = self._build_items(cart_items, check['products'])

            customer = None
            if selected_customer_id is not None:
                customer = self.credit_service.get_customer(selected_customer_id)
                if not customer:
                    return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=selected_customer_id)

            sale = Sale(
                id=self.sales_repo.next_id(),
                folio=self.sales_repo.get_next_folio(),
                items=sale_items,
                discount=parsed_discount,
                customer_id=selected_customer_id,
                client_name=(client_name or (customer['name'] if customer else '')).strip(),
                is_credit_sale=bool(is_credit_sale),
                payment_method=payment_method,
                notes=(notes or '').strip(),
                user=user or '',
                date=now_str(),
            )
            total = sale.total

            if is_credit_sale:
                error = self.credit_service.check_charge(customer, total)
                if error:
                    logger.warning("Venta a crédito rechazada: %s", error['code'])
                    return error

            # ── CONFIRMACIÓN (orden: venta → caja → crédito → stock) ──
            sale_data = sale.to_dict()
            self.sales_repo.create_sale(sale_data)
            self.cash_service.record_sale_entry(total, sale.folio, sale.date)
            if is_credit_sale and total > 0:
                self.credit_service.apply_charge(
                    customer, total, f"Venta a crédito {sale.folio}", sale.folio
                )
            self.inventory_service.apply_sale(
                [item.to_dict() for item in sale_items], sale.folio
            )

        logger.info(
            "Venta %s confirmada: $%.2f (%d renglones)%s",
            sale.folio, total, len(sale_items), ' a crédito' if is_credit_sale else ''
        )
        if self.audit_service:
            self.audit_service.log_sale_created(user, sale_data)
        return {'ok': True, 'sale': sale_data}

    def checkout_cart(self, cart_service, **options: Any) -> Dict[str, Any]:
        """
        Confirma el carrito actual y lo vacía solo si la venta se guardó.

        Args:
            cart_service: Servicio de carrito
            **options: customer_id, is_credit_sale, discount, ... (ver checkout)
        """
        result = self.checkout(cart_service.get_items(), **options)
        if result['ok']:
            cart_service.clear()
        return result

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_sale(self, folio: str) -> Optional[Dict[str, Any]]:
        return self.sales_repo.get_by_folio(folio)

    def list_sales(self, customer_id: Any = None, limit: int = None) -> List[Dict[str, Any]]:
        """Ventas más recientes primero."""
        customer_id = parse_id(customer_id)
        sales = (
            self.sales_repo.load() if customer_id is None
            else self.sales_repo.get_sales_by_customer(customer_id)
        )
        return sales[:limit] if limit else sales
