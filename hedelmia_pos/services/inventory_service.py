# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con productos terminados,
# materias primas y sus movimientos de stock.
#
# Regla principal: el stock nunca queda negativo. Un movimiento que lo haría
# negativo se rechaza completo, jamás se recorta.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from hedelmia_pos.config import LOW_STOCK_THRESHOLD
from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.models import (
    MovementType,
    Product,
    RawMaterial,
    RawMaterialMovement,
    StockMovement,
    now_str,
)
from hedelmia_pos.repositories import (
    MaterialMovementRepository,
    ProductRepository,
    RawMaterialRepository,
    StockMovementRepository,
    transaction,
)
from hedelmia_pos.services.audit_service import AuditService
from hedelmia_pos.services.validators import (
    parse_amount,
    parse_id,
    parse_int,
    parse_quantity,
    parse_units,
)

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Servicio para gestión de inventario.

    Responsabilidades:
    - CRUD de productos (sin borrado físico, solo desactivación)
    - Entradas y salidas de stock de producto terminado
    - Verificación de stock previa a una venta
    - Materias primas con costo promedio ponderado
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        stock_movement_repo: StockMovementRepository,
        material_repo: RawMaterialRepository,
        material_movement_repo: MaterialMovementRepository,
        audit_service: AuditService = None
    ):
        """
        Inicializa el servicio de inventario.

        Args:
            product_repo: Repositorio de productos
            stock_movement_repo: Historial de movimientos de producto
            material_repo: Repositorio de materias primas
            material_movement_repo: Historial de movimientos de materia prima
            audit_service: Servicio de auditoría (opcional)
        """
        self.product_repo = product_repo
        self.stock_movement_repo = stock_movement_repo
        self.material_repo = material_repo
        self.material_movement_repo = material_movement_repo
        self.audit_service = audit_service

    # =========================================================================
    # CONSULTAS DE PRODUCTOS
    # =========================================================================

    def get_product(self, pid: Any) -> Optional[Dict[str, Any]]:
        """
        Obtiene un producto por ID.

        Args:
            pid: ID del producto

        Returns:
            Datos del producto o None
        """
        pid = parse_id(pid)
        if pid is None:
            return None
        return self.product_repo.get_product(pid)

    def get_all_products(self, active_only: bool = False) -> List[Dict[str, Any]]:
        return self.product_repo.get_all_products(active_only)

    def get_low_stock_products(self, threshold: int = LOW_STOCK_THRESHOLD) -> List[Dict[str, Any]]:
        """
        Productos activos con stock igual o menor a su mínimo (o al umbral general).

        Returns:
            Lista ordenada por stock ascendente
        """
        low = [
            p for p in self.product_repo.get_all_products(active_only=True)
            if Product.from_dict(p).is_low_stock(threshold)
        ]
        return sorted(low, key=lambda p: p.get('stock', 0))

    def list_stock_movements(self, pid: Any = None) -> List[Dict[str, Any]]:
        """Movimientos de stock (de un producto o todos), más recientes primero."""
        pid = parse_id(pid)
        if pid is None:
            return list(reversed(self.stock_movement_repo.get_all()))
        return self.stock_movement_repo.get_for_product(pid)

    # =========================================================================
    # CRUD DE PRODUCTOS
    # =========================================================================

    def _validate_product_fields(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Valida precio, costo y mínimo; devuelve error o None."""
        for key, label in (('price', 'El precio'), ('cost', 'El costo')):
            if key in data:
                _, error = parse_amount(data[key], allow_zero=True, label=label)
                if error:
                    return error
        if 'min_stock' in data:
            min_stock, error = parse_int(data['min_stock'], label='El stock mínimo')
            if error:
                return error
            if min_stock < 0:
                return fail(ErrorCode.INVALID_AMOUNT, 'El stock mínimo debe ser un entero no negativo')
        return None

    def create_product(self, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """
        Crea un producto nuevo.

        Args:
            data: name (o flavor/product_type/presentation), price, cost,
                  stock inicial, min_stock, sku
            user: Usuario que crea

        Returns:
            Dict con ok y product, o error
        """
        flavor = (data.get('flavor') or '').strip()
        product_type = (data.get('product_type') or '').strip()
        presentation = (data.get('presentation') or '').strip()
        name = (data.get('name') or '').strip() or Product.build_name(flavor, product_type, presentation)
        if not name:
            return fail(ErrorCode.INVALID_INPUT, 'El producto necesita un nombre o sabor')

        error = self._validate_product_fields(data)
        if error:
            return error

        initial_stock = data.get('stock', 0) or 0
        if initial_stock:
            initial_stock, error = parse_units(initial_stock, label='El stock inicial')
            if error:
                return error

        sku = (data.get('sku') or '').strip().upper()

        with transaction(self.product_repo, self.stock_movement_repo):
            if sku and self.product_repo.search_by_sku(sku):
                return fail(ErrorCode.INVALID_INPUT, f'El SKU {sku} ya existe')

            product = Product(
                id=self.product_repo.next_id(),
                name=name,
                flavor=flavor,
                product_type=product_type,
                presentation=presentation,
                sku=sku,
                price=round(float(data.get('price', 0) or 0), 2),
                cost=round(float(data.get('cost', 0) or 0), 2),
                stock=0,
                min_stock=int(float(data.get('min_stock', 0) or 0)),
            ).to_dict()
            self.product_repo.save_product(product)
            if initial_stock:
                self._apply_stock_delta(product, initial_stock, 'Stock inicial')

        logger.info("Producto creado: %s (#%s)", product['name'], product['id'])
        if self.audit_service:
            self.audit_service.log_product_event(user, product, 'creado')
        return {'ok': True, 'product': product}

    def update_product(self, pid: Any, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """
        Edita un producto. Si se envía stock, la diferencia se registra
        como movimiento de ajuste y nunca puede quedar negativo.

        Args:
            pid: ID del producto
            data: Campos a modificar
            user: Usuario que edita

        Returns:
            Dict con ok y product, o error
        """
        error = self._validate_product_fields(data)
        if error:
            return error

        new_stock = None
        if 'stock' in data:
            new_stock, error = parse_int(data['stock'], label='El stock')
            if error:
                return error
            if new_stock < 0:
                return fail(ErrorCode.INSUFFICIENT_STOCK, 'No puedes tener stock negativo')

        with transaction(self.product_repo, self.stock_movement_repo):
            product = self.get_product(pid)
            if not product:
                return fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', entity='product', id=pid)

            for key in ('flavor', 'product_type', 'presentation'):
                if key in data:
                    product[key] = (data[key] or '').strip()
            if 'name' in data:
                product['name'] = (data['name'] or '').strip() or Product.build_name(
                    product['flavor'], product['product_type'], product['presentation']
                )
            if 'sku' in data:
                sku = (data['sku'] or '').strip().upper()
                existing = self.product_repo.search_by_sku(sku)
                if existing and existing['id'] != product['id']:
                    return fail(ErrorCode.INVALID_INPUT, f'El SKU {sku} ya existe')
                product['sku'] = sku
            for key in ('price', 'cost'):
                if key in data:
                    product[key] = round(float(data[key]), 2)
            if 'min_stock' in data:
                product['min_stock'] = int(float(data['min_stock']))
            if 'active' in data:
                product['active'] = bool(data['active'])

            self.product_repo.save_product(product)
            if new_stock is not None and new_stock != product['stock']:
                self._apply_stock_delta(product, new_stock - product['stock'], 'Ajuste por edición')

        if self.audit_service:
            self.audit_service.log_product_event(user, product, 'editado')
        return {'ok': True, 'product': product}

    def deactivate_product(self, pid: Any, user: str = '') -> Dict[str, Any]:
        """Desactiva un producto. Las ventas previas conservan su referencia."""
        with transaction(self.product_repo):
            product = self.get_product(pid)
            if not product:
                return fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', entity='product', id=pid)
            product['active'] = False
            self.product_repo.save_product(product)

        if self.audit_service:
            self.audit_service.log_product_event(user, product, 'desactivado')
        return {'ok': True, 'product': product}

    # =========================================================================
    # CONTROL DE STOCK
    # =========================================================================

    def _apply_stock_delta(self, product: Dict[str, Any], delta: int, reference: str) -> None:
        """
        Aplica un delta ya validado y registra el movimiento.
        Debe llamarse dentro de una transacción que incluya
        product_repo y stock_movement_repo.
        """
        product['stock'] = int(product['stock']) + delta
        self.product_repo.save_product(product)
        movement = StockMovement(
            id=self.stock_movement_repo.next_id(),
            product_id=product['id'],
            type=MovementType.ENTRADA if delta > 0 else MovementType.SALIDA,
            quantity=abs(delta),
            reference=reference,
        )
        self.stock_movement_repo.append(movement.to_dict())

    def adjust_stock(self, pid: Any, delta: int, reason: str = '', user: str = '') -> Dict[str, Any]:
        """
        Suma (o resta, si delta es negativo) unidades al stock de un producto.

        Args:
            pid: ID del producto
            delta: Unidades a sumar; negativo para restar
            reason: Motivo o referencia del movimiento
            user: Usuario

        Returns:
            Dict con ok y product, o INSUFFICIENT_STOCK si quedaría negativo
        """
        delta, error = parse_int(delta)
        if error:
            return error
        if delta == 0:
            return fail(ErrorCode.INVALID_AMOUNT, 'La cantidad debe ser distinta de 0')

        with transaction(self.product_repo, self.stock_movement_repo):
            product = self.get_product(pid)
            if not product:
                return fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', entity='product', id=pid)
            old_stock = int(product['stock'])
            if old_stock + delta < 0:
                logger.warning(
                    "Salida rechazada: %s tiene %d y se pidieron %d",
                    product['name'], old_stock, -delta
                )
                return fail(
                    ErrorCode.INSUFFICIENT_STOCK,
                    f"Stock insuficiente de {product['name']}. Disponible: {old_stock}",
                    product_id=product['id'],
                    disponible=old_stock,
                )
            self._apply_stock_delta(product, delta, reason)

        if self.audit_service:
            self.audit_service.log_stock_change(
                user, product, 'entrada' if delta > 0 else 'salida', abs(delta), old_stock, reason
            )
        return {'ok': True, 'product': product}

    def adjust_product_stock(
        self,
        pid: Any,
        movement_type: str,
        amount: Any,
        reference: str = '',
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra una entrada o salida de producto terminado.

        Args:
            pid: ID del producto
            movement_type: entrada o salida
            amount: Unidades (entero positivo)
            reference: Motivo (producción, merma, ...)
            user: Usuario
        """
        try:
            movement_type = MovementType(movement_type)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Tipo de movimiento inválido')
        qty, error = parse_units(amount)
        if error:
            return error
        delta = qty if movement_type == MovementType.ENTRADA else -qty
        return self.adjust_stock(pid, delta, reference, user)

    def reserve_for_sale(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Verifica contra el stock actual del almacenamiento que todos los
        renglones de una venta se pueden surtir. No modifica nada.
        Las cantidades de un mismo producto en varios renglones se suman.

        Args:
            items: Lista de {'product_id', 'quantity'}

        Returns:
            Dict con ok y products ({pid: producto}), o el primer error
            (NOT_FOUND, INVALID_AMOUNT, INSUFFICIENT_STOCK) con product_id
        """
        requested: Dict[int, int] = {}
        for item in items:
            pid = parse_id(item.get('product_id'))
            if pid is None:
                return fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', product_id=item.get('product_id'))
            qty, error = parse_units(item.get('quantity'))
            if error:
                error['product_id'] = pid
                return error
            requested[pid] = requested.get(pid, 0) + qty

        products = {}
        for pid, qty in requested.items():
            product = self.product_repo.get_product(pid)
            if not product or not product.get('active', True):
                return fail(ErrorCode.NOT_FOUND, 'Producto no disponible para venta', product_id=pid)
            available = int(product.get('stock', 0))
            if qty > available:
                return fail(
                    ErrorCode.INSUFFICIENT_STOCK,
                    f"Stock insuficiente para {product['name']}. Disponible: {available}",
                    product_id=pid,
                    disponible=available,
                )
            products[pid] = product
        return {'ok': True, 'products': products}

    def apply_sale(self, items: List[Dict[str, Any]], folio: str) -> None:
        """
        Descuenta el stock vendido. Solo se llama dentro de la transacción
        de venta, después de reserve_for_sale.

        Args:
            items: Renglones de la venta (product_id, quantity)
            folio: Folio usado como referencia del movimiento
        """
        for item in items:
            product = self.product_repo.get_product(item['product_id'])
            self._apply_stock_delta(product, -int(item['quantity']), folio)

    # =========================================================================
    # MATERIAS PRIMAS
    # =========================================================================

    def get_material(self, material_id: Any) -> Optional[Dict[str, Any]]:
        material_id = parse_id(material_id)
        if material_id is None:
            return None
        return self.material_repo.get_material(material_id)

    def get_all_materials(self, active_only: bool = False) -> List[Dict[str, Any]]:
        return self.material_repo.get_all_materials(active_only)

    def list_material_movements(self, material_id: Any = None) -> List[Dict[str, Any]]:
        material_id = parse_id(material_id)
        if material_id is None:
            return list(reversed(self.material_movement_repo.get_all()))
        return self.material_movement_repo.get_for_material(material_id)

    def create_material(self, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """
        Da de alta una materia prima.

        Args:
            data: name, unit, stock inicial, avg_cost, min_stock
        """
        name = (data.get('name') or '').strip()
        if not name:
            return fail(ErrorCode.INVALID_INPUT, 'La materia prima necesita un nombre')
        stock, error = parse_amount(data.get('stock', 0) or 0, allow_zero=True, label='El stock')
        if error:
            return error
        avg_cost, error = parse_amount(data.get('avg_cost', 0) or 0, allow_zero=True, label='El costo')
        if error:
            return error
        min_stock, error = parse_amount(data.get('min_stock', 0) or 0, allow_zero=True, label='El mínimo')
        if error:
            return error

        with transaction(self.material_repo):
            material = RawMaterial(
                id=self.material_repo.next_id(),
                name=name,
                unit=(data.get('unit') or 'kg').strip(),
                stock=stock,
                avg_cost=avg_cost,
                min_stock=min_stock,
            ).to_dict()
            self.material_repo.save_material(material)

        if self.audit_service:
            self.audit_service.log_system(user, f"Materia prima {name} creada", material['id'])
        return {'ok': True, 'material': material}

    def update_material(self, material_id: Any, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """Edita nombre, unidad, mínimo o estado. El stock solo cambia con movimientos."""
        with transaction(self.material_repo):
            material = self.get_material(material_id)
            if not material:
                return fail(ErrorCode.NOT_FOUND, 'Materia prima no encontrada', entity='material', id=material_id)
            if 'name' in data:
                name = (data['name'] or '').strip()
                if not name:
                    return fail(ErrorCode.INVALID_INPUT, 'La materia prima necesita un nombre')
                material['name'] = name
            if 'unit' in data:
                material['unit'] = (data['unit'] or 'kg').strip()
            if 'min_stock' in data:
                min_stock, error = parse_amount(data['min_stock'], allow_zero=True, label='El mínimo')
                if error:
                    return error
                material['min_stock'] = min_stock
            if 'active' in data:
                material['active'] = bool(data['active'])
            self.material_repo.save_material(material)
        return {'ok': True, 'material': material}

    def adjust_material_stock(
        self,
        material_id: Any,
        movement_type: str,
        amount: Any,
        cost_total: Any = None,
        note: str = '',
        date: str = None,
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra una entrada o salida de materia prima.

        En una entrada con costo total, el costo promedio se recalcula:
            nuevo = (stock * promedio + costo_total) / (stock + cantidad)
        Una salida solo descuenta stock; el promedio no cambia.

        Args:
            material_id: ID de la materia prima
            movement_type: entrada o salida
            amount: Cantidad (admite decimales)
            cost_total: Costo total pagado por la entrada (opcional)
            note: Nota libre
            date: Fecha del movimiento (por defecto ahora)
            user: Usuario

        Returns:
            Dict con ok, material y movement, o error
        """
        try:
            movement_type = MovementType(movement_type)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Tipo de movimiento inválido')
        qty, error = parse_quantity(amount)
        if error:
            return error
        if cost_total in ('', None) or movement_type == MovementType.SALIDA:
            cost_total = None
        else:
            cost_total, error = parse_amount(cost_total, allow_zero=True, label='El costo total')
            if error:
                return error

        with transaction(self.material_repo, self.material_movement_repo):
            material = self.get_material(material_id)
            if not material:
                return fail(ErrorCode.NOT_FOUND, 'Materia prima no encontrada', entity='material', id=material_id)

            old_stock = float(material['stock'])
            if movement_type == MovementType.ENTRADA:
                new_stock = old_stock + qty
                if cost_total is not None:
                    material['avg_cost'] = round(
                        (old_stock * float(material['avg_cost']) + cost_total) / new_stock, 4
                    )
            else:
                new_stock = old_stock - qty
                if round(new_stock, 6) < 0:
                    return fail(
                        ErrorCode.INSUFFICIENT_STOCK,
                        'No puedes tener stock negativo',
                        material_id=material['id'],
                        disponible=old_stock,
                    )
            material['stock'] = round(new_stock, 6)
            self.material_repo.save_material(material)

            movement = RawMaterialMovement(
                id=self.material_movement_repo.next_id(),
                material_id=material['id'],
                type=movement_type,
                quantity=qty,
                cost_total=cost_total,
                note=note or '',
                date=date or now_str(),
            ).to_dict()
            self.material_movement_repo.append(movement)

        logger.info(
            "Materia prima %s: %s %s (stock %s)",
            material['name'], movement_type.value, qty, material['stock']
        )
        if self.audit_service:
            self.audit_service.log_material_movement(user, material, movement)
        return {'ok': True, 'material': material, 'movement': movement}
