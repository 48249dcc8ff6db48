# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica del carrito del punto de venta.
# El carrito se almacena en la sesión de Flask (session['carrito']) salvo que
# se entregue otro diccionario como almacén.
#
# Cada cambio de cantidad vuelve a leer el stock actual del producto; si la
# nueva cantidad no alcanza, el cambio se rechaza y el renglón queda igual.
# ==============================================================================

from typing import Any, Dict, List, MutableMapping, Optional

from flask import session

from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.services.inventory_service import InventoryService
from hedelmia_pos.services.validators import parse_id, parse_int, parse_units


class CartService:
    """
    Servicio para gestión del carrito de venta.

    Responsabilidades:
    - Agregar/quitar productos del carrito
    - Validar stock disponible en cada cambio
    - Calcular totales
    - Limpiar carrito
    """

    CART_KEY = 'carrito'

    def __init__(
        self,
        inventory_service: InventoryService,
        store: Optional[MutableMapping[str, Any]] = None
    ):
        """
        Inicializa el servicio de carrito.

        Args:
            inventory_service: Servicio de inventario
            store: Almacén del carrito (por defecto la sesión de Flask)
        """
        self.inventory_service = inventory_service
        self._store = store

    def _session(self) -> MutableMapping[str, Any]:
        return session if self._store is None else self._store

    def _get_cart(self) -> List[Dict[str, Any]]:
        """
        Obtiene el carrito actual.

        Returns:
            Lista de renglones (copia)
        """
        return [dict(item) for item in self._session().get(self.CART_KEY, [])]

    def _save_cart(self, cart: List[Dict[str, Any]]) -> None:
        """
        Guarda el carrito en la sesión.

        Args:
            cart: Lista de renglones
        """
        store = self._session()
        store[self.CART_KEY] = cart
        if self._store is None:
            session.modified = True

    def get_items(self) -> List[Dict[str, Any]]:
        """Renglones del carrito: product_id, name, quantity, unit_price."""
        return self._get_cart()

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items, total_items, subtotal, items_count
        """
        cart = self._get_cart()
        subtotal = sum(item['quantity'] * item['unit_price'] for item in cart)
        return {
            'items': cart,
            'total_items': sum(item['quantity'] for item in cart),
            'subtotal': round(subtotal, 2),
            'items_count': len(cart)
        }

    def _stock_error(self, product: Dict[str, Any], in_cart: int) -> Dict[str, Any]:
        available = int(product.get('stock', 0))
        return fail(
            ErrorCode.INSUFFICIENT_STOCK,
            f"Stock insuficiente para {product['name']}. Disponible: {available}",
            product_id=product['id'],
            disponible=available,
            en_carrito=in_cart,
        )

    def add_item(self, product_id: Any, quantity: Any = 1) -> Dict[str, Any]:
        """
        Agrega unidades de un producto al carrito.

        Args:
            product_id: ID del producto
            quantity: Unidades a sumar

        Returns:
            Dict con ok y carrito, o error con product_id
        """
        qty, error = parse_units(quantity)
        if error:
            error['product_id'] = product_id
            return error

        product = self.inventory_service.get_product(product_id)
        if not product or not product.get('active', True):
            return fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', product_id=product_id)

        cart = self._get_cart()
        line = next((i for i in cart if i['product_id'] == product['id']), None)
        current = line['quantity'] if line else 0

        # Validar contra el stock actual (incluyendo lo que ya está en el carrito)
        if current + qty > int(product.get('stock', 0)):
            return self._stock_error(product, current)

        if line:
            line['quantity'] = current + qty
        else:
            cart.append({
                'product_id': product['id'],
                'name': product['name'],
                'quantity': qty,
                'unit_price': float(product['price']),
            })
        self._save_cart(cart)
        return {'ok': True, 'carrito': self.get_cart()}

    def set_quantity(self, product_id: Any, quantity: Any) -> Dict[str, Any]:
        """
        Fija la cantidad de un renglón. Cero o menos lo elimina.

        Args:
            product_id: ID del producto
            quantity: Cantidad final deseada
        """
        qty, error = parse_int(quantity)
        if error:
            error['product_id'] = product_id
            return error
        if qty <= 0:
            return self.remove_item(product_id)

        pid = parse_id(product_id)
        cart = self._get_cart()
        line = next((i for i in cart if i['product_id'] == pid), None)
        if not line:
            return fail(ErrorCode.NOT_FOUND, 'El producto no está en el carrito', product_id=product_id)

        product = self.inventory_service.get_product(pid)
        if not product or not product.get('active', True):
            return fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', product_id=pid)
        if qty > int(product.get('stock', 0)):
            return self._stock_error(product, line['quantity'])

        line['quantity'] = qty
        self._save_cart(cart)
        return {'ok': True, 'carrito': self.get_cart()}

    def remove_item(self, product_id: Any) -> Dict[str, Any]:
        """Quita un renglón del carrito."""
        pid = parse_id(product_id)
        cart = [i for i in self._get_cart() if i['product_id'] != pid]
        self._save_cart(cart)
        return {'ok': True, 'carrito': self.get_cart()}

    def clear(self) -> None:
        """Vacía el carrito."""
        self._save_cart([])
