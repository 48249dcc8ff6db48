# ==============================================================================
# REPOSITORIOS DE INVENTARIO
# ==============================================================================
# products.json            -> {"1": {producto}, ...}
# stock_movements.json     -> [{movimiento de producto}, ...]
# raw_materials.json       -> {"1": {materia prima}, ...}
# material_movements.json  -> [{movimiento de materia prima}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from hedelmia_pos.repositories.base import DictRepository, ListRepository


class ProductRepository(DictRepository):
    """
    Repositorio del catálogo de productos terminados.

    Formato de datos en products.json:
    {
        "1": {"id": 1, "name": "Paleta Mango", "price": 15.0, "stock": 40, ...}
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'products.json'))

    def get_product(self, pid: int) -> Optional[Dict[str, Any]]:
        """Producto por ID o None."""
        return self.get_by_id(pid)

    def save_product(self, product: Dict[str, Any]) -> None:
        """Crea o reemplaza un producto (usa product['id'] como clave)."""
        self.update(product['id'], product)

    def get_all_products(self, active_only: bool = False) -> List[Dict[str, Any]]:
        """
        Lista de productos ordenada por nombre.

        Args:
            active_only: Excluir productos desactivados
        """
        products = list(self.get_all().values())
        if active_only:
            products = [p for p in products if p.get('active', True)]
        return sorted(products, key=lambda p: p.get('name', '').lower())

    def search_by_sku(self, sku: str) -> Optional[Dict[str, Any]]:
        """Busca un producto por SKU exacto (ignorando mayúsculas)."""
        sku = (sku or '').strip().upper()
        if not sku:
            return None
        for product in self.get_all().values():
            if (product.get('sku') or '').upper() == sku:
                return product
        return None


class StockMovementRepository(ListRepository):
    """Historial de entradas y salidas de producto terminado."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'stock_movements.json'))

    def get_for_product(self, pid: int) -> List[Dict[str, Any]]:
        """Movimientos de un producto, más recientes primero."""
        return list(reversed(self.find_all_by('product_id', pid)))


class RawMaterialRepository(DictRepository):
    """
    Repositorio de materias primas.

    Formato de datos en raw_materials.json:
    {
        "1": {"id": 1, "name": "Azúcar", "unit": "kg", "stock": 10.0, "avg_cost": 2.0}
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'raw_materials.json'))

    def get_material(self, material_id: int) -> Optional[Dict[str, Any]]:
        return self.get_by_id(material_id)

    def save_material(self, material: Dict[str, Any]) -> None:
        self.update(material['id'], material)

    def get_all_materials(self, active_only: bool = False) -> List[Dict[str, Any]]:
        materials = list(self.get_all().values())
        if active_only:
            materials = [m for m in materials if m.get('active', True)]
        return sorted(materials, key=lambda m: m.get('name', '').lower())


class MaterialMovementRepository(ListRepository):
    """Historial de movimientos de materia prima."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'material_movements.json'))

    def get_for_material(self, material_id: int) -> List[Dict[str, Any]]:
        return list(reversed(self.find_all_by('material_id', material_id)))
