# ==============================================================================
# REPOSITORIO DE VENTAS
# ==============================================================================
# Encapsula todo el acceso a sales.json
# Las ventas se almacenan como lista: [{venta1}, {venta2}, ...]
# ==============================================================================

import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from hedelmia_pos.config import FOLIO_PREFIX, FOLIO_WIDTH
from hedelmia_pos.models import DATE_FORMAT
from hedelmia_pos.repositories.base import ListRepository


class SalesRepository(ListRepository):
    """
    Repositorio para gestión de ventas.

    Formato de datos en sales.json:
    [
        {
            "id": 1,
            "folio": "V-000001",
            "date": "2024-01-01 10:00:00",
            "items": [...],
            "subtotal": 200.0,
            "discount": {"type": "percent", "value": 10, "amount": 20.0},
            "total": 180.0,
            ...
        }
    ]
    """

    def __init__(self, base_path: str):
        """
        Inicializa el repositorio de ventas.

        Args:
            base_path: Carpeta de datos
        """
        super().__init__(os.path.join(base_path, 'sales.json'))

    def load(self) -> List[Dict[str, Any]]:
        """Todas las ventas, más recientes primero."""
        return sorted(self.get_all(), key=lambda s: s.get('id', 0), reverse=True)

    def get_by_folio(self, folio: str) -> Optional[Dict[str, Any]]:
        """
        Busca una venta por folio.

        Args:
            folio: Folio de la venta (V-000001)

        Returns:
            Datos de la venta o None
        """
        return self.find_by('folio', folio)

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        """
        Agrega una venta nueva.

        Returns:
            Folio de la venta guardada
        """
        self.append(sale_data)
        return sale_data['folio']

    def get_next_folio(self) -> str:
        """
        Genera el siguiente folio.
        Formato: V-XXXXXX donde XXXXXX es número secuencial.
        Debe llamarse dentro de la misma transacción que guarda la venta.

        Returns:
            Siguiente folio disponible
        """
        max_num = 0
        for sale in self.get_all():
            folio = sale.get('folio', '')
            if folio.startswith(FOLIO_PREFIX):
                try:
                    max_num = max(max_num, int(folio[len(FOLIO_PREFIX):]))
                except ValueError:
                    continue
        return f"{FOLIO_PREFIX}{max_num + 1:0{FOLIO_WIDTH}d}"

    def get_sales_by_customer(self, customer_id: int) -> List[Dict[str, Any]]:
        return [s for s in self.load() if s.get('customer_id') == customer_id]

    def get_sales_by_date_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        Ventas cuya fecha cae en [start, end].

        Args:
            start: Fecha inicial (None = sin límite)
            end: Fecha final (None = sin límite)
        """
        def parse_date(ts_str: str) -> Optional[datetime]:
            try:
                return datetime.strptime(ts_str, DATE_FORMAT)
            except (TypeError, ValueError):
                return None

        result = []
        for sale in self.load():
            ts = parse_date(sale.get('date', ''))
            if ts is None:
                continue
            if start and ts < start:
                continue
            if end and ts > end:
                continue
            result.append(sale)
        return result
