# ==============================================================================
# SERVICIO DE EXPORTACIÓN CSV
# ==============================================================================
# Genera un CSV por familia de entidades para abrir en Excel.
# ==============================================================================

import csv
import io
from typing import Any, Callable, Dict, List, Tuple

from hedelmia_pos.services.cash_service import CashService
from hedelmia_pos.services.credit_service import CreditService
from hedelmia_pos.services.fridge_service import FridgeService
from hedelmia_pos.services.inventory_service import InventoryService
from hedelmia_pos.services.sales_service import SalesService


class ExportService:
    """
    Exportación de datos a CSV.

    Entidades disponibles: ventas, items_venta, productos, clientes,
    creditos, pagares, caja, refrigeradores, materias.
    """

    def __init__(
        self,
        sales_service: SalesService,
        inventory_service: InventoryService,
        credit_service: CreditService,
        cash_service: CashService,
        fridge_service: FridgeService
    ):
        self.sales_service = sales_service
        self.inventory_service = inventory_service
        self.credit_service = credit_service
        self.cash_service = cash_service
        self.fridge_service = fridge_service
        self._exporters: Dict[str, Callable[[], Tuple[List[str], List[List[Any]]]]] = {
            'ventas': self._sales,
            'items_venta': self._sale_items,
            'productos': self._products,
            'clientes': self._customers,
            'creditos': self._credits,
            'pagares': self._notes,
            'caja': self._cash,
            'refrigeradores': self._fridges,
            'materias': self._materials,
        }

    @property
    def entities(self) -> List[str]:
        return list(self._exporters)

    def export(self, entity: str) -> str:
        """
        Texto CSV de una entidad.

        Args:
            entity: Nombre de la entidad (ver `entities`)

        Raises:
            KeyError: Si la entidad no existe
        """
        header, rows = self._exporters[entity]()
        si = io.StringIO()
        writer = csv.writer(si)
        writer.writerow(header)
        writer.writerows(rows)
        return si.getvalue()

    # =========================================================================
    # EXPORTADORES
    # =========================================================================

    def _sales(self):
        header = ['Folio', 'Fecha', 'Cliente', 'Crédito', 'Método', 'Subtotal', 'Descuento', 'Total']
        rows = [
            [
                s['folio'], s['date'], s.get('client_name', ''),
                'Sí' if s.get('is_credit_sale') else 'No', s.get('payment_method', ''),
                s['subtotal'], s['discount']['amount'], s['total'],
            ]
            for s in self.sales_service.list_sales()
        ]
        return header, rows

    def _sale_items(self):
        header = ['Folio', 'Producto', 'Cantidad', 'Precio unitario', 'Importe']
        rows = []
        for s in self.sales_service.list_sales():
            for item in s['items']:
                rows.append([
                    s['folio'], item['name'], item['quantity'], item['unit_price'], item['line_total'],
                ])
        return header, rows

    def _products(self):
        header = ['ID', 'Nombre', 'SKU', 'Precio', 'Costo', 'Stock', 'Mínimo', 'Activo']
        rows = [
            [p['id'], p['name'], p.get('sku', ''), p['price'], p['cost'], p['stock'],
             p.get('min_stock', 0), 'Sí' if p.get('active', True) else 'No']
            for p in self.inventory_service.get_all_products()
        ]
        return header, rows

    def _customers(self):
        header = ['ID', 'Nombre', 'Teléfono', 'Límite', 'Saldo', 'Activo']
        rows = [
            [c['id'], c['name'], c.get('phone', ''), c['credit_limit'], c['balance'],
             'Sí' if c.get('active', True) else 'No']
            for c in self.credit_service.list_customers()
        ]
        return header, rows

    def _credits(self):
        header = ['ID', 'Cliente', 'Fecha', 'Monto', 'Pagado', 'Pendiente', 'Estado']
        rows = [
            [c['id'], c['customer_id'], c['date'], c['amount'], c['paid'], c['remaining'], c['status']]
            for c in self.credit_service.list_credits()
        ]
        return header, rows

    def _notes(self):
        header = ['ID', 'Cliente', 'Fecha', 'Monto', 'Estado']
        rows = [
            [n['id'], n['customer_id'], n['date'], n['amount'], n['status']]
            for n in self.credit_service.list_promissory_notes()
        ]
        return header, rows

    def _cash(self):
        header = ['ID', 'Caja', 'Tipo', 'Concepto', 'Monto', 'Origen', 'Referencia', 'Fecha']
        rows = [
            [m['id'], m['box'], m['kind'], m['concept'], m['amount'], m['source'],
             m.get('reference', ''), m['date']]
            for m in self.cash_service.list_movements()
        ]
        return header, rows

    def _fridges(self):
        header = ['ID', 'Cliente', 'Cantidad', 'Entrega', 'Estado', 'Devolución']
        rows = [
            [l['id'], l['customer_id'], l['quantity'], l['delivery_date'], l['status'],
             l.get('return_date') or '']
            for l in self.fridge_service.list_loans()
        ]
        return header, rows

    def _materials(self):
        header = ['ID', 'Nombre', 'Unidad', 'Stock', 'Costo promedio']
        rows = [
            [m['id'], m['name'], m['unit'], m['stock'], m['avg_cost']]
            for m in self.inventory_service.get_all_materials()
        ]
        return header, rows
