# ==============================================================================
# SERVICIO DE ESTADÍSTICAS DEL PANEL
# ==============================================================================
# Cifras del panel principal: ventas del día, stock bajo, saldos de caja,
# cuentas por cobrar y refrigeradores prestados.
# Solo lee; nunca guarda totales calculados.
# ==============================================================================

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from hedelmia_pos.services.cash_service import CashService
from hedelmia_pos.services.credit_service import CreditService
from hedelmia_pos.services.fridge_service import FridgeService
from hedelmia_pos.services.inventory_service import InventoryService
from hedelmia_pos.repositories import SalesRepository


class StatsService:
    """
    Servicio de estadísticas para el panel.

    Responsabilidades:
    - Resumen del día
    - Ventas agrupadas por día
    """

    def __init__(
        self,
        sales_repo: SalesRepository,
        inventory_service: InventoryService,
        cash_service: CashService,
        credit_service: CreditService,
        fridge_service: FridgeService
    ):
        self.sales_repo = sales_repo
        self.inventory_service = inventory_service
        self.cash_service = cash_service
        self.credit_service = credit_service
        self.fridge_service = fridge_service

    @staticmethod
    def _day_bounds(day: datetime):
        start = day.replace(hour=0, minute=0, second=0, microsecond=0)
        return start, start + timedelta(days=1) - timedelta(seconds=1)

    def get_dashboard(self, today: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Resumen del panel principal.

        Args:
            today: Día de referencia (por defecto hoy)

        Returns:
            Dict con sales_today, low_stock, cash, receivable, fridges_out
        """
        start, end = self._day_bounds(today or datetime.now())
        sales_today = self.sales_repo.get_sales_by_date_range(start, end)
        low_stock = self.inventory_service.get_low_stock_products()

        return {
            'sales_today': {
                'count': len(sales_today),
                'total': round(sum(s.get('total', 0) for s in sales_today), 2),
                'credit_total': round(
                    sum(s.get('total', 0) for s in sales_today if s.get('is_credit_sale')), 2
                ),
            },
            'low_stock': [
                {'id': p['id'], 'name': p['name'], 'stock': p['stock']}
                for p in low_stock
            ],
            'cash': self.cash_service.balances(),
            'receivable': self.credit_service.total_receivable(),
            'fridges_out': self.fridge_service.fridges_out(),
            'recent_sales': self.sales_repo.load()[:5],
        }

    def sales_by_day(self, days: int = 7, today: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        Totales de venta por día para los últimos `days` días.

        Returns:
            Lista [{'date': 'YYYY-MM-DD', 'count': n, 'total': x}] en orden cronológico
        """
        _, end = self._day_bounds(today or datetime.now())
        start = (end - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0)
        buckets = defaultdict(lambda: {'count': 0, 'total': 0.0})
        for sale in self.sales_repo.get_sales_by_date_range(start, end):
            key = sale['date'][:10]
            buckets[key]['count'] += 1
            buckets[key]['total'] += sale.get('total', 0)

        result = []
        for offset in range(days):
            key = (start + timedelta(days=offset)).strftime('%Y-%m-%d')
            data = buckets.get(key, {'count': 0, 'total': 0.0})
            result.append({'date': key, 'count': data['count'], 'total': round(data['total'], 2)})
        return result
