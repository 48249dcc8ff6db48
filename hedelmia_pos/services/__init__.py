# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Los servicios reciben repositorios por constructor y devuelven dicts
# {'ok': True, ...} o {'ok': False, 'code': ..., 'error': ...}.
# No conocen Flask, salvo CartService (carrito en la sesión).
# ==============================================================================

from hedelmia_pos.services.audit_service import AuditService
from hedelmia_pos.services.pin_service import PinService
from hedelmia_pos.services.inventory_service import InventoryService
from hedelmia_pos.services.cash_service import CashService
from hedelmia_pos.services.credit_service import CreditService
from hedelmia_pos.services.cart_service import CartService
from hedelmia_pos.services.sales_service import SalesService
from hedelmia_pos.services.fridge_service import FridgeService
from hedelmia_pos.services.stats_service import StatsService
from hedelmia_pos.services.export_service import ExportService

__all__ = [
    'AuditService',
    'PinService',
    'InventoryService',
    'CashService',
    'CreditService',
    'CartService',
    'SalesService',
    'FridgeService',
    'StatsService',
    'ExportService',
]
