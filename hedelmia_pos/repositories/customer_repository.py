# ==============================================================================
# REPOSITORIOS DE CLIENTES
# ==============================================================================
# customers.json           -> {"1": {cliente}, ...}
# customer_movements.json  -> [{cargo/abono/ajuste}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from hedelmia_pos.repositories.base import DictRepository, ListRepository


class CustomerRepository(DictRepository):
    """
    Repositorio de clientes.

    Formato de datos en customers.json:
    {
        "1": {"id": 1, "name": "Abarrotes Luna", "credit_limit": 1000.0, "balance": 250.0, ...}
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'customers.json'))

    def get_customer(self, customer_id: int) -> Optional[Dict[str, Any]]:
        return self.get_by_id(customer_id)

    def save_customer(self, customer: Dict[str, Any]) -> None:
        self.update(customer['id'], customer)

    def get_all_customers(self, active_only: bool = False) -> List[Dict[str, Any]]:
        customers = list(self.get_all().values())
        if active_only:
            customers = [c for c in customers if c.get('active', True)]
        return sorted(customers, key=lambda c: c.get('name', '').lower())

    def total_balance(self) -> float:
        """Suma de saldos de todos los clientes."""
        return round(sum(float(c.get('balance', 0)) for c in self.get_all().values()), 2)


class CustomerMovementRepository(ListRepository):
    """Historial de cambios de saldo por cliente."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'customer_movements.json'))

    def get_for_customer(self, customer_id: int) -> List[Dict[str, Any]]:
        """Movimientos de un cliente, más recientes primero."""
        return list(reversed(self.find_all_by('customer_id', customer_id)))
