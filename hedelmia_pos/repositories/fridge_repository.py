# ==============================================================================
# REPOSITORIO DE REFRIGERADORES
# ==============================================================================
# fridge_loans.json -> [{préstamo}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from hedelmia_pos.repositories.base import ListRepository


class FridgeRepository(ListRepository):
    """Préstamos de refrigeradores a clientes."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'fridge_loans.json'))

    def get_loan(self, loan_id: int) -> Optional[Dict[str, Any]]:
        return self.find_by('id', loan_id)

    def get_loans(
        self,
        customer_id: Optional[int] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        loans = self.get_all()
        if customer_id is not None:
            loans = [l for l in loans if l.get('customer_id') == customer_id]
        if status:
            loans = [l for l in loans if l.get('status') == status]
        return sorted(loans, key=lambda l: l.get('id', 0), reverse=True)
