# ==============================================================================
# REPOSITORIO DE CAJA
# ==============================================================================
# cash_movements.json -> [{movimiento}, ...]
# No existe un saldo guardado: se calcula siempre desde los movimientos.
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from hedelmia_pos.models import CashMovement
from hedelmia_pos.repositories.base import ListRepository


class CashRepository(ListRepository):
    """
    Repositorio de movimientos de caja chica y caja grande.

    Formato:
    [
        {"id": 1, "box": "grande", "kind": "entrada", "concept": "Venta POS",
         "amount": 180.0, "source": "venta", "reference": "V-000001", "date": "..."}
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'cash_movements.json'))

    def get_movements(self, box: Optional[str] = None) -> List[Dict[str, Any]]:
        """Movimientos (de una caja o de todas), más recientes primero."""
        movements = self.get_all() if box is None else self.find_all_by('box', box)
        return sorted(movements, key=lambda m: m.get('id', 0), reverse=True)

    def get_movement(self, movement_id: int) -> Optional[Dict[str, Any]]:
        return self.find_by('id', movement_id)

    def delete_movement(self, movement_id: int) -> Optional[Dict[str, Any]]:
        return self.remove_where('id', movement_id)

    def calculate_balance(self, box: str) -> float:
        """
        Saldo de una caja = Σentradas − Σsalidas.

        Args:
            box: chica o grande
        """
        total = sum(CashMovement.from_dict(m).signed_amount for m in self.find_all_by('box', box))
        return round(total, 2)
