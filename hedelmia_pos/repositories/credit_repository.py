# ==============================================================================
# REPOSITORIOS DE CRÉDITO
# ==============================================================================
# credits.json           -> [{crédito con lista de pagos}, ...]
# promissory_notes.json  -> [{pagaré}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from hedelmia_pos.repositories.base import ListRepository


class CreditRepository(ListRepository):
    """
    Repositorio de créditos.

    Formato:
    [
        {"id": 1, "customer_id": 3, "amount": 1000.0, "status": "pendiente",
         "payments": [{"id": 1, "amount": 400.0, "date": "...", "note": ""}]}
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'credits.json'))

    def get_credit(self, credit_id: int) -> Optional[Dict[str, Any]]:
        return self.find_by('id', credit_id)

    def save_credit(self, credit: Dict[str, Any]) -> None:
        """Crea el crédito o reemplaza el existente con el mismo ID."""
        with self._file_lock:
            data = self.get_all()
            for i, record in enumerate(data):
                if record.get('id') == credit['id']:
                    data[i] = credit
                    break
            else:
                data.append(credit)
            self.save_all(data)

    def get_credits(
        self,
        customer_id: Optional[int] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Créditos filtrados, más recientes primero."""
        credits = self.get_all()
        if customer_id is not None:
            credits = [c for c in credits if c.get('customer_id') == customer_id]
        if status:
            credits = [c for c in credits if c.get('status') == status]
        return sorted(credits, key=lambda c: c.get('id', 0), reverse=True)


class PromissoryNoteRepository(ListRepository):
    """Pagarés firmados por los clientes."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'promissory_notes.json'))

    def get_note(self, note_id: int) -> Optional[Dict[str, Any]]:
        return self.find_by('id', note_id)

    def get_notes(self, customer_id: Optional[int] = None) -> List[Dict[str, Any]]:
        notes = self.get_all()
        if customer_id is not None:
            notes = [n for n in notes if n.get('customer_id') == customer_id]
        return sorted(notes, key=lambda n: n.get('id', 0), reverse=True)
