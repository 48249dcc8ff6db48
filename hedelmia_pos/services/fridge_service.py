# ==============================================================================
# SERVICIO DE REFRIGERADORES
# ==============================================================================
# Préstamo de refrigeradores a clientes (tiendas que revenden producto).
# ==============================================================================

import logging
from typing import Any, Dict, List

from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.models import FridgeLoan, FridgeStatus, now_str
from hedelmia_pos.repositories import CustomerRepository, FridgeRepository, transaction
from hedelmia_pos.services.audit_service import AuditService
from hedelmia_pos.services.validators import parse_id, parse_units

logger = logging.getLogger(__name__)


class FridgeService:
    """Alta, devolución y consulta de préstamos de refrigeradores."""

    def __init__(
        self,
        fridge_repo: FridgeRepository,
        customer_repo: CustomerRepository,
        audit_service: AuditService = None
    ):
        self.fridge_repo = fridge_repo
        self.customer_repo = customer_repo
        self.audit_service = audit_service

    def create_loan(
        self,
        customer_id: Any,
        quantity: Any,
        delivery_date: str = None,
        notes: str = '',
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra la entrega de refrigeradores a un cliente.

        Args:
            customer_id: ID del cliente
            quantity: Número de refrigeradores
            delivery_date: Fecha de entrega (por defecto ahora)
            notes: Observaciones
            user: Usuario

        Returns:
            Dict con ok y loan, o error
        """
        qty, error = parse_units(quantity)
        if error:
            return error

        with transaction(self.fridge_repo):
            pid = parse_id(customer_id)
            customer = self.customer_repo.get_customer(pid) if pid is not None else None
            if not customer:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
            loan = FridgeLoan(
                id=self.fridge_repo.next_id(),
                customer_id=customer['id'],
                quantity=qty,
                delivery_date=delivery_date or now_str(),
                notes=(notes or '').strip(),
            ).to_dict()
            self.fridge_repo.append(loan)

        logger.info("Préstamo de %d refrigerador(es) a %s", qty, customer['name'])
        if self.audit_service:
            self.audit_service.log_system(
                user, f"Préstamo #{loan['id']}: {qty} refrigerador(es) a {customer['name']}", loan['id']
            )
        return {'ok': True, 'loan': loan}

    def mark_returned(self, loan_id: Any, return_date: str = None, user: str = '') -> Dict[str, Any]:
        """
        Marca un préstamo como devuelto.

        Returns:
            Dict con ok y loan, o ALREADY_RETURNED si ya estaba devuelto
        """
        loan_id = parse_id(loan_id)
        with transaction(self.fridge_repo):
            loan = self.fridge_repo.get_loan(loan_id) if loan_id is not None else None
            if not loan:
                return fail(ErrorCode.NOT_FOUND, 'Préstamo no encontrado', entity='fridge_loan', id=loan_id)
            if loan.get('status') == FridgeStatus.DEVUELTO.value:
                return fail(ErrorCode.ALREADY_RETURNED, 'El préstamo ya fue devuelto', id=loan_id)
            updates = {'status': FridgeStatus.DEVUELTO.value, 'return_date': return_date or now_str()}
            self.fridge_repo.update_where('id', loan_id, updates)
            loan.update(updates)

        if self.audit_service:
            self.audit_service.log_system(user, f"Préstamo #{loan_id} devuelto", loan_id)
        return {'ok': True, 'loan': loan}

    def list_loans(self, customer_id: Any = None, active_only: bool = False) -> List[Dict[str, Any]]:
        """Préstamos, opcionalmente solo los que siguen entregados."""
        status = FridgeStatus.ENTREGADO.value if active_only else None
        return self.fridge_repo.get_loans(parse_id(customer_id), status)

    def fridges_out(self) -> int:
        """Total de refrigeradores actualmente prestados."""
        return sum(int(l.get('quantity', 0)) for l in self.list_loans(active_only=True))
