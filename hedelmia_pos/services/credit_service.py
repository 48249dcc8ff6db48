# ==============================================================================
# SERVICIO DE CRÉDITO
# ==============================================================================
# Cuenta corriente de clientes, pagarés y créditos con pagos.
#
# Reglas:
#   - Un cargo nunca deja el saldo por encima del límite de crédito.
#   - Un pagaré es solo un respaldo: no toca el saldo del cliente.
#   - Un crédito cambia a "pagado" solo por acción explícita, aunque sus
#     pagos ya cubran el monto.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.models import (
    Credit,
    CreditPayment,
    CreditStatus,
    Customer,
    CustomerMovement,
    CustomerMovementType,
    NoteStatus,
    PromissoryNote,
    now_str,
)
from hedelmia_pos.repositories import (
    CreditRepository,
    CustomerMovementRepository,
    CustomerRepository,
    PromissoryNoteRepository,
    transaction,
)
from hedelmia_pos.services.audit_service import AuditService
from hedelmia_pos.services.validators import parse_amount, parse_id

logger = logging.getLogger(__name__)


class CreditService:
    """
    Servicio de clientes y crédito.

    Responsabilidades:
    - CRUD de clientes
    - Cargos (ventas a crédito), abonos y ajustes de saldo
    - Pagarés
    - Créditos y sus pagos
    """

    def __init__(
        self,
        customer_repo: CustomerRepository,
        customer_movement_repo: CustomerMovementRepository,
        credit_repo: CreditRepository,
        note_repo: PromissoryNoteRepository,
        audit_service: AuditService = None
    ):
        self.customer_repo = customer_repo
        self.customer_movement_repo = customer_movement_repo
        self.credit_repo = credit_repo
        self.note_repo = note_repo
        self.audit_service = audit_service

    # =========================================================================
    # CLIENTES
    # =========================================================================

    def get_customer(self, customer_id: Any) -> Optional[Dict[str, Any]]:
        customer_id = parse_id(customer_id)
        if customer_id is None:
            return None
        return self.customer_repo.get_customer(customer_id)

    def list_customers(self, active_only: bool = False) -> List[Dict[str, Any]]:
        return self.customer_repo.get_all_customers(active_only)

    def customer_movements(self, customer_id: Any) -> List[Dict[str, Any]]:
        """Historial de cargos, abonos y ajustes de un cliente."""
        customer_id = parse_id(customer_id)
        if customer_id is None:
            return []
        return self.customer_movement_repo.get_for_customer(customer_id)

    def create_customer(self, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """
        Da de alta un cliente.

        Args:
            data: name, phone, address, notes, credit_limit, balance inicial
            user: Usuario

        Returns:
            Dict con ok y customer, o error
        """
        name = (data.get('name') or '').strip()
        if not name:
            return fail(ErrorCode.INVALID_INPUT, 'El nombre del cliente es obligatorio')
        credit_limit, error = parse_amount(data.get('credit_limit', 0) or 0, allow_zero=True, label='El límite')
        if error:
            return error
        balance, error = parse_amount(data.get('balance', 0) or 0, allow_zero=True, label='El saldo')
        if error:
            return error

        with transaction(self.customer_repo):
            customer = Customer(
                id=self.customer_repo.next_id(),
                name=name,
                phone=(data.get('phone') or '').strip(),
                address=(data.get('address') or '').strip(),
                notes=(data.get('notes') or '').strip(),
                credit_limit=credit_limit,
                balance=balance,
            ).to_dict()
            self.customer_repo.save_customer(customer)

        logger.info("Cliente creado: %s (#%s)", name, customer['id'])
        return {'ok': True, 'customer': customer}

    def update_customer(self, customer_id: Any, data: Dict[str, Any], user: str = '') -> Dict[str, Any]:
        """
        Edita datos de contacto, límite o estado. El saldo se modifica con
        set_customer_balance.
        """
        with transaction(self.customer_repo):
            customer = self.get_customer(customer_id)
            if not customer:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
            if 'name' in data:
                name = (data['name'] or '').strip()
                if not name:
                    return fail(ErrorCode.INVALID_INPUT, 'El nombre del cliente es obligatorio')
                customer['name'] = name
            for key in ('phone', 'address', 'notes'):
                if key in data:
                    customer[key] = (data[key] or '').strip()
            if 'credit_limit' in data:
                limit, error = parse_amount(data['credit_limit'], allow_zero=True, label='El límite')
                if error:
                    return error
                customer['credit_limit'] = limit
            if 'active' in data:
                customer['active'] = bool(data['active'])
            self.customer_repo.save_customer(customer)
        return {'ok': True, 'customer': customer}

    def deactivate_customer(self, customer_id: Any, user: str = '') -> Dict[str, Any]:
        return self.update_customer(customer_id, {'active': False}, user)

    # =========================================================================
    # SALDO DEL CLIENTE
    # =========================================================================

    def check_charge(self, customer: Optional[Dict[str, Any]], amount: float) -> Optional[Dict[str, Any]]:
        """
        Valida que un cargo cabe en el límite del cliente.

        Args:
            customer: Cliente leído del almacenamiento (o None)
            amount: Monto a cargar

        Returns:
            None si el cargo es válido, o el resultado de error
        """
        if not customer:
            return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=None)
        if not customer.get('active', True):
            return fail(
                ErrorCode.CUSTOMER_INACTIVE,
                f"El cliente {customer['name']} está inactivo",
                customer_id=customer['id'],
            )
        account = Customer.from_dict(customer)
        if round(account.balance + amount, 2) > round(account.credit_limit, 2):
            available = account.available_credit
            return fail(
                ErrorCode.CREDIT_LIMIT_EXCEEDED,
                f"El cargo excede el límite de crédito de {customer['name']}. "
                f"Disponible: ${available:.2f}",
                customer_id=customer['id'],
                available=available,
            )
        return None

    def _record_balance_change(
        self,
        customer: Dict[str, Any],
        new_balance: float,
        movement_type: CustomerMovementType,
        amount: float,
        concept: str,
        reference: str = ''
    ) -> None:
        """Guarda el nuevo saldo y su movimiento. Requiere transacción abierta."""
        customer['balance'] = round(new_balance, 2)
        self.customer_repo.save_customer(customer)
        movement = CustomerMovement(
            id=self.customer_movement_repo.next_id(),
            customer_id=customer['id'],
            type=movement_type,
            concept=concept,
            amount=round(amount, 2),
            reference=reference,
        )
        self.customer_movement_repo.append(movement.to_dict())

    def apply_charge(
        self,
        customer: Dict[str, Any],
        amount: float,
        concept: str,
        reference: str = ''
    ) -> None:
        """
        Suma un cargo ya validado con check_charge.
        Solo se llama dentro de una transacción que incluya
        customer_repo y customer_movement_repo.
        """
        self._record_balance_change(
            customer,
            float(customer['balance']) + amount,
            CustomerMovementType.CARGO,
            amount,
            concept,
            reference,
        )

    def charge_customer(
        self,
        customer_id: Any,
        amount: Any,
        concept: str = 'Cargo a cuenta',
        reference: str = '',
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Carga un monto a la cuenta del cliente.

        Args:
            customer_id: ID del cliente
            amount: Monto a cargar
            concept: Descripción del cargo
            reference: Folio u otra referencia
            user: Usuario

        Returns:
            Dict con ok y customer, o CREDIT_LIMIT_EXCEEDED (saldo sin cambios)
        """
        amount, error = parse_amount(amount)
        if error:
            return error

        with transaction(self.customer_repo, self.customer_movement_repo):
            customer = self.get_customer(customer_id)
            error = self.check_charge(customer, amount)
            if error:
                if error.get('customer_id') is None:
                    error['customer_id'] = customer_id
                logger.warning("Cargo rechazado a cliente %s: %s", customer_id, error['code'])
                return error
            old_balance = float(customer['balance'])
            self.apply_charge(customer, amount, concept, reference)

        if self.audit_service:
            self.audit_service.log_customer_balance(user, customer, 'cargo', amount, old_balance)
        return {'ok': True, 'customer': customer}

    def receive_customer_payment(
        self,
        customer_id: Any,
        amount: Any,
        concept: str = 'Abono',
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra un abono que reduce el saldo del cliente.

        Returns:
            Dict con ok y customer, o AMOUNT_EXCEEDS_BALANCE si el abono
            supera el saldo
        """
        amount, error = parse_amount(amount)
        if error:
            return error

        with transaction(self.customer_repo, self.customer_movement_repo):
            customer = self.get_customer(customer_id)
            if not customer:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
            old_balance = float(customer['balance'])
            if amount > round(old_balance, 2):
                return fail(
                    ErrorCode.AMOUNT_EXCEEDS_BALANCE,
                    f'El abono excede el saldo del cliente (${old_balance:.2f})',
                    customer_id=customer['id'],
                )
            self._record_balance_change(
                customer, old_balance - amount, CustomerMovementType.ABONO, amount, concept
            )

        if self.audit_service:
            self.audit_service.log_customer_balance(user, customer, 'abono', amount, old_balance)
        return {'ok': True, 'customer': customer}

    def set_customer_balance(self, customer_id: Any, balance: Any, user: str = '') -> Dict[str, Any]:
        """
        Ajuste administrativo del saldo. No valida contra el límite de crédito.

        Args:
            customer_id: ID del cliente
            balance: Saldo nuevo (>= 0)
            user: Usuario
        """
        balance, error = parse_amount(balance, allow_zero=True, label='El saldo')
        if error:
            return error

        with transaction(self.customer_repo, self.customer_movement_repo):
            customer = self.get_customer(customer_id)
            if not customer:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
            old_balance = float(customer['balance'])
            self._record_balance_change(
                customer,
                balance,
                CustomerMovementType.AJUSTE,
                abs(balance - old_balance),
                f'Ajuste de saldo ${old_balance:.2f} → ${balance:.2f}',
            )

        if self.audit_service:
            self.audit_service.log_customer_balance(
                user, customer, 'ajuste', abs(balance - old_balance), old_balance
            )
        return {'ok': True, 'customer': customer}

    # =========================================================================
    # PAGARÉS
    # =========================================================================

    def issue_promissory_note(
        self,
        customer_id: Any,
        amount: Any,
        date: str = None,
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra un pagaré que respalda parte del saldo del cliente.
        El saldo del cliente NO cambia.

        Args:
            customer_id: ID del cliente
            amount: Monto del pagaré (no mayor al saldo)
            date: Fecha del pagaré
            user: Usuario

        Returns:
            Dict con ok y note, o AMOUNT_EXCEEDS_BALANCE
        """
        amount, error = parse_amount(amount)
        if error:
            return error

        with transaction(self.note_repo):
            customer = self.get_customer(customer_id)
            if not customer:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
            if amount > round(float(customer['balance']), 2):
                return fail(
                    ErrorCode.AMOUNT_EXCEEDS_BALANCE,
                    f"El pagaré excede el saldo del cliente (${float(customer['balance']):.2f})",
                    customer_id=customer['id'],
                )
            note = PromissoryNote(
                id=self.note_repo.next_id(),
                customer_id=customer['id'],
                amount=amount,
                date=date or now_str(),
            ).to_dict()
            self.note_repo.append(note)

        if self.audit_service:
            self.audit_service.log_note_issued(user, note, customer['name'])
        return {'ok': True, 'note': note}

    def set_note_status(self, note_id: Any, status: str, user: str = '') -> Dict[str, Any]:
        """Marca un pagaré como vigente, pagado o cancelado."""
        try:
            status = NoteStatus(status)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Estado de pagaré inválido')
        note_id = parse_id(note_id)
        with transaction(self.note_repo):
            if note_id is None or not self.note_repo.get_note(note_id):
                return fail(ErrorCode.NOT_FOUND, 'Pagaré no encontrado', entity='note', id=note_id)
            self.note_repo.update_where('id', note_id, {'status': status.value})
            note = self.note_repo.get_note(note_id)
        return {'ok': True, 'note': note}

    def list_promissory_notes(self, customer_id: Any = None) -> List[Dict[str, Any]]:
        return self.note_repo.get_notes(parse_id(customer_id))

    # =========================================================================
    # CRÉDITOS
    # =========================================================================

    def get_credit(self, credit_id: Any) -> Optional[Dict[str, Any]]:
        credit_id = parse_id(credit_id)
        if credit_id is None:
            return None
        data = self.credit_repo.get_credit(credit_id)
        return Credit.from_dict(data).to_dict() if data else None

    def list_credits(self, customer_id: Any = None, status: str = None) -> List[Dict[str, Any]]:
        """Créditos con pagado/pendiente recalculados."""
        return [
            Credit.from_dict(c).to_dict()
            for c in self.credit_repo.get_credits(parse_id(customer_id), status)
        ]

    def create_credit(
        self,
        customer_id: Any,
        amount: Any,
        concept: str = '',
        date: str = None,
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra un crédito otorgado a un cliente.

        Returns:
            Dict con ok y credit, o error
        """
        amount, error = parse_amount(amount)
        if error:
            return error

        with transaction(self.credit_repo):
            customer = self.get_customer(customer_id)
            if not customer:
                return fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id)
            credit = Credit(
                id=self.credit_repo.next_id(),
                customer_id=customer['id'],
                amount=amount,
                concept=(concept or '').strip(),
                date=date or now_str(),
            ).to_dict()
            self.credit_repo.save_credit(credit)

        if self.audit_service:
            self.audit_service.log_credit_event(
                user, credit, f"otorgado a {customer['name']} por ${amount:.2f}"
            )
        return {'ok': True, 'credit': credit}

    def record_credit_payment(
        self,
        credit_id: Any,
        amount: Any,
        date: str = None,
        note: str = '',
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Agrega un pago a un crédito.
        El pendiente nunca baja de cero y el estado no cambia.

        Args:
            credit_id: ID del crédito
            amount: Monto del pago
            date: Fecha del pago
            note: Nota libre
            user: Usuario

        Returns:
            Dict con ok y credit actualizado, o error
        """
        amount, error = parse_amount(amount)
        if error:
            return error

        with transaction(self.credit_repo):
            credit_id = parse_id(credit_id)
            data = self.credit_repo.get_credit(credit_id) if credit_id is not None else None
            if not data:
                return fail(ErrorCode.NOT_FOUND, 'Crédito no encontrado', entity='credit', id=credit_id)
            credit = Credit.from_dict(data)
            next_payment_id = max((p.id for p in credit.payments), default=0) + 1
            credit.payments.append(CreditPayment(
                id=next_payment_id,
                amount=amount,
                date=date or now_str(),
                note=note or '',
            ))
            result = credit.to_dict()
            self.credit_repo.save_credit(result)

        if self.audit_service:
            self.audit_service.log_credit_event(
                user, result, f"pago ${amount:.2f}, pendiente ${result['remaining']:.2f}"
            )
        return {'ok': True, 'credit': result}

    def set_credit_status(self, credit_id: Any, status: str, user: str = '') -> Dict[str, Any]:
        """Cambia el estado de un crédito (pendiente/pagado)."""
        try:
            status = CreditStatus(status)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Estado de crédito inválido')

        with transaction(self.credit_repo):
            credit_id = parse_id(credit_id)
            data = self.credit_repo.get_credit(credit_id) if credit_id is not None else None
            if not data:
                return fail(ErrorCode.NOT_FOUND, 'Crédito no encontrado', entity='credit', id=credit_id)
            credit = Credit.from_dict(data)
            old_status = credit.status.value
            credit.status = status
            result = credit.to_dict()
            self.credit_repo.save_credit(result)

        if self.audit_service:
            self.audit_service.log_credit_event(user, result, f"{old_status} → {status.value}")
        return {'ok': True, 'credit': result}

    # =========================================================================
    # RESÚMENES
    # =========================================================================

    def total_receivable(self) -> float:
        """Saldos de clientes más pendiente de créditos no pagados."""
        pending = sum(
            c['remaining'] for c in self.list_credits(status=CreditStatus.PENDIENTE.value)
        )
        return round(self.customer_repo.total_balance() + pending, 2)
