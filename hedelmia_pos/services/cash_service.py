# ==============================================================================
# SERVICIO DE CAJA
# ==============================================================================
# Caja chica y caja grande. El saldo de cada caja NO se guarda: siempre se
# calcula como Σentradas − Σsalidas sobre el log de movimientos.
# Cada venta confirmada deja una entrada en caja grande con origen "venta".
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from hedelmia_pos.config import CASH_BOXES, SALE_CASH_BOX, SALE_CASH_CONCEPT
from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.models import CashBox, CashMovement, CashSource, MovementType, now_str
from hedelmia_pos.repositories import CashRepository, transaction
from hedelmia_pos.services.audit_service import AuditService
from hedelmia_pos.services.pin_service import PinService
from hedelmia_pos.services.validators import parse_amount, parse_id

logger = logging.getLogger(__name__)


class CashService:
    """
    Servicio de movimientos de caja.

    Responsabilidades:
    - Registrar entradas/salidas manuales
    - Registrar la entrada automática de cada venta
    - Calcular saldos desde el log
    - Eliminar movimientos previa confirmación con PIN
    """

    def __init__(
        self,
        cash_repo: CashRepository,
        pin_service: PinService,
        audit_service: AuditService = None
    ):
        self.cash_repo = cash_repo
        self.pin_service = pin_service
        self.audit_service = audit_service

    # =========================================================================
    # MOVIMIENTOS
    # =========================================================================

    def _build_movement(
        self,
        box: CashBox,
        kind: MovementType,
        concept: str,
        amount: float,
        source: CashSource,
        reference: str = '',
        date: str = None
    ) -> Dict[str, Any]:
        """Crea y guarda el movimiento. Requiere estar dentro de una transacción."""
        movement = CashMovement(
            id=self.cash_repo.next_id(),
            box=box,
            kind=kind,
            concept=concept,
            amount=amount,
            source=source,
            reference=reference,
            date=date or now_str(),
        ).to_dict()
        self.cash_repo.append(movement)
        return movement

    def post_movement(
        self,
        box: str,
        kind: str,
        concept: str,
        amount: Any,
        date: str = None,
        source: str = CashSource.MANUAL.value,
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Registra un movimiento de caja.

        Args:
            box: chica o grande
            kind: entrada o salida
            concept: Descripción (obligatoria)
            amount: Monto positivo
            date: Fecha (por defecto ahora)
            source: manual o venta
            user: Usuario

        Returns:
            Dict con ok, movement y balance de la caja, o error
        """
        try:
            box = CashBox(box)
            kind = MovementType(kind)
            source = CashSource(source)
        except ValueError:
            return fail(ErrorCode.INVALID_INPUT, 'Caja, tipo u origen inválido')

        concept = (concept or '').strip()
        if not concept:
            return fail(ErrorCode.INVALID_INPUT, 'El concepto es obligatorio')

        amount, error = parse_amount(amount)
        if error:
            return error

        with transaction(self.cash_repo):
            movement = self._build_movement(box, kind, concept, amount, source, date=date)
            balance = self.cash_repo.calculate_balance(box.value)

        logger.info(
            "Caja %s: %s $%.2f (%s)", box.value, kind.value, amount, concept
        )
        if self.audit_service:
            self.audit_service.log_cash_movement(user, movement)
        return {'ok': True, 'movement': movement, 'balance': balance}

    def record_sale_entry(self, total: float, folio: str, date: str = None) -> Optional[Dict[str, Any]]:
        """
        Entrada automática de una venta en caja grande.
        Solo se llama dentro de la transacción de venta. Una venta con
        total 0 no genera movimiento.

        Args:
            total: Total de la venta
            folio: Folio usado como referencia
            date: Fecha de la venta
        """
        if total <= 0:
            return None
        return self._build_movement(
            CashBox(SALE_CASH_BOX),
            MovementType.ENTRADA,
            f"{SALE_CASH_CONCEPT} {folio}",
            round(total, 2),
            CashSource.VENTA,
            reference=folio,
            date=date,
        )

    def delete_movement(self, movement_id: Any, pin: Any, user: str = '') -> Dict[str, Any]:
        """
        Elimina un movimiento manual después de confirmar el PIN.
        Los movimientos generados por ventas no se pueden eliminar.

        Args:
            movement_id: ID del movimiento
            pin: PIN de finanzas
            user: Usuario
        """
        check = self.pin_service.verify(pin)
        if not check['ok']:
            return check

        movement_id = parse_id(movement_id)
        with transaction(self.cash_repo):
            movement = self.cash_repo.get_movement(movement_id) if movement_id is not None else None
            if not movement:
                return fail(ErrorCode.NOT_FOUND, 'Movimiento no encontrado', entity='cash_movement', id=movement_id)
            if movement.get('source') == CashSource.VENTA.value:
                return fail(
                    ErrorCode.INVALID_INPUT,
                    'Los movimientos de ventas no se pueden eliminar',
                    id=movement_id,
                )
            self.cash_repo.delete_movement(movement_id)

        logger.info("Movimiento de caja #%s eliminado", movement_id)
        if self.audit_service:
            self.audit_service.log_cash_movement_deleted(user, movement)
        return {'ok': True, 'movement': movement}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def balance(self, box: str) -> Dict[str, Any]:
        """
        Saldo de una caja calculado desde los movimientos.

        Returns:
            Dict con ok, box y balance
        """
        if box not in CASH_BOXES:
            return fail(ErrorCode.INVALID_INPUT, 'Caja inválida')
        return {'ok': True, 'box': box, 'balance': self.cash_repo.calculate_balance(box)}

    def balances(self) -> Dict[str, float]:
        """Saldo de todas las cajas: {'chica': ..., 'grande': ...}."""
        return {box: self.cash_repo.calculate_balance(box) for box in CASH_BOXES}

    def list_movements(self, box: str = None, limit: int = None) -> List[Dict[str, Any]]:
        """Movimientos más recientes primero."""
        movements = self.cash_repo.get_movements(box)
        return movements[:limit] if limit else movements
