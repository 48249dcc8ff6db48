# ==============================================================================
# SERVICIO DE PIN DE FINANZAS
# ==============================================================================
# Un solo PIN compartido confirma operaciones delicadas (borrar movimientos
# de caja). Es una confirmación, no un control de acceso.
#
# El PIN se guarda con generate_password_hash (pbkdf2:sha256 con sal).
# Instalaciones antiguas guardaban un SHA-256 sin sal en hexadecimal: se
# acepta y se reemplaza por el formato nuevo al primer uso correcto.
# ==============================================================================

import hashlib
import hmac
import logging
import re
from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from hedelmia_pos.config import PIN_MIN_LENGTH
from hedelmia_pos.errors import ErrorCode, fail
from hedelmia_pos.repositories import SettingsRepository

logger = logging.getLogger(__name__)

PIN_SETTING_KEY = 'hedelmia_finance_pin_hash'

_LEGACY_HASH_RE = re.compile(r'^[0-9a-f]{64}$')


def _is_legacy_hash(stored: str) -> bool:
    """Detecta el formato antiguo: SHA-256 hexadecimal sin sal."""
    return bool(_LEGACY_HASH_RE.match(stored or ''))


def _check_legacy(stored: str, pin: str) -> bool:
    digest = hashlib.sha256(pin.encode('utf-8')).hexdigest()
    return hmac.compare_digest(digest, stored)


class PinService:
    """Alta, cambio y verificación del PIN de finanzas."""

    def __init__(self, settings_repo: SettingsRepository, audit_service=None):
        """
        Args:
            settings_repo: Repositorio donde vive el hash
            audit_service: Servicio de auditoría (opcional)
        """
        self.settings_repo = settings_repo
        self.audit_service = audit_service

    def _stored_hash(self) -> Optional[str]:
        return self.settings_repo.get_setting(PIN_SETTING_KEY) or None

    def has_pin(self) -> bool:
        """True si ya hay un PIN configurado."""
        return self._stored_hash() is not None

    def _matches(self, stored: str, pin: str) -> bool:
        if _is_legacy_hash(stored):
            return _check_legacy(stored, pin)
        return check_password_hash(stored, pin)

    def verify(self, pin: Any) -> Dict[str, Any]:
        """
        Verifica un PIN.

        Args:
            pin: PIN capturado

        Returns:
            {'ok': True} o error PIN_NOT_SET / PIN_INVALID
        """
        stored = self._stored_hash()
        if stored is None:
            return fail(ErrorCode.PIN_NOT_SET, 'Primero configura un PIN de finanzas')
        pin = str(pin or '').strip()
        if not pin or not self._matches(stored, pin):
            logger.warning("PIN de finanzas incorrecto")
            return fail(ErrorCode.PIN_INVALID, 'PIN incorrecto')

        if _is_legacy_hash(stored):
            self.settings_repo.set_setting(PIN_SETTING_KEY, generate_password_hash(pin))
            logger.info("Hash de PIN migrado al formato con sal")
        return {'ok': True}

    def set_pin(
        self,
        pin: Any,
        confirm: Any,
        current_pin: Any = None,
        user: str = ''
    ) -> Dict[str, Any]:
        """
        Configura o cambia el PIN.

        Args:
            pin: PIN nuevo (solo dígitos, mínimo PIN_MIN_LENGTH)
            confirm: Confirmación del PIN nuevo
            current_pin: PIN actual, obligatorio si ya existe uno
            user: Usuario

        Returns:
            {'ok': True} o error
        """
        pin = str(pin or '').strip()
        confirm = str(confirm or '').strip()
        if not pin.isdigit() or len(pin) < PIN_MIN_LENGTH:
            return fail(
                ErrorCode.INVALID_INPUT,
                f'El PIN debe tener al menos {PIN_MIN_LENGTH} dígitos'
            )
        if pin != confirm:
            return fail(ErrorCode.INVALID_INPUT, 'Los PIN no coinciden')

        if self.has_pin():
            check = self.verify(current_pin)
            if not check['ok']:
                return check

        self.settings_repo.set_setting(PIN_SETTING_KEY, generate_password_hash(pin))
        logger.info("PIN de finanzas actualizado")
        if self.audit_service:
            self.audit_service.log_system(user, 'PIN de finanzas actualizado')
        return {'ok': True}
