# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Las validaciones de negocio NUNCA lanzan excepciones: devuelven un dict
#   {'ok': False, 'code': 'INSUFFICIENT_STOCK', 'error': 'mensaje', ...}
# con claves extra (product_id, customer_id, ...) para que la interfaz pueda
# mostrar el error junto a la fila afectada.
#
# StoreError sí es una excepción: indica que el almacenamiento falló y la
# operación completa se revirtió.
# ==============================================================================

from enum import Enum
from typing import Any, Dict


class ErrorCode(str, Enum):
    """Códigos de error que la capa de presentación sabe interpretar."""
    INSUFFICIENT_STOCK = 'INSUFFICIENT_STOCK'
    EMPTY_CART = 'EMPTY_CART'
    CREDIT_LIMIT_EXCEEDED = 'CREDIT_LIMIT_EXCEEDED'
    AMOUNT_EXCEEDS_BALANCE = 'AMOUNT_EXCEEDS_BALANCE'
    INVALID_AMOUNT = 'INVALID_AMOUNT'
    INVALID_INPUT = 'INVALID_INPUT'
    NOT_FOUND = 'NOT_FOUND'
    CUSTOMER_INACTIVE = 'CUSTOMER_INACTIVE'
    ALREADY_RETURNED = 'ALREADY_RETURNED'
    PIN_INVALID = 'PIN_INVALID'
    PIN_NOT_SET = 'PIN_NOT_SET'
    STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'


# Código HTTP sugerido para cada error (usado por main.py)
HTTP_STATUS = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PIN_INVALID: 403,
    ErrorCode.PIN_NOT_SET: 403,
    ErrorCode.INSUFFICIENT_STOCK: 409,
    ErrorCode.CREDIT_LIMIT_EXCEEDED: 409,
    ErrorCode.AMOUNT_EXCEEDS_BALANCE: 409,
    ErrorCode.ALREADY_RETURNED: 409,
    ErrorCode.CUSTOMER_INACTIVE: 409,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


class StoreError(Exception):
    """Fallo de lectura/escritura en el almacenamiento de entidades."""


def fail(code: ErrorCode, message: str, **scope: Any) -> Dict[str, Any]:
    """
    Construye un resultado de error.

    Args:
        code: Código de error
        message: Mensaje legible para el usuario
        **scope: Claves adicionales (product_id, customer_id, ...)

    Returns:
        Dict con ok=False, code, error y el alcance del error
    """
    result = {'ok': False, 'code': code.value, 'error': message}
    result.update(scope)
    return result


def http_status(result: Dict[str, Any]) -> int:
    """Código HTTP para un resultado de servicio."""
    if result.get('ok'):
        return 200
    try:
        return HTTP_STATUS.get(ErrorCode(result.get('code')), 400)
    except ValueError:
        return 400
