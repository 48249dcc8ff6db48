# ==============================================================================
# VALIDACIONES COMUNES DE ENTRADA
# ==============================================================================
# Convierten valores recibidos (texto de formularios, JSON) en números
# válidos o devuelven el resultado de error listo para la interfaz.
# ==============================================================================

import math
from typing import Any, Dict, Optional, Tuple

from hedelmia_pos.errors import ErrorCode, fail


def parse_amount(
    value: Any,
    allow_zero: bool = False,
    label: str = 'El monto'
) -> Tuple[Optional[float], Optional[Dict[str, Any]]]:
    """
    Valida un monto de dinero o cantidad decimal.

    Args:
        value: Valor recibido
        allow_zero: Aceptar 0 como válido
        label: Nombre del campo para el mensaje de error

    Returns:
        (monto redondeado a centavos, None) o (None, resultado de error)
    """
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} no es un número válido')
    if not math.isfinite(amount):
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} no es un número válido')
    if amount < 0:
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser mayor a 0')
    # Se valida el monto ya redondeado: 0.004 se guardaría como 0.00
    amount = round(amount, 2)
    if amount == 0 and not allow_zero:
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser mayor a 0')
    return amount, None


def parse_quantity(
    value: Any,
    label: str = 'La cantidad'
) -> Tuple[Optional[float], Optional[Dict[str, Any]]]:
    """Como parse_amount pero sin redondear a centavos (kg, litros)."""
    try:
        qty = float(value)
    except (TypeError, ValueError):
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} no es un número válido')
    if not math.isfinite(qty) or qty <= 0:
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser mayor a 0')
    return qty, None


def parse_int(
    value: Any,
    label: str = 'La cantidad'
) -> Tuple[Optional[int], Optional[Dict[str, Any]]]:
    """
    Valida un entero con signo. Rechaza decimales en vez de truncarlos.

    Returns:
        (entero, None) o (None, resultado de error)
    """
    if isinstance(value, bool):
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser un número entero')
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser un número entero')
    if not math.isfinite(as_float) or as_float != int(as_float):
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser un número entero')
    return int(as_float), None


def parse_units(
    value: Any,
    label: str = 'La cantidad'
) -> Tuple[Optional[int], Optional[Dict[str, Any]]]:
    """
    Valida una cantidad entera positiva de piezas.

    Returns:
        (cantidad, None) o (None, resultado de error)
    """
    qty, error = parse_int(value, label)
    if error:
        return None, error
    if qty <= 0:
        return None, fail(ErrorCode.INVALID_AMOUNT, f'{label} debe ser mayor a 0')
    return qty, None


def parse_id(value: Any) -> Optional[int]:
    """ID entero o None si no es válido."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
