# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Las mediciones van al logger "hedelmia_pos.performance":
#   DEBUG   -> toda petición
#   WARNING -> más de THRESHOLD_WARNING ms
#   ERROR   -> más de THRESHOLD_CRITICAL ms
#
# ACTIVAR/DESACTIVAR: variable de entorno HEDELMIA_PROFILING ("0" desactiva)
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from functools import wraps

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = os.environ.get('HEDELMIA_PROFILING', '1') != '0'

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

logger = logging.getLogger('hedelmia_pos.performance')

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Dashboard
    'GET /api/dashboard': 'Ver panel principal',

    # Catálogo e inventario
    'GET /api/productos': 'Listar productos',
    'POST /api/productos': 'Crear producto',
    'PUT /api/productos/<int:pid>': 'Editar producto',
    'POST /api/productos/<int:pid>/stock': 'Movimiento de stock',
    'POST /api/materias/<int:material_id>/movimiento': 'Movimiento de materia prima',

    # Carrito y ventas
    'GET /api/carrito': 'Ver carrito',
    'POST /api/carrito/agregar': 'Agregar al carrito',
    'POST /api/carrito/actualizar': 'Cambiar cantidad',
    'POST /api/carrito/eliminar': 'Eliminar del carrito',
    'POST /api/carrito/limpiar': 'Vaciar carrito',
    'POST /api/carrito/confirmar': 'Confirmar venta',
    'POST /api/ventas': 'Registrar venta',
    'GET /api/ventas': 'Ver ventas',

    # Finanzas
    'POST /api/cajas/<box>/movimientos': 'Movimiento de caja',
    'DELETE /api/cajas/movimientos/<int:movement_id>': 'Eliminar movimiento de caja',
    'POST /api/creditos/<int:credit_id>/pagos': 'Registrar pago de crédito',
    'POST /api/clientes/<int:customer_id>/pagares': 'Registrar pagaré',

    # Exportaciones
    'GET /api/exportar/<entity>': 'Exportar CSV',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method, rule):
    """Nombre legible de una ruta o la ruta cruda si no está mapeada."""
    return ROUTE_NAMES.get(f"{method} {rule}", f"{method} {rule}")


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.

    Uso:
        from hedelmia_pos.performance_logger import init_profiling
        init_profiling(app)
    """
    if not ENABLE_PROFILING:
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms
        rule = str(request.url_rule) if request.url_rule else request.path
        action = _get_route_name(request.method, rule)

        if elapsed >= THRESHOLD_CRITICAL:
            logger.error("Ruta MUY LENTA: %s (%s) %.0f ms", action, request.path, elapsed)
        elif elapsed >= THRESHOLD_WARNING:
            logger.warning("Ruta LENTA: %s (%s) %.0f ms", action, request.path, elapsed)
        else:
            logger.debug("%s %s -> %d en %.0f ms", action, request.path, response.status_code, elapsed)
        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Confirmar venta")
        def checkout():
            ...

    Registra:
        - Cantidad de llamadas
        - Tiempo promedio
        - Tiempo máximo
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_CRITICAL:
                    logger.error("Función CRÍTICA: %s %.0f ms", func_name, elapsed_ms)
                elif elapsed_ms >= THRESHOLD_WARNING:
                    logger.warning("Función LENTA: %s %.0f ms", func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()
