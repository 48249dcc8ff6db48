# ==============================================================================
# APLICACIÓN FLASK - API JSON del punto de venta
# ==============================================================================
# Capa de presentación: recibe peticiones, llama a los servicios y devuelve
# sus resultados como JSON. No contiene reglas de negocio.
#
# Todas las rutas responden JSON, nunca HTML ni redirect.
# Errores de negocio  -> {'ok': False, 'code': ..., 'error': ...} con 4xx
# Fallo de almacenamiento -> 503 STORE_UNAVAILABLE
# ==============================================================================

import logging
from typing import Any, Dict

from flask import Flask, Response, current_app, request, session
from werkzeug.exceptions import HTTPException

from hedelmia_pos import config
from hedelmia_pos.app_container import AppContainer, get_container
from hedelmia_pos.errors import ErrorCode, StoreError, fail, http_status
from hedelmia_pos.performance_logger import get_function_stats, init_profiling, reset_stats

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# UTILIDADES DE PETICIÓN
# ═══════════════════════════════════════════════════════════════════════════════

def _container() -> AppContainer:
    return current_app.extensions['hedelmia']


def _data() -> Dict[str, Any]:
    """Cuerpo de la petición: JSON o formulario."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in ('1', 'true', 'si', 'sí', 'on', 'yes')


def _user() -> str:
    """Nombre de quien opera (solo informativo, no hay control de acceso)."""
    return request.headers.get('X-Usuario') or session.get('user') or 'caja'


def _respond(result: Dict[str, Any], success_status: int = 200):
    """Convierte un resultado de servicio en (json, status)."""
    if result.get('ok'):
        return result, success_status
    return result, http_status(result)


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment;filename={filename}'}
    )


# ═══════════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(base_path: str = None, testing: bool = False) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        base_path: Carpeta de datos JSON (por defecto config.DATA_DIR)
        testing: Modo pruebas (sin logging a archivo)

    Returns:
        Aplicación configurada
    """
    if not testing:
        config.setup_logging()

    app = Flask(__name__)

    if config.PRODUCTION_MODE and not config.SECRET_KEY:
        logger.warning("PRODUCTION_MODE activo sin HEDELMIA_SECRET_KEY definida")
    app.secret_key = config.SECRET_KEY or config.DEFAULT_SECRET
    app.config.update(config.SESSION_SETTINGS)
    app.config['TESTING'] = testing

    if base_path is not None or testing:
        AppContainer.reset_instance()
    app.extensions['hedelmia'] = get_container(base_path)
    logger.info("Datos en %s", app.extensions['hedelmia'].base_path)

    init_profiling(app)
    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: Flask) -> None:

    @app.errorhandler(StoreError)
    def _store_error(e):
        logger.error("Fallo de almacenamiento: %s", e)
        return fail(
            ErrorCode.STORE_UNAVAILABLE,
            'No se pudo guardar la información. Ningún cambio fue aplicado.'
        ), 503

    @app.errorhandler(HTTPException)
    def _http_error(e):
        code = ErrorCode.NOT_FOUND if e.code == 404 else ErrorCode.INVALID_INPUT
        return fail(code, e.description or e.name), e.code


def _register_routes(app: Flask) -> None:
    """Registra todas las rutas /api."""

    # ═══════════════════════════════════════════════════════════════════════
    # PRODUCTOS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/productos', methods=['GET'])
    def api_productos_listar():
        active_only = _as_bool(request.args.get('activos'))
        products = _container().inventory_service.get_all_products(active_only)
        return {'ok': True, 'products': products}

    @app.route('/api/productos', methods=['POST'])
    def api_productos_crear():
        result = _container().inventory_service.create_product(_data(), _user())
        return _respond(result, 201)

    @app.route('/api/productos/stock-bajo', methods=['GET'])
    def api_productos_stock_bajo():
        return {'ok': True, 'products': _container().inventory_service.get_low_stock_products()}

    @app.route('/api/productos/<int:pid>', methods=['GET'])
    def api_producto_ver(pid):
        product = _container().inventory_service.get_product(pid)
        if not product:
            return _respond(fail(ErrorCode.NOT_FOUND, 'Producto no encontrado', id=pid))
        return {'ok': True, 'product': product}

    @app.route('/api/productos/<int:pid>', methods=['PUT'])
    def api_producto_editar(pid):
        return _respond(_container().inventory_service.update_product(pid, _data(), _user()))

    @app.route('/api/productos/<int:pid>/desactivar', methods=['POST'])
    def api_producto_desactivar(pid):
        return _respond(_container().inventory_service.deactivate_product(pid, _user()))

    @app.route('/api/productos/<int:pid>/stock', methods=['POST'])
    def api_producto_stock(pid):
        data = _data()
        result = _container().inventory_service.adjust_product_stock(
            pid, data.get('type'), data.get('amount'), data.get('reference', ''), _user()
        )
        return _respond(result)

    @app.route('/api/productos/<int:pid>/movimientos', methods=['GET'])
    def api_producto_movimientos(pid):
        return {'ok': True, 'movements': _container().inventory_service.list_stock_movements(pid)}

    # ═══════════════════════════════════════════════════════════════════════
    # MATERIAS PRIMAS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/materias', methods=['GET'])
    def api_materias_listar():
        return {'ok': True, 'materials': _container().inventory_service.get_all_materials()}

    @app.route('/api/materias', methods=['POST'])
    def api_materias_crear():
        return _respond(_container().inventory_service.create_material(_data(), _user()), 201)

    @app.route('/api/materias/<int:material_id>', methods=['PUT'])
    def api_materia_editar(material_id):
        return _respond(_container().inventory_service.update_material(material_id, _data(), _user()))

    @app.route('/api/materias/<int:material_id>/movimiento', methods=['POST'])
    def api_materia_movimiento(material_id):
        data = _data()
        result = _container().inventory_service.adjust_material_stock(
            material_id,
            data.get('type'),
            data.get('amount'),
            cost_total=data.get('cost_total'),
            note=data.get('note', ''),
            date=data.get('date'),
            user=_user(),
        )
        return _respond(result)

    @app.route('/api/materias/<int:material_id>/movimientos', methods=['GET'])
    def api_materia_movimientos(material_id):
        movements = _container().inventory_service.list_material_movements(material_id)
        return {'ok': True, 'movements': movements}

    # ═══════════════════════════════════════════════════════════════════════
    # CLIENTES Y PAGARÉS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/clientes', methods=['GET'])
    def api_clientes_listar():
        active_only = _as_bool(request.args.get('activos'))
        return {'ok': True, 'customers': _container().credit_service.list_customers(active_only)}

    @app.route('/api/clientes', methods=['POST'])
    def api_clientes_crear():
        return _respond(_container().credit_service.create_customer(_data(), _user()), 201)

    @app.route('/api/clientes/<int:customer_id>', methods=['GET'])
    def api_cliente_ver(customer_id):
        credit_service = _container().credit_service
        customer = credit_service.get_customer(customer_id)
        if not customer:
            return _respond(fail(ErrorCode.NOT_FOUND, 'Cliente no encontrado', customer_id=customer_id))
        return {
            'ok': True,
            'customer': customer,
            'movements': credit_service.customer_movements(customer_id),
            'notes': credit_service.list_promissory_notes(customer_id),
            'credits': credit_service.list_credits(customer_id),
            'fridges': _container().fridge_service.list_loans(customer_id),
        }

    @app.route('/api/clientes/<int:customer_id>', methods=['PUT'])
    def api_cliente_editar(customer_id):
        return _respond(_container().credit_service.update_customer(customer_id, _data(), _user()))

    @app.route('/api/clientes/<int:customer_id>/saldo', methods=['POST'])
    def api_cliente_saldo(customer_id):
        result = _container().credit_service.set_customer_balance(
            customer_id, _data().get('balance'), _user()
        )
        return _respond(result)

    @app.route('/api/clientes/<int:customer_id>/abonos', methods=['POST'])
    def api_cliente_abono(customer_id):
        data = _data()
        result = _container().credit_service.receive_customer_payment(
            customer_id, data.get('amount'), data.get('concept') or 'Abono', _user()
        )
        return _respond(result)

    @app.route('/api/clientes/<int:customer_id>/pagares', methods=['GET'])
    def api_cliente_pagares(customer_id):
        return {'ok': True, 'notes': _container().credit_service.list_promissory_notes(customer_id)}

    @app.route('/api/clientes/<int:customer_id>/pagares', methods=['POST'])
    def api_cliente_pagare_crear(customer_id):
        data = _data()
        result = _container().credit_service.issue_promissory_note(
            customer_id, data.get('amount'), data.get('date'), _user()
        )
        return _respond(result, 201)

    @app.route('/api/pagares/<int:note_id>/estado', methods=['POST'])
    def api_pagare_estado(note_id):
        result = _container().credit_service.set_note_status(note_id, _data().get('status'), _user())
        return _respond(result)

    # ═══════════════════════════════════════════════════════════════════════
    # CARRITO
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/carrito', methods=['GET'])
    def api_carrito_ver():
        return {'ok': True, 'carrito': _container().cart_service.get_cart()}

    @app.route('/api/carrito/agregar', methods=['POST'])
    def api_carrito_agregar():
        data = _data()
        result = _container().cart_service.add_item(data.get('product_id'), data.get('quantity', 1))
        return _respond(result)

    @app.route('/api/carrito/actualizar', methods=['POST'])
    def api_carrito_actualizar():
        data = _data()
        result = _container().cart_service.set_quantity(data.get('product_id'), data.get('quantity'))
        return _respond(result)

    @app.route('/api/carrito/eliminar', methods=['POST'])
    def api_carrito_eliminar():
        return _respond(_container().cart_service.remove_item(_data().get('product_id')))

    @app.route('/api/carrito/limpiar', methods=['POST'])
    def api_carrito_limpiar():
        _container().cart_service.clear()
        return {'ok': True, 'carrito': _container().cart_service.get_cart()}

    @app.route('/api/carrito/confirmar', methods=['POST'])
    def api_carrito_confirmar():
        data = _data()
        container = _container()
        result = container.sales_service.checkout_cart(
            container.cart_service,
            customer_id=data.get('customer_id'),
            is_credit_sale=_as_bool(data.get('is_credit_sale')),
            discount=data.get('discount'),
            payment_method=data.get('payment_method'),
            client_name=data.get('client_name', ''),
            notes=data.get('notes', ''),
            user=_user(),
        )
        return _respond(result, 201)

    # ═══════════════════════════════════════════════════════════════════════
    # VENTAS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/ventas', methods=['GET'])
    def api_ventas_listar():
        limit = request.args.get('limit', type=int)
        sales = _container().sales_service.list_sales(request.args.get('customer_id'), limit)
        return {'ok': True, 'sales': sales}

    @app.route('/api/ventas', methods=['POST'])
    def api_ventas_crear():
        """Venta directa (mayoreo) sin pasar por el carrito de sesión."""
        data = _data()
        result = _container().sales_service.checkout(
            data.get('items') or [],
            customer_id=data.get('customer_id'),
            is_credit_sale=_as_bool(data.get('is_credit_sale')),
            discount=data.get('discount'),
            payment_method=data.get('payment_method'),
            client_name=data.get('client_name', ''),
            notes=data.get('notes', ''),
            user=_user(),
        )
        return _respond(result, 201)

    @app.route('/api/ventas/<folio>', methods=['GET'])
    def api_venta_ver(folio):
        sale = _container().sales_service.get_sale(folio)
        if not sale:
            return _respond(fail(ErrorCode.NOT_FOUND, 'Venta no encontrada', id=folio))
        return {'ok': True, 'sale': sale}

    # ═══════════════════════════════════════════════════════════════════════
    # CAJAS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/cajas', methods=['GET'])
    def api_cajas():
        return {'ok': True, 'balances': _container().cash_service.balances()}

    @app.route('/api/cajas/<box>/saldo', methods=['GET'])
    def api_caja_saldo(box):
        return _respond(_container().cash_service.balance(box))

    @app.route('/api/cajas/<box>/movimientos', methods=['GET'])
    def api_caja_movimientos(box):
        if box not in config.CASH_BOXES:
            return _respond(fail(ErrorCode.INVALID_INPUT, 'Caja inválida'))
        limit = request.args.get('limit', type=int)
        return {'ok': True, 'movements': _container().cash_service.list_movements(box, limit)}

    @app.route('/api/cajas/<box>/movimientos', methods=['POST'])
    def api_caja_movimiento_crear(box):
        data = _data()
        result = _container().cash_service.post_movement(
            box, data.get('kind'), data.get('concept'), data.get('amount'),
            date=data.get('date'), user=_user()
        )
        return _respond(result, 201)

    @app.route('/api/cajas/movimientos/<int:movement_id>', methods=['DELETE'])
    def api_caja_movimiento_eliminar(movement_id):
        result = _container().cash_service.delete_movement(movement_id, _data().get('pin'), _user())
        return _respond(result)

    # ═══════════════════════════════════════════════════════════════════════
    # CRÉDITOS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/creditos', methods=['GET'])
    def api_creditos_listar():
        credits = _container().credit_service.list_credits(
            request.args.get('customer_id'), request.args.get('status')
        )
        return {'ok': True, 'credits': credits}

    @app.route('/api/creditos', methods=['POST'])
    def api_creditos_crear():
        data = _data()
        result = _container().credit_service.create_credit(
            data.get('customer_id'), data.get('amount'), data.get('concept', ''),
            data.get('date'), _user()
        )
        return _respond(result, 201)

    @app.route('/api/creditos/<int:credit_id>/pagos', methods=['POST'])
    def api_credito_pago(credit_id):
        data = _data()
        result = _container().credit_service.record_credit_payment(
            credit_id, data.get('amount'), data.get('date'), data.get('note', ''), _user()
        )
        return _respond(result)

    @app.route('/api/creditos/<int:credit_id>/estado', methods=['POST'])
    def api_credito_estado(credit_id):
        result = _container().credit_service.set_credit_status(credit_id, _data().get('status'), _user())
        return _respond(result)

    # ═══════════════════════════════════════════════════════════════════════
    # REFRIGERADORES
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/refris', methods=['GET'])
    def api_refris_listar():
        loans = _container().fridge_service.list_loans(
            request.args.get('customer_id'), _as_bool(request.args.get('activos'))
        )
        return {'ok': True, 'loans': loans}

    @app.route('/api/refris', methods=['POST'])
    def api_refris_crear():
        data = _data()
        result = _container().fridge_service.create_loan(
            data.get('customer_id'), data.get('quantity'), data.get('delivery_date'),
            data.get('notes', ''), _user()
        )
        return _respond(result, 201)

    @app.route('/api/refris/<int:loan_id>/devolver', methods=['POST'])
    def api_refri_devolver(loan_id):
        result = _container().fridge_service.mark_returned(loan_id, _data().get('return_date'), _user())
        return _respond(result)

    # ═══════════════════════════════════════════════════════════════════════
    # PIN DE FINANZAS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/pin', methods=['GET'])
    def api_pin_estado():
        return {'ok': True, 'configured': _container().pin_service.has_pin()}

    @app.route('/api/pin', methods=['POST'])
    def api_pin_configurar():
        data = _data()
        result = _container().pin_service.set_pin(
            data.get('pin'), data.get('confirm'), data.get('current_pin'), _user()
        )
        return _respond(result)

    @app.route('/api/pin/verificar', methods=['POST'])
    def api_pin_verificar():
        return _respond(_container().pin_service.verify(_data().get('pin')))

    # ═══════════════════════════════════════════════════════════════════════
    # PANEL, AUDITORÍA Y EXPORTACIONES
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/dashboard', methods=['GET'])
    def api_dashboard():
        return {'ok': True, **_container().stats_service.get_dashboard()}

    @app.route('/api/estadisticas/ventas', methods=['GET'])
    def api_estadisticas_ventas():
        days = request.args.get('dias', default=7, type=int)
        days = min(max(days, 1), 90)
        return {'ok': True, 'days': _container().stats_service.sales_by_day(days)}

    @app.route('/api/auditoria', methods=['GET'])
    def api_auditoria():
        limit = request.args.get('limit', default=100, type=int)
        return {'ok': True, 'logs': _container().audit_service.get_recent_logs(limit)}

    @app.route('/api/rendimiento', methods=['GET'])
    def api_rendimiento():
        return {'ok': True, 'functions': get_function_stats()}

    @app.route('/api/rendimiento', methods=['DELETE'])
    def api_rendimiento_reiniciar():
        reset_stats()
        return {'ok': True, 'functions': get_function_stats()}

    @app.route('/api/exportar/<entity>', methods=['GET'])
    def api_exportar(entity):
        export_service = _container().export_service
        if entity not in export_service.entities:
            return _respond(fail(ErrorCode.NOT_FOUND, 'Entidad no exportable', entity=entity))
        return _csv_response(export_service.export(entity), f'{entity}.csv')
