import pytest

from hedelmia_pos.errors import StoreError


def _sell(container, items, **options):
    return container.sales_service.checkout(items, user='caja', **options)


def test_cash_sale_writes_sale_cash_and_stock(container, paleta):
    result = _sell(container, [{'product_id': paleta['id'], 'quantity': 4}])

    assert result['ok']
    sale = result['sale']
    assert sale['folio'] == 'V-000001'
    assert sale['subtotal'] == 100.0
    assert sale['total'] == 100.0
    assert sale['payment_method'] == 'efectivo'
    assert sale['items'][0]['name'] == 'Paleta Fresa (Agua)'

    assert container.inventory_service.get_product(paleta['id'])['stock'] == 6
    assert container.cash_service.balances() == {'chica': 0.0, 'grande': 100.0}
    movement = container.cash_service.list_movements('grande')[0]
    assert movement['source'] == 'venta'
    assert movement['reference'] == 'V-000001'
    assert movement['concept'] == 'Venta POS V-000001'

    stock_moves = container.inventory_service.list_stock_movements(paleta['id'])
    assert stock_moves[0]['type'] == 'salida'
    assert stock_moves[0]['reference'] == 'V-000001'


def test_percent_discount_subtotal_200_gives_180(container, paleta):
    result = _sell(
        container,
        [{'product_id': paleta['id'], 'quantity': 8}],
        discount={'type': 'percent', 'value': 10},
    )

    assert result['ok']
    sale = result['sale']
    assert sale['subtotal'] == 200.0
    assert sale['discount'] == {'type': 'percent', 'value': 10.0, 'amount': 20.0}
    assert sale['total'] == 180.0
    assert container.cash_service.balances()['grande'] == 180.0


def test_amount_discount_is_capped_at_subtotal(container, paleta):
    result = _sell(
        container,
        [{'product_id': paleta['id'], 'quantity': 1}],
        discount={'type': 'amount', 'value': 99},
    )

    assert result['ok']
    assert result['sale']['total'] == 0.0
    assert result['sale']['discount']['amount'] == 25.0
    # Venta en cero no deja movimiento de caja
    assert container.cash_service.list_movements() == []
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 9


def test_negative_discount_is_rejected(container, paleta):
    result = _sell(
        container,
        [{'product_id': paleta['id'], 'quantity': 1}],
        discount={'type': 'amount', 'value': -5},
    )
    assert not result['ok']
    assert result['code'] == 'INVALID_AMOUNT'


def test_empty_cart_is_rejected(container):
    result = _sell(container, [])
    assert result == {'ok': False, 'code': 'EMPTY_CART', 'error': 'El carrito está vacío'}
    assert container.sales_repo.get_all() == []


def test_insufficient_stock_rejects_whole_sale(container, paleta, nieve):
    result = _sell(container, [
        {'product_id': paleta['id'], 'quantity': 2},
        {'product_id': nieve['id'], 'quantity': 5},
    ])

    assert not result['ok']
    assert result['code'] == 'INSUFFICIENT_STOCK'
    assert result['product_id'] == nieve['id']
    assert result['disponible'] == 3
    assert container.sales_repo.get_all() == []
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 10
    assert container.cash_service.list_movements() == []


def test_repeated_lines_are_checked_together(container, nieve):
    result = _sell(container, [
        {'product_id': nieve['id'], 'quantity': 2},
        {'product_id': nieve['id'], 'quantity': 2},
    ])
    assert result['code'] == 'INSUFFICIENT_STOCK'
    assert container.inventory_service.get_product(nieve['id'])['stock'] == 3


def test_catalog_price_wins_over_line_price(container, paleta):
    result = _sell(container, [{'product_id': paleta['id'], 'quantity': 2, 'unit_price': 20}])

    assert result['sale']['items'][0]['unit_price'] == 25.0
    assert result['sale']['total'] == 50.0
    assert container.cash_service.balances()['grande'] == 50.0


def test_credit_sale_charges_customer(container, paleta, tienda):
    result = _sell(
        container,
        [{'product_id': paleta['id'], 'quantity': 4}],
        customer_id=tienda['id'],
        is_credit_sale=True,
    )

    assert result['ok']
    assert result['sale']['is_credit_sale'] is True
    assert result['sale']['payment_method'] == 'credito'
    assert result['sale']['client_name'] == 'Tienda La Esquina'
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 100.0
    movements = container.credit_service.customer_movements(tienda['id'])
    assert movements[0]['type'] == 'cargo'
    assert movements[0]['reference'] == 'V-000001'


def test_credit_sale_over_limit_leaves_everything_untouched(container, paleta):
    customer = container.credit_service.create_customer(
        {'name': 'Abarrotes Lupita', 'credit_limit': 1000, 'balance': 900}
    )['customer']
    product = container.inventory_service.create_product(
        {'name': 'Paquete fiesta', 'price': 150, 'stock': 5}
    )['product']

    result = _sell(
        container,
        [{'product_id': product['id'], 'quantity': 1}],
        customer_id=customer['id'],
        is_credit_sale=True,
    )

    assert not result['ok']
    assert result['code'] == 'CREDIT_LIMIT_EXCEEDED'
    assert result['customer_id'] == customer['id']
    assert result['available'] == 100.0
    assert container.credit_service.get_customer(customer['id'])['balance'] == 900.0
    assert container.inventory_service.get_product(product['id'])['stock'] == 5
    assert container.sales_repo.get_all() == []
    assert container.cash_service.list_movements() == []


def test_credit_sale_requires_customer(container, paleta):
    result = _sell(container, [{'product_id': paleta['id'], 'quantity': 1}], is_credit_sale=True)
    assert result['code'] == 'INVALID_INPUT'


def test_selected_customer_without_credit_flag_is_informational(container, paleta, tienda):
    result = _sell(container, [{'product_id': paleta['id'], 'quantity': 1}], customer_id=tienda['id'])

    assert result['ok']
    assert result['sale']['customer_id'] == tienda['id']
    assert result['sale']['is_credit_sale'] is False
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 0.0


def test_unknown_customer_is_rejected(container, paleta):
    result = _sell(container, [{'product_id': paleta['id'], 'quantity': 1}], customer_id=999)
    assert result['code'] == 'NOT_FOUND'
    assert result['customer_id'] == 999


def test_folios_are_sequential(container, paleta):
    folios = [
        _sell(container, [{'product_id': paleta['id'], 'quantity': 1}])['sale']['folio']
        for _ in range(3)
    ]
    assert folios == ['V-000001', 'V-000002', 'V-000003']
    assert container.sales_repo.get_next_folio() == 'V-000004'


def test_failure_during_commit_rolls_back_every_file(container, paleta, tienda, monkeypatch):
    def broken_apply_sale(items, folio):
        raise StoreError('disco lleno')

    monkeypatch.setattr(container.inventory_service, 'apply_sale', broken_apply_sale)

    with pytest.raises(StoreError):
        _sell(
            container,
            [{'product_id': paleta['id'], 'quantity': 2}],
            customer_id=tienda['id'],
            is_credit_sale=True,
        )

    assert container.sales_repo.get_all() == []
    assert container.cash_service.list_movements() == []
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 0.0
    assert container.credit_service.customer_movements(tienda['id']) == []
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 10


def test_sale_is_audited(container, paleta):
    _sell(container, [{'product_id': paleta['id'], 'quantity': 1}])
    logs = container.audit_service.get_logs_by_type('VENTA')
    assert logs[0]['related_id'] == 'V-000001'


def test_list_sales_newest_first(container, paleta, tienda):
    _sell(container, [{'product_id': paleta['id'], 'quantity': 1}])
    _sell(container, [{'product_id': paleta['id'], 'quantity': 1}], customer_id=tienda['id'])

    assert [s['folio'] for s in container.sales_service.list_sales()] == ['V-000002', 'V-000001']
    assert [s['folio'] for s in container.sales_service.list_sales(tienda['id'])] == ['V-000002']
    assert container.sales_service.get_sale('V-000001')['total'] == 25.0


@pytest.mark.parametrize('items', [[5], ['paleta'], [None], {'product_id': 1, 'quantity': 1}])
def test_malformed_lines_are_rejected(container, paleta, items):
    result = _sell(container, items)

    assert not result['ok']
    assert result['code'] == 'INVALID_INPUT'
    assert container.sales_repo.get_all() == []
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 10


def test_credito_payment_requires_credit_flag(container, paleta, tienda):
    result = _sell(
        container,
        [{'product_id': paleta['id'], 'quantity': 1}],
        customer_id=tienda['id'],
        payment_method='credito',
    )

    assert result['code'] == 'INVALID_INPUT'
    assert container.sales_repo.get_all() == []
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 0.0


def test_credit_flag_rejects_cash_payment_method(container, paleta, tienda):
    result = _sell(
        container,
        [{'product_id': paleta['id'], 'quantity': 1}],
        customer_id=tienda['id'],
        is_credit_sale=True,
        payment_method='efectivo',
    )

    assert result['code'] == 'INVALID_INPUT'
    assert container.credit_service.get_customer(tienda['id'])['balance'] == 0.0
    assert container.cash_service.list_movements() == []


def test_card_payment_is_kept_on_cash_sale(container, paleta):
    result = _sell(container, [{'product_id': paleta['id'], 'quantity': 1}], payment_method='tarjeta')

    assert result['ok']
    assert result['sale']['payment_method'] == 'tarjeta'
