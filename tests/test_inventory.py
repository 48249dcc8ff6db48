def test_create_product_records_initial_stock(container, paleta):
    assert paleta['name'] == 'Paleta Fresa (Agua)'
    assert paleta['stock'] == 10
    movements = container.inventory_service.list_stock_movements(paleta['id'])
    assert len(movements) == 1
    assert movements[0]['type'] == 'entrada'
    assert movements[0]['quantity'] == 10
    assert movements[0]['reference'] == 'Stock inicial'


def test_duplicate_sku_is_rejected(container):
    first = container.inventory_service.create_product({'name': 'Paleta mango', 'sku': 'pm-01'})
    second = container.inventory_service.create_product({'name': 'Paleta uva', 'sku': 'PM-01'})

    assert first['ok']
    assert first['product']['sku'] == 'PM-01'
    assert second['code'] == 'INVALID_INPUT'


def test_product_needs_a_name(container):
    result = container.inventory_service.create_product({'price': 10})
    assert result['code'] == 'INVALID_INPUT'


def test_salida_beyond_stock_is_rejected_not_clamped(container, nieve):
    result = container.inventory_service.adjust_product_stock(nieve['id'], 'salida', 4, 'Merma')

    assert result['code'] == 'INSUFFICIENT_STOCK'
    assert result['product_id'] == nieve['id']
    assert result['disponible'] == 3
    assert container.inventory_service.get_product(nieve['id'])['stock'] == 3


def test_entrada_and_salida_update_stock(container, nieve):
    assert container.inventory_service.adjust_product_stock(nieve['id'], 'entrada', 7, 'Producción')['ok']
    result = container.inventory_service.adjust_product_stock(nieve['id'], 'salida', 10, 'Merma')

    assert result['ok']
    assert result['product']['stock'] == 0
    types = [m['type'] for m in container.inventory_service.list_stock_movements(nieve['id'])]
    assert types == ['salida', 'entrada', 'entrada']


def test_stock_amount_must_be_positive_integer(container, nieve):
    for bad in (0, -2, 1.5, 'abc', None):
        result = container.inventory_service.adjust_product_stock(nieve['id'], 'entrada', bad)
        assert result['code'] == 'INVALID_AMOUNT'


def test_edit_stock_registers_adjustment(container, paleta):
    result = container.inventory_service.update_product(paleta['id'], {'stock': 4, 'price': 27.5})

    assert result['ok']
    assert result['product']['stock'] == 4
    assert result['product']['price'] == 27.5
    last = container.inventory_service.list_stock_movements(paleta['id'])[0]
    assert last['type'] == 'salida'
    assert last['quantity'] == 6
    assert last['reference'] == 'Ajuste por edición'


def test_edit_to_negative_stock_is_rejected(container, paleta):
    result = container.inventory_service.update_product(paleta['id'], {'stock': -1})
    assert result['code'] == 'INSUFFICIENT_STOCK'
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 10


def test_deactivated_product_cannot_be_sold(container, paleta):
    container.inventory_service.deactivate_product(paleta['id'])
    result = container.sales_service.checkout([{'product_id': paleta['id'], 'quantity': 1}])
    assert result['code'] == 'NOT_FOUND'
    assert result['product_id'] == paleta['id']


def test_low_stock_list(container, paleta, nieve):
    low = container.inventory_service.get_low_stock_products()
    assert [p['id'] for p in low] == [nieve['id']]


def test_material_weighted_average_cost(container):
    material = container.inventory_service.create_material(
        {'name': 'Azúcar', 'unit': 'kg', 'stock': 10, 'avg_cost': 2}
    )['material']

    result = container.inventory_service.adjust_material_stock(material['id'], 'entrada', 10, cost_total=30)

    assert result['ok']
    assert result['material']['stock'] == 20
    assert result['material']['avg_cost'] == 2.5
    assert result['movement']['cost_total'] == 30.0


def test_material_salida_keeps_average_and_refuses_negative(container):
    material = container.inventory_service.create_material(
        {'name': 'Leche', 'unit': 'l', 'stock': 5, 'avg_cost': 18}
    )['material']

    ok = container.inventory_service.adjust_material_stock(material['id'], 'salida', 2.5)
    refused = container.inventory_service.adjust_material_stock(material['id'], 'salida', 3)

    assert ok['material']['stock'] == 2.5
    assert ok['material']['avg_cost'] == 18
    assert refused['code'] == 'INSUFFICIENT_STOCK'
    assert refused['error'] == 'No puedes tener stock negativo'
    assert container.inventory_service.get_material(material['id'])['stock'] == 2.5
    assert len(container.inventory_service.list_material_movements(material['id'])) == 1


def test_invalid_movement_type(container, paleta):
    result = container.inventory_service.adjust_product_stock(paleta['id'], 'robo', 1)
    assert result['code'] == 'INVALID_INPUT'


def test_adjust_stock_rejects_fractional_delta(container, paleta):
    for bad in (1.9, -0.5, 'tres', None):
        result = container.inventory_service.adjust_stock(paleta['id'], bad, 'Conteo')
        assert result['code'] == 'INVALID_AMOUNT'

    assert container.inventory_service.get_product(paleta['id'])['stock'] == 10
    assert len(container.inventory_service.list_stock_movements(paleta['id'])) == 1


def test_adjust_stock_applies_signed_delta(container, paleta):
    assert container.inventory_service.adjust_stock(paleta['id'], -4, 'Merma')['ok']
    assert container.inventory_service.adjust_stock(paleta['id'], '2', 'Conteo')['ok']
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 8


def test_edit_rejects_fractional_stock(container, paleta):
    result = container.inventory_service.update_product(paleta['id'], {'stock': 2.5})

    assert result['code'] == 'INVALID_AMOUNT'
    assert container.inventory_service.get_product(paleta['id'])['stock'] == 10
    assert len(container.inventory_service.list_stock_movements(paleta['id'])) == 1


def test_min_stock_must_be_whole(container, paleta):
    result = container.inventory_service.update_product(paleta['id'], {'min_stock': 1.5})
    assert result['code'] == 'INVALID_AMOUNT'
