import os


def _product(client, **data):
    payload = {'name': 'Paleta de mango', 'price': 20, 'stock': 5}
    payload.update(data)
    r = client.post('/api/productos', json=payload)
    assert r.status_code == 201
    return r.get_json()['product']


def test_cart_checkout_flow(client):
    product = _product(client)

    r = client.post('/api/carrito/agregar', json={'product_id': product['id'], 'quantity': 3})
    assert r.status_code == 200
    assert r.get_json()['carrito']['subtotal'] == 60.0

    r = client.post('/api/carrito/agregar', json={'product_id': product['id'], 'quantity': 3})
    assert r.status_code == 409
    body = r.get_json()
    assert body['code'] == 'INSUFFICIENT_STOCK'
    assert body['product_id'] == product['id']

    r = client.post('/api/carrito/confirmar', json={'discount': {'type': 'amount', 'value': 10}})
    assert r.status_code == 201
    sale = r.get_json()['sale']
    assert sale['folio'] == 'V-000001'
    assert sale['total'] == 50.0

    assert client.get('/api/carrito').get_json()['carrito']['items'] == []
    assert client.get('/api/productos/%d' % product['id']).get_json()['product']['stock'] == 2
    assert client.get('/api/cajas').get_json()['balances']['grande'] == 50.0
    assert client.get('/api/ventas/V-000001').get_json()['sale']['total'] == 50.0


def test_empty_cart_checkout(client):
    r = client.post('/api/carrito/confirmar', json={})
    assert r.status_code == 400
    assert r.get_json()['code'] == 'EMPTY_CART'


def test_direct_credit_sale_over_limit(client):
    product = _product(client, price=150)
    customer = client.post('/api/clientes', json={'name': 'Tienda Sol', 'credit_limit': 1000}).get_json()['customer']
    client.post('/api/clientes/%d/saldo' % customer['id'], json={'balance': 900})

    r = client.post('/api/ventas', json={
        'items': [{'product_id': product['id'], 'quantity': 1}],
        'customer_id': customer['id'],
        'is_credit_sale': True,
    })

    assert r.status_code == 409
    assert r.get_json()['code'] == 'CREDIT_LIMIT_EXCEEDED'
    detail = client.get('/api/clientes/%d' % customer['id']).get_json()
    assert detail['customer']['balance'] == 900.0


def test_cash_delete_with_pin(client):
    r = client.post('/api/cajas/chica/movimientos', json={'kind': 'entrada', 'concept': 'Fondo', 'amount': 200})
    assert r.status_code == 201
    movement_id = r.get_json()['movement']['id']

    assert client.delete('/api/cajas/movimientos/%d' % movement_id, json={'pin': '1111'}).status_code == 403

    assert client.post('/api/pin', json={'pin': '1111', 'confirm': '1111'}).status_code == 200
    assert client.get('/api/pin').get_json()['configured'] is True
    assert client.delete('/api/cajas/movimientos/%d' % movement_id, json={'pin': '2222'}).status_code == 403
    assert client.delete('/api/cajas/movimientos/%d' % movement_id, json={'pin': '1111'}).status_code == 200
    assert client.get('/api/cajas/chica/saldo').get_json()['balance'] == 0.0


def test_credit_and_notes_endpoints(client):
    customer = client.post('/api/clientes', json={'name': 'Nevería Polo', 'credit_limit': 2000}).get_json()['customer']

    credit = client.post('/api/creditos', json={'customer_id': customer['id'], 'amount': 1000}).get_json()['credit']
    client.post('/api/creditos/%d/pagos' % credit['id'], json={'amount': 400})
    r = client.post('/api/creditos/%d/pagos' % credit['id'], json={'amount': 300})
    assert r.get_json()['credit']['remaining'] == 300.0
    assert r.get_json()['credit']['status'] == 'pendiente'

    r = client.post('/api/clientes/%d/pagares' % customer['id'], json={'amount': 10})
    assert r.status_code == 409
    assert r.get_json()['code'] == 'AMOUNT_EXCEEDS_BALANCE'


def test_fridge_endpoints(client):
    customer = client.post('/api/clientes', json={'name': 'Abarrotes Chuy'}).get_json()['customer']
    loan = client.post('/api/refris', json={'customer_id': customer['id'], 'quantity': 1}).get_json()['loan']

    assert client.post('/api/refris/%d/devolver' % loan['id']).status_code == 200
    assert client.post('/api/refris/%d/devolver' % loan['id']).status_code == 409


def test_not_found_is_json(client):
    r = client.get('/api/productos/999')
    assert r.status_code == 404
    assert r.get_json()['code'] == 'NOT_FOUND'

    r = client.get('/api/no-existe')
    assert r.status_code == 404
    assert r.get_json()['ok'] is False


def test_dashboard_and_export(client):
    product = _product(client)
    client.post('/api/ventas', json={'items': [{'product_id': product['id'], 'quantity': 1}]})

    dashboard = client.get('/api/dashboard').get_json()
    assert dashboard['ok']
    assert dashboard['sales_today']['count'] == 1

    r = client.get('/api/exportar/ventas')
    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert 'V-000001' in r.get_data(as_text=True)
    assert client.get('/api/exportar/usuarios').status_code == 404

    assert 'Confirmar venta' in client.get('/api/rendimiento').get_json()['functions']
    assert client.get('/api/auditoria').get_json()['logs'][0]['type'] == 'VENTA'


def test_corrupt_store_returns_503(app, client):
    path = os.path.join(app.extensions['hedelmia'].base_path, 'products.json')
    with open(path, 'w', encoding='utf-8') as f:
        f.write('[roto')

    r = client.get('/api/productos')
    assert r.status_code == 503
    assert r.get_json()['code'] == 'STORE_UNAVAILABLE'


def test_direct_sale_charges_catalog_price(client):
    product = _product(client, price=20)

    r = client.post('/api/ventas', json={
        'items': [{'product_id': product['id'], 'quantity': 2, 'unit_price': 0}],
    })

    assert r.status_code == 201
    sale = r.get_json()['sale']
    assert sale['items'][0]['unit_price'] == 20.0
    assert sale['total'] == 40.0
    assert client.get('/api/cajas').get_json()['balances']['grande'] == 40.0


def test_direct_sale_with_malformed_items(client):
    product = _product(client)

    for items in ([5], {'product_id': product['id'], 'quantity': 1}):
        r = client.post('/api/ventas', json={'items': items})
        assert r.status_code == 400
        assert r.get_json()['code'] == 'INVALID_INPUT'

    assert client.get('/api/ventas').get_json()['sales'] == []
    assert client.get('/api/productos/%d' % product['id']).get_json()['product']['stock'] == 5


def test_credito_payment_method_without_credit_flag(client):
    product = _product(client)
    customer = client.post('/api/clientes', json={'name': 'Tienda Sol', 'credit_limit': 1000}).get_json()['customer']

    r = client.post('/api/ventas', json={
        'items': [{'product_id': product['id'], 'quantity': 1}],
        'customer_id': customer['id'],
        'payment_method': 'credito',
    })

    assert r.status_code == 400
    assert r.get_json()['code'] == 'INVALID_INPUT'
    detail = client.get('/api/clientes/%d' % customer['id']).get_json()
    assert detail['customer']['balance'] == 0.0


def test_performance_stats_reset(client):
    product = _product(client)

    r = client.delete('/api/rendimiento')
    assert r.get_json()['functions'] == {}

    client.post('/api/ventas', json={'items': [{'product_id': product['id'], 'quantity': 1}]})
    stats = client.get('/api/rendimiento').get_json()['functions']
    assert stats['Confirmar venta']['calls'] == 1
