import csv
import io
from datetime import datetime

import pytest


def test_dashboard_summary(container, paleta, nieve, tienda):
    container.sales_service.checkout([{'product_id': paleta['id'], 'quantity': 2}])
    container.sales_service.checkout(
        [{'product_id': nieve['id'], 'quantity': 1}], customer_id=tienda['id'], is_credit_sale=True
    )
    container.fridge_service.create_loan(tienda['id'], 2)

    dashboard = container.stats_service.get_dashboard()

    assert dashboard['sales_today'] == {'count': 2, 'total': 90.0, 'credit_total': 40.0}
    assert [p['id'] for p in dashboard['low_stock']] == [nieve['id']]
    assert dashboard['cash'] == {'chica': 0.0, 'grande': 90.0}
    assert dashboard['receivable'] == 40.0
    assert dashboard['fridges_out'] == 2
    assert [s['folio'] for s in dashboard['recent_sales']] == ['V-000002', 'V-000001']


def test_sales_by_day_fills_empty_days(container, paleta):
    container.sales_service.checkout([{'product_id': paleta['id'], 'quantity': 1}])

    days = container.stats_service.sales_by_day(3)

    assert len(days) == 3
    assert days[-1]['date'] == datetime.now().strftime('%Y-%m-%d')
    assert days[-1] == {'date': days[-1]['date'], 'count': 1, 'total': 25.0}
    assert days[0]['count'] == 0


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_export_sales_and_items(container, paleta):
    container.sales_service.checkout([{'product_id': paleta['id'], 'quantity': 2}])

    sales = _rows(container.export_service.export('ventas'))
    items = _rows(container.export_service.export('items_venta'))

    assert sales[0][0] == 'Folio'
    assert sales[1][0] == 'V-000001'
    assert sales[1][-1] == '50.0'
    assert items[1] == ['V-000001', 'Paleta Fresa (Agua)', '2', '25.0', '50.0']


def test_every_entity_exports_a_header(container):
    for entity in container.export_service.entities:
        rows = _rows(container.export_service.export(entity))
        assert len(rows) == 1


def test_unknown_entity(container):
    with pytest.raises(KeyError):
        container.export_service.export('usuarios')
