import json
import os

import pytest

from hedelmia_pos.errors import StoreError
from hedelmia_pos.repositories import CashRepository, SalesRepository, transaction


def test_transaction_restores_every_repository(tmp_path):
    sales = SalesRepository(str(tmp_path))
    cash = CashRepository(str(tmp_path))
    sales.append({'id': 1, 'folio': 'V-000001'})

    with pytest.raises(RuntimeError):
        with transaction(sales, cash):
            sales.append({'id': 2, 'folio': 'V-000002'})
            cash.append({'id': 1, 'box': 'grande', 'kind': 'entrada', 'amount': 10})
            raise RuntimeError('fallo a medio camino')

    assert [s['folio'] for s in sales.get_all()] == ['V-000001']
    assert cash.get_all() == []


def test_transaction_keeps_changes_on_success(tmp_path):
    cash = CashRepository(str(tmp_path))
    with transaction(cash):
        cash.append({'id': 1, 'box': 'chica', 'kind': 'entrada', 'amount': 10})
    assert cash.calculate_balance('chica') == 10.0


def test_corrupt_file_raises_store_error(tmp_path):
    sales = SalesRepository(str(tmp_path))
    with open(sales.file_path, 'w', encoding='utf-8') as f:
        f.write('{no es json')

    with pytest.raises(StoreError):
        sales.get_all()


def test_next_folio_skips_malformed_folios(tmp_path):
    sales = SalesRepository(str(tmp_path))
    sales.save_all([
        {'id': 1, 'folio': 'V-000007'},
        {'id': 2, 'folio': 'V-ABC'},
        {'id': 3, 'folio': 'OTRO-9'},
    ])
    assert sales.get_next_folio() == 'V-000008'


def test_files_are_written_as_utf8_json(tmp_path, container):
    container.credit_service.create_customer({'name': 'Paletería Ñandú'})

    path = os.path.join(str(tmp_path), 'customers.json')
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    assert data['1']['name'] == 'Paletería Ñandú'
    assert not os.path.exists(path + '.tmp')


def test_audit_log_is_capped(tmp_path, container, monkeypatch):
    monkeypatch.setattr(container.audit_repo, 'MAX_LOGS', 3)
    for i in range(5):
        container.audit_service.log_system('caja', f'evento {i}')

    logs = container.audit_service.get_recent_logs()
    assert len(logs) == 3
    assert logs[0]['message'] == 'evento 4'


def test_cash_balance_signs_movements_by_kind(tmp_path):
    cash = CashRepository(str(tmp_path))
    cash.save_all([
        {'id': 1, 'box': 'grande', 'kind': 'entrada', 'concept': 'Venta', 'amount': 180.0},
        {'id': 2, 'box': 'grande', 'kind': 'salida', 'concept': 'Depósito', 'amount': 50.5},
        {'id': 3, 'box': 'chica', 'kind': 'entrada', 'concept': 'Fondo', 'amount': 20.0},
    ])

    assert cash.calculate_balance('grande') == 129.5
    assert cash.calculate_balance('chica') == 20.0
