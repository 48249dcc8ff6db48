import hashlib

import pytest

from hedelmia_pos.services.pin_service import PIN_SETTING_KEY


@pytest.fixture
def pin(container):
    assert container.pin_service.set_pin('4321', '4321')['ok']
    return '4321'


def test_balance_is_computed_from_movements(container):
    cash = container.cash_service
    cash.post_movement('chica', 'entrada', 'Fondo', 500)
    cash.post_movement('chica', 'salida', 'Gas', 300)
    result = cash.post_movement('chica', 'entrada', 'Reposición', 100)

    assert result['balance'] == 300.0
    assert cash.balance('chica') == {'ok': True, 'box': 'chica', 'balance': 300.0}
    assert cash.balances()['grande'] == 0.0


def test_movement_validation(container):
    cash = container.cash_service
    assert cash.post_movement('mediana', 'entrada', 'x', 10)['code'] == 'INVALID_INPUT'
    assert cash.post_movement('chica', 'entrada', '  ', 10)['code'] == 'INVALID_INPUT'
    assert cash.post_movement('chica', 'salida', 'Gas', 0)['code'] == 'INVALID_AMOUNT'
    assert cash.list_movements() == []


def test_delete_requires_pin(container, pin):
    movement = container.cash_service.post_movement('chica', 'salida', 'Error', 50)['movement']

    refused = container.cash_service.delete_movement(movement['id'], '0000')
    assert refused['code'] == 'PIN_INVALID'
    assert container.cash_service.balance('chica')['balance'] == -50.0

    done = container.cash_service.delete_movement(movement['id'], pin)
    assert done['ok']
    assert container.cash_service.balance('chica')['balance'] == 0.0


def test_delete_without_configured_pin(container):
    movement = container.cash_service.post_movement('chica', 'entrada', 'Fondo', 50)['movement']
    assert container.cash_service.delete_movement(movement['id'], '1234')['code'] == 'PIN_NOT_SET'


def test_sale_movements_cannot_be_deleted(container, pin, paleta):
    container.sales_service.checkout([{'product_id': paleta['id'], 'quantity': 1}])
    movement = container.cash_service.list_movements('grande')[0]

    result = container.cash_service.delete_movement(movement['id'], pin)

    assert result['code'] == 'INVALID_INPUT'
    assert container.cash_service.balance('grande')['balance'] == 25.0


def test_pin_rules(container):
    pins = container.pin_service
    assert not pins.has_pin()
    assert pins.set_pin('12', '12')['code'] == 'INVALID_INPUT'
    assert pins.set_pin('12ab', '12ab')['code'] == 'INVALID_INPUT'
    assert pins.set_pin('1234', '1235')['code'] == 'INVALID_INPUT'
    assert pins.set_pin('1234', '1234')['ok']
    assert pins.has_pin()
    stored = container.settings_repo.get_setting(PIN_SETTING_KEY)
    assert '1234' not in stored


def test_changing_pin_needs_current_one(container, pin):
    pins = container.pin_service
    assert pins.set_pin('9999', '9999')['code'] == 'PIN_INVALID'
    assert pins.set_pin('9999', '9999', current_pin=pin)['ok']
    assert pins.verify('9999')['ok']
    assert pins.verify(pin)['code'] == 'PIN_INVALID'


def test_legacy_unsalted_hash_is_upgraded(container):
    legacy = hashlib.sha256(b'2468').hexdigest()
    container.settings_repo.set_setting(PIN_SETTING_KEY, legacy)

    assert container.pin_service.verify('1357')['code'] == 'PIN_INVALID'
    assert container.pin_service.verify('2468')['ok']

    upgraded = container.settings_repo.get_setting(PIN_SETTING_KEY)
    assert upgraded != legacy
    assert container.pin_service.verify('2468')['ok']


def test_sub_cent_movement_is_rejected(container):
    result = container.cash_service.post_movement('chica', 'entrada', 'Redondeo', 0.004)

    assert result['code'] == 'INVALID_AMOUNT'
    assert container.cash_service.list_movements() == []


def test_sub_cent_amount_is_rounded_before_saving(container):
    result = container.cash_service.post_movement('chica', 'entrada', 'Fondo', 10.006)

    assert result['ok']
    assert container.cash_service.list_movements('chica')[0]['amount'] == 10.01
