import pytest

from hedelmia_pos.services import CartService


@pytest.fixture
def cart(container):
    return CartService(container.inventory_service, store={})


def test_add_beyond_stock_keeps_previous_quantity(cart, nieve):
    first = cart.add_item(nieve['id'], 2)
    second = cart.add_item(nieve['id'], 2)

    assert first['ok']
    assert second['code'] == 'INSUFFICIENT_STOCK'
    assert second['product_id'] == nieve['id']
    assert second['disponible'] == 3
    assert second['en_carrito'] == 2
    assert cart.get_items()[0]['quantity'] == 2


def test_cart_totals(cart, paleta, nieve):
    cart.add_item(paleta['id'], 2)
    cart.add_item(nieve['id'])

    summary = cart.get_cart()
    assert summary['subtotal'] == 90.0
    assert summary['total_items'] == 3
    assert summary['items_count'] == 2


def test_set_quantity_checks_current_stock(cart, container, nieve):
    cart.add_item(nieve['id'], 1)
    container.inventory_service.adjust_product_stock(nieve['id'], 'salida', 2)

    result = cart.set_quantity(nieve['id'], 2)

    assert result['code'] == 'INSUFFICIENT_STOCK'
    assert cart.get_items()[0]['quantity'] == 1


def test_set_quantity_zero_removes_line(cart, paleta):
    cart.add_item(paleta['id'], 3)
    assert cart.set_quantity(paleta['id'], 0)['ok']
    assert cart.get_items() == []


def test_unknown_product(cart):
    assert cart.add_item(999)['code'] == 'NOT_FOUND'


def test_checkout_cart_clears_only_on_success(cart, container, paleta, nieve):
    cart.add_item(nieve['id'], 3)
    container.inventory_service.adjust_product_stock(nieve['id'], 'salida', 1)

    failed = container.sales_service.checkout_cart(cart)
    assert failed['code'] == 'INSUFFICIENT_STOCK'
    assert len(cart.get_items()) == 1

    cart.set_quantity(nieve['id'], 2)
    done = container.sales_service.checkout_cart(cart)
    assert done['ok']
    assert done['sale']['total'] == 80.0
    assert cart.get_items() == []


@pytest.mark.parametrize('quantity', [2.7, '1.5', 'dos', None, True])
def test_set_quantity_rejects_non_integers(cart, paleta, quantity):
    cart.add_item(paleta['id'], 3)

    result = cart.set_quantity(paleta['id'], quantity)

    assert result['code'] == 'INVALID_AMOUNT'
    assert result['product_id'] == paleta['id']
    assert cart.get_items()[0]['quantity'] == 3


def test_set_quantity_accepts_whole_float(cart, paleta):
    cart.add_item(paleta['id'], 1)
    assert cart.set_quantity(paleta['id'], 4.0)['ok']
    assert cart.get_items()[0]['quantity'] == 4
