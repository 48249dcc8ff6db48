import pytest

from hedelmia_pos.app_container import AppContainer
from hedelmia_pos.main import create_app


@pytest.fixture
def container(tmp_path):
    AppContainer.reset_instance()
    c = AppContainer(str(tmp_path))
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def app(tmp_path):
    application = create_app(base_path=str(tmp_path), testing=True)
    yield application
    AppContainer.reset_instance()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def paleta(container):
    """Producto con 10 piezas a $25."""
    result = container.inventory_service.create_product(
        {'flavor': 'Fresa', 'product_type': 'Paleta', 'presentation': 'Agua', 'price': 25, 'cost': 8, 'stock': 10}
    )
    assert result['ok']
    return result['product']


@pytest.fixture
def nieve(container):
    """Producto con 3 piezas a $40."""
    result = container.inventory_service.create_product(
        {'name': 'Nieve de limón 1L', 'price': 40, 'cost': 15, 'stock': 3}
    )
    assert result['ok']
    return result['product']


@pytest.fixture
def tienda(container):
    """Cliente con límite de $500 y saldo 0."""
    result = container.credit_service.create_customer({'name': 'Tienda La Esquina', 'credit_limit': 500})
    assert result['ok']
    return result['customer']
