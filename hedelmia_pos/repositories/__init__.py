# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (archivos JSON).
#
# ESTRUCTURA:
# ├── interfaces.py            → Protocolos (contratos)
# ├── base.py                  → DictRepository, ListRepository, transaction()
# ├── inventory_repository.py  → products, stock_movements, raw_materials, material_movements
# ├── customer_repository.py   → customers, customer_movements
# ├── sales_repository.py      → sales
# ├── cash_repository.py       → cash_movements
# ├── credit_repository.py     → credits, promissory_notes
# ├── fridge_repository.py     → fridge_loans
# ├── settings_repository.py   → settings
# └── audit_repository.py      → audit
# ==============================================================================

from hedelmia_pos.repositories.interfaces import (
    IRepository,
    IDictRepository,
    IListRepository,
    IProductRepository,
    ICustomerRepository,
    ISalesRepository,
    ICashRepository,
    ICreditRepository,
    IAuditRepository,
)

from hedelmia_pos.repositories.base import (
    BaseRepository,
    DictRepository,
    ListRepository,
    transaction,
)
from hedelmia_pos.repositories.inventory_repository import (
    ProductRepository,
    StockMovementRepository,
    RawMaterialRepository,
    MaterialMovementRepository,
)
from hedelmia_pos.repositories.customer_repository import (
    CustomerRepository,
    CustomerMovementRepository,
)
from hedelmia_pos.repositories.sales_repository import SalesRepository
from hedelmia_pos.repositories.cash_repository import CashRepository
from hedelmia_pos.repositories.credit_repository import (
    CreditRepository,
    PromissoryNoteRepository,
)
from hedelmia_pos.repositories.fridge_repository import FridgeRepository
from hedelmia_pos.repositories.settings_repository import SettingsRepository
from hedelmia_pos.repositories.audit_repository import AuditRepository

__all__ = [
    # Interfaces
    'IRepository',
    'IDictRepository',
    'IListRepository',
    'IProductRepository',
    'ICustomerRepository',
    'ISalesRepository',
    'ICashRepository',
    'ICreditRepository',
    'IAuditRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'transaction',

    # Implementaciones JSON
    'ProductRepository',
    'StockMovementRepository',
    'RawMaterialRepository',
    'MaterialMovementRepository',
    'CustomerRepository',
    'CustomerMovementRepository',
    'SalesRepository',
    'CashRepository',
    'CreditRepository',
    'PromissoryNoteRepository',
    'FridgeRepository',
    'SettingsRepository',
    'AuditRepository',
]
