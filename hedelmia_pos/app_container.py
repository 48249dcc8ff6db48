# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (un contenedor por carpeta temporal de datos)
#   - Cambiar el almacenamiento sin tocar servicios
#
# Para usar otro almacenamiento (SQLite, MySQL) basta con crear clases que
# cumplan las interfaces de repositories/interfaces.py e instanciarlas aquí.
# ==============================================================================

import os
from typing import Optional

from hedelmia_pos.config import DATA_DIR

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia (JSON)
# ═══════════════════════════════════════════════════════════════════════════════
from hedelmia_pos.repositories import (
    AuditRepository,
    CashRepository,
    CreditRepository,
    CustomerMovementRepository,
    CustomerRepository,
    FridgeRepository,
    MaterialMovementRepository,
    ProductRepository,
    PromissoryNoteRepository,
    RawMaterialRepository,
    SalesRepository,
    SettingsRepository,
    StockMovementRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from hedelmia_pos.services import (
    AuditService,
    CartService,
    CashService,
    CreditService,
    ExportService,
    FridgeService,
    InventoryService,
    PinService,
    SalesService,
    StatsService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(base_path='/ruta/a/data')
        sales_service = container.sales_service
    """

    _instance: Optional['AppContainer'] = None

    _REPOSITORIES = {
        'product_repo': ProductRepository,
        'stock_movement_repo': StockMovementRepository,
        'material_repo': RawMaterialRepository,
        'material_movement_repo': MaterialMovementRepository,
        'customer_repo': CustomerRepository,
        'customer_movement_repo': CustomerMovementRepository,
        'sales_repo': SalesRepository,
        'cash_repo': CashRepository,
        'credit_repo': CreditRepository,
        'note_repo': PromissoryNoteRepository,
        'fridge_repo': FridgeRepository,
        'settings_repo': SettingsRepository,
        'audit_repo': AuditRepository,
    }

    def __new__(cls, base_path: str = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None):
        """
        Inicializa el contenedor.

        Args:
            base_path: Carpeta donde viven los archivos JSON
        """
        if self._initialized:
            return

        self._base_path = os.path.abspath(base_path or DATA_DIR)
        os.makedirs(self._base_path, exist_ok=True)
        self._repos = {}
        self._services = {}
        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    def _repo(self, name: str):
        """Repositorio por nombre (lazy, una instancia por contenedor)."""
        if name not in self._repos:
            self._repos[name] = self._REPOSITORIES[name](self._base_path)
        return self._repos[name]

    @property
    def product_repo(self) -> ProductRepository:
        return self._repo('product_repo')

    @property
    def stock_movement_repo(self) -> StockMovementRepository:
        return self._repo('stock_movement_repo')

    @property
    def material_repo(self) -> RawMaterialRepository:
        return self._repo('material_repo')

    @property
    def material_movement_repo(self) -> MaterialMovementRepository:
        return self._repo('material_movement_repo')

    @property
    def customer_repo(self) -> CustomerRepository:
        return self._repo('customer_repo')

    @property
    def customer_movement_repo(self) -> CustomerMovementRepository:
        return self._repo('customer_movement_repo')

    @property
    def sales_repo(self) -> SalesRepository:
        return self._repo('sales_repo')

    @property
    def cash_repo(self) -> CashRepository:
        return self._repo('cash_repo')

    @property
    def credit_repo(self) -> CreditRepository:
        return self._repo('credit_repo')

    @property
    def note_repo(self) -> PromissoryNoteRepository:
        return self._repo('note_repo')

    @property
    def fridge_repo(self) -> FridgeRepository:
        return self._repo('fridge_repo')

    @property
    def settings_repo(self) -> SettingsRepository:
        return self._repo('settings_repo')

    @property
    def audit_repo(self) -> AuditRepository:
        return self._repo('audit_repo')

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        """Servicio de auditoría (singleton)."""
        if 'audit' not in self._services:
            self._services['audit'] = AuditService(self.audit_repo)
        return self._services['audit']

    @property
    def pin_service(self) -> PinService:
        """Servicio del PIN de finanzas (singleton)."""
        if 'pin' not in self._services:
            self._services['pin'] = PinService(self.settings_repo, self.audit_service)
        return self._services['pin']

    @property
    def inventory_service(self) -> InventoryService:
        """Servicio de inventario (singleton)."""
        if 'inventory' not in self._services:
            self._services['inventory'] = InventoryService(
                self.product_repo,
                self.stock_movement_repo,
                self.material_repo,
                self.material_movement_repo,
                self.audit_service
            )
        return self._services['inventory']

    @property
    def cash_service(self) -> CashService:
        """Servicio de caja (singleton)."""
        if 'cash' not in self._services:
            self._services['cash'] = CashService(
                self.cash_repo,
                self.pin_service,
                self.audit_service
            )
        return self._services['cash']

    @property
    def credit_service(self) -> CreditService:
        """Servicio de clientes y crédito (singleton)."""
        if 'credit' not in self._services:
            self._services['credit'] = CreditService(
                self.customer_repo,
                self.customer_movement_repo,
                self.credit_repo,
                self.note_repo,
                self.audit_service
            )
        return self._services['credit']

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito sobre la sesión de Flask (singleton)."""
        if 'cart' not in self._services:
            self._services['cart'] = CartService(self.inventory_service)
        return self._services['cart']

    @property
    def sales_service(self) -> SalesService:
        """Servicio de ventas (singleton)."""
        if 'sales' not in self._services:
            self._services['sales'] = SalesService(
                self.sales_repo,
                self.inventory_service,
                self.cash_service,
                self.credit_service,
                self.audit_service
            )
        return self._services['sales']

    @property
    def fridge_service(self) -> FridgeService:
        """Servicio de refrigeradores (singleton)."""
        if 'fridge' not in self._services:
            self._services['fridge'] = FridgeService(
                self.fridge_repo,
                self.customer_repo,
                self.audit_service
            )
        return self._services['fridge']

    @property
    def stats_service(self) -> StatsService:
        """Servicio de estadísticas del panel (singleton)."""
        if 'stats' not in self._services:
            self._services['stats'] = StatsService(
                self.sales_repo,
                self.inventory_service,
                self.cash_service,
                self.credit_service,
                self.fridge_service
            )
        return self._services['stats']

    @property
    def export_service(self) -> ExportService:
        """Servicio de exportación CSV (singleton)."""
        if 'export' not in self._services:
            self._services['export'] = ExportService(
                self.sales_service,
                self.inventory_service,
                self.credit_service,
                self.cash_service,
                self.fridge_service
            )
        return self._services['export']

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        self._repos = {}
        self._services = {}

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Carpeta de datos (solo se usa en primera llamada)

        Returns:
            Instancia del contenedor
        """
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(base_path: str = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Carpeta de datos

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(base_path)
