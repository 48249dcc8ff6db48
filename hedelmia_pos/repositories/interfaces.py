# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos (protocolos) que cumplen los repositorios. Los servicios dependen
# de estos contratos y no del formato JSON, así otra implementación
# (SQLite, MySQL) puede sustituirlos sin tocar la lógica de negocio.
#
# Todo repositorio que participe en transaction() debe ofrecer
# snapshot()/restore().
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


# ==============================================================================
# INTERFACES BASE
# ==============================================================================

@runtime_checkable
class IRepository(Protocol):
    """Operaciones mínimas de cualquier repositorio transaccional."""

    def snapshot(self) -> Any:
        """Copia del estado actual."""
        ...

    def restore(self, data: Any) -> None:
        """Vuelve a un estado copiado con snapshot()."""
        ...

    def next_id(self) -> int:
        """Siguiente ID disponible."""
        ...


@runtime_checkable
class IDictRepository(IRepository, Protocol):
    """
    Interfaz para repositorios basados en diccionarios.
    Usado por: Productos, Materias primas, Clientes, Settings.
    """

    def get_all(self) -> Dict[str, Any]:
        ...

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...

    def update(self, record_id: Any, record_data: Dict[str, Any]) -> None:
        ...


@runtime_checkable
class IListRepository(IRepository, Protocol):
    """
    Interfaz para repositorios basados en listas.
    Usado por: Ventas, Caja, Créditos, Pagarés, Refrigeradores, Movimientos, Auditoría.
    """

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def append(self, record: Dict[str, Any]) -> None:
        ...

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        ...


# ==============================================================================
# INTERFACES ESPECÍFICAS POR DOMINIO
# ==============================================================================

@runtime_checkable
class IProductRepository(IDictRepository, Protocol):
    """Catálogo de productos terminados."""

    def get_product(self, pid: int) -> Optional[Dict[str, Any]]:
        ...

    def save_product(self, product: Dict[str, Any]) -> None:
        ...

    def get_all_products(self, active_only: bool = False) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ICustomerRepository(IDictRepository, Protocol):
    """Clientes y sus saldos."""

    def get_customer(self, customer_id: int) -> Optional[Dict[str, Any]]:
        ...

    def save_customer(self, customer: Dict[str, Any]) -> None:
        ...


@runtime_checkable
class ISalesRepository(IListRepository, Protocol):
    """Ventas registradas."""

    def get_by_folio(self, folio: str) -> Optional[Dict[str, Any]]:
        ...

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        ...

    def get_next_folio(self) -> str:
        ...


@runtime_checkable
class ICashRepository(IListRepository, Protocol):
    """Movimientos de caja."""

    def get_movements(self, box: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    def calculate_balance(self, box: str) -> float:
        ...


@runtime_checkable
class ICreditRepository(IListRepository, Protocol):
    """Créditos y pagos."""

    def get_credit(self, credit_id: int) -> Optional[Dict[str, Any]]:
        ...

    def save_credit(self, credit: Dict[str, Any]) -> None:
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Log de auditoría."""

    def load(self) -> List[Dict[str, Any]]:
        ...

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        ...
