# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from hedelmia_pos.errors import StoreError

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios.
    Proporciona funcionalidad común para lectura/escritura de archivos JSON
    con manejo de concurrencia mediante un lock compartido por proceso.

    Todas las operaciones de negocio que tocan varios archivos deben
    ejecutarse dentro de transaction(), que mantiene el lock durante
    validación y escritura.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Inicializa el repositorio con la ruta al archivo JSON.

        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """
        Retorna la estructura de datos vacía para este repositorio.

        Returns:
            Estructura vacía (dict, list, etc.) según el repositorio
        """
        pass

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Returns:
            Datos parseados del JSON

        Raises:
            StoreError: Si el archivo tiene JSON inválido o no se puede leer
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except FileNotFoundError:
                return self._empty_data()
            except (json.JSONDecodeError, OSError) as e:
                logger.error("No se pudo leer %s: %s", self.file_path, e)
                raise StoreError(f"Archivo ilegible: {os.path.basename(self.file_path)}") from e

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON.

        Args:
            data: Datos a serializar y escribir

        Raises:
            StoreError: Si hay error de escritura
        """
        with self._file_lock:
            # Escribir a archivo temporal primero para atomicidad
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                # Reemplazar archivo original (operación atómica en la mayoría de sistemas)
                os.replace(temp_path, self.file_path)
            except (OSError, TypeError, ValueError) as e:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                logger.error("No se pudo escribir %s: %s", self.file_path, e)
                raise StoreError(f"No se pudo guardar {os.path.basename(self.file_path)}") from e

    # =========================================================================
    # SNAPSHOTS (para revertir transacciones)
    # =========================================================================

    def snapshot(self) -> Any:
        """Copia de los datos actuales del archivo."""
        return self._read_raw()

    def restore(self, data: Any) -> None:
        """Reescribe el archivo con un snapshot previo."""
        self._write_raw(data)


class DictRepository(BaseRepository):
    """
    Repositorio base para datos almacenados como diccionario.
    El ID (como texto) es la clave del diccionario.

    Ejemplo: products.json -> {"1": {...}, "2": {...}}
    """

    def _empty_data(self) -> Dict:
        """Retorna diccionario vacío."""
        return {}

    def get_all(self) -> Dict[str, Any]:
        """
        Obtiene todos los registros.

        Returns:
            Diccionario con todos los datos
        """
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """
        Obtiene un registro por su ID.

        Args:
            record_id: ID del registro (puede ser int o str)

        Returns:
            Datos del registro o None si no existe
        """
        return self.get_all().get(str(record_id))

    def save_all(self, data: Dict[str, Any]) -> None:
        """
        Guarda todos los registros (reemplazo completo).

        Args:
            data: Diccionario completo de datos
        """
        self._write_raw(data)

    def update(self, record_id: Any, record_data: Dict[str, Any]) -> None:
        """
        Crea o reemplaza un registro específico.

        Args:
            record_id: ID del registro
            record_data: Nuevos datos del registro
        """
        with self._file_lock:
            data = self.get_all()
            data[str(record_id)] = record_data
            self._write_raw(data)

    def next_id(self) -> int:
        """Siguiente ID numérico disponible (máximo + 1)."""
        ids = [int(k) for k in self.get_all().keys() if str(k).isdigit()]
        return max(ids, default=0) + 1


class ListRepository(BaseRepository):
    """
    Repositorio base para datos almacenados como lista.

    Ejemplo: sales.json -> [{...}, {...}]
    """

    def _empty_data(self) -> List:
        """Retorna lista vacía."""
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        """
        Obtiene todos los registros.

        Returns:
            Lista con todos los datos
        """
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        """
        Guarda todos los registros (reemplazo completo).

        Args:
            data: Lista completa de datos
        """
        self._write_raw(data)

    def append(self, record: Dict[str, Any]) -> None:
        """
        Agrega un registro al final.

        Args:
            record: Datos del nuevo registro
        """
        with self._file_lock:
            data = self.get_all()
            data.append(record)
            self._write_raw(data)

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Busca un registro por un campo específico.

        Args:
            field: Nombre del campo
            value: Valor a buscar

        Returns:
            Primer registro que coincide o None
        """
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        """
        Busca todos los registros que coinciden con un campo.

        Args:
            field: Nombre del campo
            value: Valor a buscar

        Returns:
            Lista de registros que coinciden
        """
        return [r for r in self.get_all() if r.get(field) == value]

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> bool:
        """
        Actualiza registros que coinciden con un campo.

        Args:
            field: Nombre del campo para filtrar
            value: Valor a buscar
            updates: Campos a actualizar

        Returns:
            True si se actualizó al menos un registro
        """
        with self._file_lock:
            data = self.get_all()
            updated = False
            for record in data:
                if record.get(field) == value:
                    record.update(updates)
                    updated = True
            if updated:
                self._write_raw(data)
            return updated

    def remove_where(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Elimina el primer registro que coincide.

        Returns:
            Registro eliminado o None si no existía
        """
        with self._file_lock:
            data = self.get_all()
            for i, record in enumerate(data):
                if record.get(field) == value:
                    removed = data.pop(i)
                    self._write_raw(data)
                    return removed
            return None

    def next_id(self) -> int:
        """Siguiente ID numérico disponible (máximo + 1)."""
        return max((int(r.get('id', 0)) for r in self.get_all()), default=0) + 1


# ==============================================================================
# TRANSACCIONES
# ==============================================================================

@contextmanager
def transaction(*repos: BaseRepository) -> Iterator[None]:
    """
    Ejecuta un bloque de validación y escritura como una sola operación.

    Mantiene el lock de archivos durante todo el bloque, así ninguna otra
    petición ve ni modifica un estado intermedio. Si el bloque lanza una
    excepción, cada repositorio participante vuelve a su snapshot inicial.

    Uso:
        with transaction(self.sales_repo, self.product_repo):
            ...

    Args:
        *repos: Repositorios que el bloque puede modificar
    """
    with BaseRepository._file_lock:
        snapshots = [(repo, repo.snapshot()) for repo in repos]
        try:
            yield
        except Exception:
            logger.warning("Transacción revertida (%d archivos)", len(snapshots))
            restore_errors = []
            for repo, data in snapshots:
                try:
                    repo.restore(data)
                except StoreError as e:
                    restore_errors.append(e)
            if restore_errors:
                logger.critical(
                    "No se pudieron restaurar %d archivos tras un fallo", len(restore_errors)
                )
            raise
