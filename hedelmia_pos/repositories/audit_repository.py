# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a audit.json
# La auditoría se almacena como lista, más reciente primero.
# ==============================================================================

import os
from typing import Any, Dict, List

from hedelmia_pos.config import MAX_AUDIT_LOGS
from hedelmia_pos.models import AuditLog, AuditType
from hedelmia_pos.repositories.base import ListRepository


class AuditRepository(ListRepository):
    """
    Repositorio para gestión del log de auditoría.

    Formato de datos en audit.json:
    [
        {
            "type": "VENTA",
            "user": "caja1",
            "message": "Venta V-000001 - Total: $180.00 - 2 productos",
            "timestamp": "2024-01-01 10:00:00",
            "related_id": "V-000001",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = MAX_AUDIT_LOGS

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'audit.json'))

    def load(self) -> List[Dict[str, Any]]:
        """
        Carga todos los logs de auditoría.

        Returns:
            Lista de logs (más recientes primero)
        """
        return sorted(self.get_all(), key=lambda x: x.get('timestamp', ''), reverse=True)

    def save(self, logs: List[Dict[str, Any]]) -> None:
        """
        Guarda todos los logs conservando solo los MAX_LOGS más recientes.

        Args:
            logs: Lista de logs
        """
        if len(logs) > self.MAX_LOGS:
            logs = logs[:self.MAX_LOGS]
        self.save_all(logs)

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un nuevo evento de auditoría.

        Args:
            log_type: Tipo de evento (VENTA, CAJA, CREDITO, STOCK, PRODUCTO, SISTEMA)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (folio, ID de producto, etc.)
            details: Detalles adicionales
        """
        entry = AuditLog(
            type=AuditType(log_type),
            user=user or 'sistema',
            message=message,
            related_id=str(related_id or ''),
            details=details or {},
        )
        with self._file_lock:
            logs = self.get_all()
            logs.insert(0, entry.to_dict())
            self.save(logs)

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        """Logs de un tipo."""
        return [log for log in self.load() if log.get('type') == log_type]
