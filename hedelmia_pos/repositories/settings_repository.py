# ==============================================================================
# REPOSITORIO DE CONFIGURACIONES
# ==============================================================================
# Encapsula todo el acceso a settings.json
# Almacena valores sueltos del negocio (hash del PIN de finanzas, etc.)
# ==============================================================================

import os
from typing import Any

from hedelmia_pos.repositories.base import DictRepository


class SettingsRepository(DictRepository):
    """
    Repositorio de configuraciones clave/valor.

    Formato de datos en settings.json:
    {
        "hedelmia_finance_pin_hash": "pbkdf2:sha256:..."
    }
    """

    def __init__(self, base_path: str):
        """
        Inicializa el repositorio de settings.

        Args:
            base_path: Carpeta de datos
        """
        super().__init__(os.path.join(base_path, 'settings.json'))

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Obtiene una configuración.

        Args:
            key: Clave de la configuración
            default: Valor si no existe

        Returns:
            Valor guardado o default
        """
        return self.get_all().get(key, default)

    def set_setting(self, key: str, value: Any) -> None:
        """Guarda una configuración."""
        self.update(key, value)
