# ==============================================================================
# CONFIGURACIÓN - Rutas, constantes de negocio y logging
# ==============================================================================
# Todo lo que cambia entre instalaciones se lee de variables de entorno:
#   HEDELMIA_DATA_DIR    -> carpeta de los archivos JSON
#   HEDELMIA_SECRET_KEY  -> clave de sesión de Flask
#   HEDELMIA_PRODUCTION  -> "1" activa el modo producción
# ==============================================================================

import logging
import logging.config
import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DATA_DIR = os.environ.get('HEDELMIA_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOGS_DIR = os.environ.get('HEDELMIA_LOGS_DIR', os.path.join(BASE_DIR, 'logs'))
LOG_FILE_PATH = os.path.join(LOGS_DIR, 'hedelmia.log')

# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = sin logging verbose en consola
PRODUCTION_MODE = os.environ.get('HEDELMIA_PRODUCTION', '0') == '1'

# ═══════════════════════════════════════════════════════════════════════════════
# SESIONES
# ═══════════════════════════════════════════════════════════════════════════════
DEFAULT_SECRET = 'hedelmia_dev_secret_key_change_in_production'
SECRET_KEY = os.environ.get('HEDELMIA_SECRET_KEY')

SESSION_SETTINGS = {
    'SESSION_COOKIE_HTTPONLY': True,
    'SESSION_COOKIE_SECURE': False,      # HTTP en red local
    'SESSION_COOKIE_SAMESITE': 'Lax',
    'PERMANENT_SESSION_LIFETIME': 86400,  # 24 horas
}

# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTES DE NEGOCIO
# ═══════════════════════════════════════════════════════════════════════════════
FOLIO_PREFIX = 'V-'
FOLIO_WIDTH = 6

PIN_MIN_LENGTH = 4

# Stock igual o menor a este valor se considera bajo si el producto no define
# su propio mínimo
LOW_STOCK_THRESHOLD = 5

CASH_BOXES = ('chica', 'grande')
SALE_CASH_BOX = 'grande'
SALE_CASH_CONCEPT = 'Venta POS'

# Límite de registros de auditoría
MAX_AUDIT_LOGS = 10000

# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════════════════
LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': logging.WARNING if PRODUCTION_MODE else logging.DEBUG,
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': LOG_FILE_PATH,
            'maxBytes': 1024 * 1024 * 5,  # 5 MB
            'backupCount': 5,
            'level': logging.INFO,
            'encoding': 'utf-8',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': logging.DEBUG,
    },
}


def setup_logging() -> None:
    """Aplica LOGGING_CONFIG creando antes la carpeta de logs."""
    os.makedirs(LOGS_DIR, exist_ok=True)
    logging.config.dictConfig(LOGGING_CONFIG)
