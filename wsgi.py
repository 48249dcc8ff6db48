# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── hedelmia_pos/    <- Paquete Python
#       ├── main.py
#       ├── services/
#       └── repositories/
# ==============================================================================

from hedelmia_pos.main import create_app

app = create_app()

# ==============================================================================
# PUNTO DE ENTRADA
# ==============================================================================
# Para desarrollo local:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
