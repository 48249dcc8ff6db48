# ==============================================================================
# Hedelmiá POS - punto de venta, crédito e inventario
# ==============================================================================
