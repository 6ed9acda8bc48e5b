# ==============================================================================
# POS STOCK - Motor de stock compuesto, carrito y checkout
# ==============================================================================
# Capas:
#   models/        → Entidades (productos, paquetes, combos, carrito, pagos)
#   repositories/  → Persistencia local (JSON, sesión Flask) y puerto al backend
#   services/      → Lógica de negocio (stock, carrito, pagos, checkout)
#   app_container  → Inyección de dependencias
# ==============================================================================

__version__ = "0.3.0"
