# ==============================================================================
# CONFIGURACIÓN - Constantes del motor de stock, carrito y checkout
# ==============================================================================
# Valores por defecto pensados para un kiosko/caja en una sola tienda.
# Se pueden sobrescribir con variables de entorno:
#   export POS_STOCK_DATA_DIR="/var/lib/pos_stock"
#   export POS_STOCK_ENABLE_PROFILING="0"
# ==============================================================================

import os
from decimal import Decimal


BASE = os.path.dirname(os.path.abspath(__file__))

# ═══════════════════════════════════════════════════════════════════════════════
# RUTAS
# ═══════════════════════════════════════════════════════════════════════════════
# Carpeta donde viven los JSON locales (carrito del dispositivo, auditoría)
DATA_DIR = os.environ.get("POS_STOCK_DATA_DIR", BASE)

# Carpeta de logs de rendimiento
LOGS_DIR = os.environ.get("POS_STOCK_LOGS_DIR", os.path.join(BASE, "logs"))

# ═══════════════════════════════════════════════════════════════════════════════
# PROFILING
# ═══════════════════════════════════════════════════════════════════════════════
ENABLE_PROFILING = os.environ.get("POS_STOCK_ENABLE_PROFILING", "1") == "1"

# ═══════════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════════
# Clave del slot durable donde se guarda el carrito (uno por dispositivo)
CART_STORAGE_KEY = "kiosk-cart-storage"
CART_FILE_NAME = "cart_storage.json"

# ═══════════════════════════════════════════════════════════════════════════════
# PAGOS
# ═══════════════════════════════════════════════════════════════════════════════
# Tolerancia SOLO para montos escritos como texto decimal ("15000.00").
# Internamente todo el dinero es entero (unidad mínima de la moneda).
PAYMENT_EPSILON = Decimal("0.01")

# ═══════════════════════════════════════════════════════════════════════════════
# COMPROBANTE DE PAGO (imagen)
# ═══════════════════════════════════════════════════════════════════════════════
MAX_PROOF_BYTES = 5 * 1024 * 1024  # 5 MB
ALLOWED_PROOF_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

# ═══════════════════════════════════════════════════════════════════════════════
# AUDITORÍA
# ═══════════════════════════════════════════════════════════════════════════════
AUDIT_FILE_NAME = "audit.json"
AUDIT_MAX_LOGS = 10000
