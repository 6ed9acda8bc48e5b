# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula la persistencia local (JSON, sesión Flask) y el puerto
# hacia el backend remoto. Los services dependen de las interfaces.
#
# ESTRUCTURA:
# ├── interfaces.py       → Protocolos (ICartStorage, IBackendGateway, IAuditRepository)
# ├── base.py             → Clases base para JSON (DictRepository, ListRepository)
# ├── cart_storage.py     → Slot durable del carrito (memoria, JSON, sesión)
# ├── audit_repository.py → Acceso a audit.json
# └── memory_backend.py   → Backend en proceso (tests y demos)
#
# BACKEND REAL:
# 1. Crear un cliente que implemente IBackendGateway
# 2. Pasarlo a AppContainer(gateway=...)
# 3. Los services NO requieren cambios (dependen de interfaces)
# ==============================================================================

# Interfaces
from .interfaces import (
    ICartStorage,
    IBackendGateway,
    IAuditRepository,
)

# Implementaciones concretas
from .base import BaseRepository, DictRepository, ListRepository
from .cart_storage import MemoryCartStorage, JsonCartStorage, SessionCartStorage
from .audit_repository import AuditRepository
from .memory_backend import InMemoryBackend

__all__ = [
    # Interfaces
    'ICartStorage',
    'IBackendGateway',
    'IAuditRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',

    # Implementaciones
    'MemoryCartStorage',
    'JsonCartStorage',
    'SessionCartStorage',
    'AuditRepository',
    'InMemoryBackend',
]
