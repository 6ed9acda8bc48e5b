# ==============================================================================
# ALMACENAMIENTO DEL CARRITO
# ==============================================================================
# El carrito sobrevive reinicios, pero es del DISPOSITIVO, no de la cuenta:
# no se sincroniza entre equipos ni tiene respaldo en el servidor.
#
# IMPLEMENTACIONES:
# ├── MemoryCartStorage  → Tests (se pierde al cerrar el proceso)
# ├── JsonCartStorage    → Kiosko: archivo JSON local del equipo
# └── SessionCartStorage → Navegador: sesión Flask (cookie firmada)
# ==============================================================================

import copy
import os
from typing import Any, Dict, Optional

from flask import session

from .base import DictRepository


class MemoryCartStorage:
    """Slot en memoria. Guarda copias para que nadie modifique el estado por referencia."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._slots: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def read(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._slots.get(key))

    def write(self, key: str, value: Any) -> None:
        self._slots[key] = copy.deepcopy(value)


class JsonCartStorage(DictRepository):
    """
    Slot durable en un archivo JSON del dispositivo.

    Formato de datos en cart_storage.json:
    {
        "kiosk-cart-storage": {"version": 1, "cart": [{...}, {...}]}
    }
    """

    def __init__(self, base_path: str, file_name: str = 'cart_storage.json'):
        """
        Args:
            base_path: Carpeta de datos del dispositivo
            file_name: Nombre del archivo
        """
        super().__init__(os.path.join(base_path, file_name))

    def read(self, key: str) -> Optional[Any]:
        return self.get_by_id(key)

    def write(self, key: str, value: Any) -> None:
        self.update(key, value)


class SessionCartStorage:
    """
    Slot en la sesión de Flask (un carrito por navegador).
    Requiere un contexto de request activo.
    """

    def read(self, key: str) -> Optional[Any]:
        return session.get(key)

    def write(self, key: str, value: Any) -> None:
        session[key] = value
        session.modified = True
