# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a audit.json
# La auditoría se almacena como lista: [{log1}, {log2}, ...]
# ==============================================================================

import os
from datetime import datetime
from typing import Any, Dict, List

from .base import ListRepository


class AuditRepository(ListRepository):
    """
    Repositorio para el log de actividad del punto de venta.

    Formato de datos en audit.json:
    [
        {
            "type": "VENTA",
            "user": "kasir01",
            "message": "Venta 17 registrada ...",
            "timestamp": "2024-01-01 10:00:00",
            "related_id": "17",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def __init__(self, base_path: str, file_name: str = 'audit.json', max_logs: int = None):
        """
        Args:
            base_path: Carpeta de datos
            file_name: Nombre del archivo
            max_logs: Límite de registros (por defecto MAX_LOGS)
        """
        if max_logs is not None:
            self.MAX_LOGS = max_logs
        super().__init__(os.path.join(base_path, file_name))

    def load(self) -> List[Dict[str, Any]]:
        """
        Carga todos los logs de auditoría.

        Returns:
            Lista de logs (más recientes primero)
        """
        logs = self.get_all()
        return sorted(logs, key=lambda x: x.get('timestamp', ''), reverse=True)

    def save(self, logs: List[Dict[str, Any]]) -> None:
        """Guarda los logs respetando MAX_LOGS."""
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
            log_type: Tipo de evento (VENTA, PAGO, STOCK, SISTEMA)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (transacción, producto...)
            details: Detalles adicionales
        """
        log_entry = {
            'type': log_type,
            'user': user or 'sistema',
            'message': message,
            'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'related_id': related_id,
            'details': details or {}
        }

        with self._file_lock:
            logs = self.get_all()
            logs.insert(0, log_entry)  # Más reciente primero
            self.save(logs)

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Los `limit` logs más recientes."""
        return self.get_all()[:limit]

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        """Filtra logs por tipo."""
        return self.find_all_by('type', log_type)

    def get_logs_by_related_id(self, related_id: str) -> List[Dict[str, Any]]:
        """Filtra logs por ID relacionado."""
        return self.find_all_by('related_id', related_id)
