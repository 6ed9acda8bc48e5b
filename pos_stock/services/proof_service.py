# ==============================================================================
# SERVICIO DE COMPROBANTES DE PAGO
# ==============================================================================
# Valida la imagen que el cliente adjunta como comprobante (transferencia,
# captura de QRIS) ANTES de aceptarla en el checkout.
#
# REGLAS:
#   - Solo imágenes (Content-Type image/*)
#   - Máximo 5 MB
#   - Si el archivo trae extensión, debe estar en ALLOWED_PROOF_EXTENSIONS
# ==============================================================================

import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from pos_stock import config
from pos_stock.services.errors import ValidationError


@dataclass(frozen=True)
class ProofAttachment:
    """Comprobante ya validado, listo para subir al backend."""
    payload: bytes
    content_type: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.payload)


def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in config.ALLOWED_PROOF_EXTENSIONS


class ProofService:
    """Valida archivos subidos (werkzeug FileStorage) como comprobante."""

    def __init__(self, max_bytes: int = config.MAX_PROOF_BYTES):
        self.max_bytes = max_bytes

    def validate(self, file: FileStorage) -> Tuple[Optional[ProofAttachment], Optional[ValidationError]]:
        """
        Lee y valida el archivo subido.

        Args:
            file: Archivo del formulario (request.files[...])

        Returns:
            Tupla (comprobante, error). Exactamente uno de los dos es None.
        """
        if file is None:
            return None, ValidationError('No se adjuntó ningún archivo')

        mimetype = (file.mimetype or '').lower()
        if not mimetype.startswith('image/'):
            return None, ValidationError('El comprobante debe ser una imagen')

        original = file.filename or ''
        if "." in original and not allowed_file(original):
            return None, ValidationError('Formato de imagen no permitido')

        # Leer un byte de más para detectar archivos que superan el límite
        payload = file.stream.read(self.max_bytes + 1)
        if len(payload) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            return None, ValidationError(f'La imagen supera el máximo de {limit_mb} MB')
        if not payload:
            return None, ValidationError('El archivo está vacío')

        filename = secure_filename(original) or 'comprobante'
        unique_name = f"{uuid.uuid4().hex}_{filename}"

        return ProofAttachment(payload=payload, content_type=mimetype, filename=unique_name), None
