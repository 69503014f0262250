# backend/app/utils/seguridad_utils.py

"""
Utilidades de seguridad para usuarios y login.

Incluye:
- pwd_context / hash_password / verify_password: hashes con passlib.
  Los nuevos se guardan en pbkdf2_sha256; los bcrypt antiguos ($2...)
  siguen verificando.
- evaluar_password: puntuación de fortaleza (0-100) y si es válida.
- BloqueoLogin: cuenta intentos fallidos por identificador y bloquea
  durante N minutos al llegar al máximo. Vive en memoria del proceso.
"""

from __future__ import annotations

import re
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, stored: Optional[str]) -> bool:
    """
    False si no hay hash guardado o si el formato no es reconocible.
    Nunca compara texto plano.
    """
    if not stored:
        return False
    try:
        return pwd_context.verify(plain, stored)
    except (ValueError, TypeError):
        return False


# ============================================================
# Fortaleza de contraseña
# ============================================================

def evaluar_password(password: str) -> Tuple[int, bool, List[str]]:
    """
    Devuelve (puntuacion, valida, sugerencias).

    - 20 puntos por cada criterio: longitud >= 8, mayúscula, minúscula,
      dígito y carácter especial.
    - Válida si puntuación >= 60 y longitud >= 8.
    """
    reglas = [
        (len(password) >= 8, "Use al menos 8 caracteres"),
        (re.search(r"[A-Z]", password) is not None, "Incluya una letra mayúscula"),
        (re.search(r"[a-z]", password) is not None, "Incluya una letra minúscula"),
        (re.search(r"\d", password) is not None, "Incluya un número"),
        (re.search(r"[^A-Za-z0-9]", password) is not None, "Incluya un carácter especial"),
    ]
    puntuacion = sum(20 for ok, _ in reglas if ok)
    sugerencias = [msg for ok, msg in reglas if not ok]
    return puntuacion, puntuacion >= 60 and len(password) >= 8, sugerencias


# ============================================================
# Bloqueo por intentos fallidos
# ============================================================

class BloqueoLogin:
    """
    Contador de intentos fallidos por identificador (nombre/email en minúsculas).

    - registrar_fallo: suma un intento; al llegar a max_intentos bloquea.
    - bloqueado_hasta: datetime de fin de bloqueo o None.
    - limpiar: se llama tras un login correcto.
    """

    def __init__(self, max_intentos: int, minutos_bloqueo: int):
        self.max_intentos = max_intentos
        self.minutos_bloqueo = minutos_bloqueo
        self._intentos: Dict[str, int] = {}
        self._bloqueos: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def bloqueado_hasta(self, clave: str, now: Optional[datetime] = None) -> Optional[datetime]:
        now = now or datetime.utcnow()
        with self._lock:
            hasta = self._bloqueos.get(clave)
            if hasta and hasta > now:
                return hasta
            if hasta:
                # Bloqueo vencido: empieza de cero
                self._bloqueos.pop(clave, None)
                self._intentos.pop(clave, None)
            return None

    def registrar_fallo(self, clave: str, now: Optional[datetime] = None) -> int:
        """Devuelve los intentos restantes antes del bloqueo."""
        now = now or datetime.utcnow()
        with self._lock:
            n = self._intentos.get(clave, 0) + 1
            self._intentos[clave] = n
            if n >= self.max_intentos:
                self._bloqueos[clave] = now + timedelta(minutes=self.minutos_bloqueo)
                return 0
            return self.max_intentos - n

    def limpiar(self, clave: str) -> None:
        with self._lock:
            self._intentos.pop(clave, None)
            self._bloqueos.pop(clave, None)

    def reset(self) -> None:
        with self._lock:
            self._intentos.clear()
            self._bloqueos.clear()
