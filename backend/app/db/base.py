# backend/app/db/base.py

"""
Clase Base declarativa de SQLAlchemy para las tablas de Molino
(lotes, clientes, pagos, transacciones, egresos futuros, notas,
documentos, auditoría y usuarios).
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
