# ============================================================
# Molino - Modelos SQLAlchemy
# - Mismos nombres de tabla/columna que la BD hospedada (Supabase)
# - Importes en NUMERIC(14, 2) -> Decimal en Python
# - IDs string (UUID) generados en la API
# - Tipos portables (String/Numeric/JSON) para poder testear con SQLite
# ============================================================

import enum

import sqlalchemy as sa
from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, Text, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from backend.app.db.base import Base


# =============================================
# 1. USUARIOS
# =============================================
class RoleEnum(str, enum.Enum):
    admin = "admin"
    viewer = "viewer"


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}

    id            = Column(String, primary_key=True, index=True)
    name          = Column(String, unique=True, index=True, nullable=False)
    email         = Column(String, unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=False)
    role          = Column(String, nullable=False, server_default=RoleEnum.viewer.value)
    is_active     = Column(Boolean, nullable=False, server_default=text("true"))
    created_at    = Column(DateTime, server_default=func.now())


# =============================================
# 2. LOTES
# =============================================
class Lote(Base):
    __tablename__ = "lotes"
    __table_args__ = {"extend_existing": True}

    id            = Column(String, primary_key=True, index=True)
    numero_lote   = Column(String, unique=True, index=True, nullable=False)
    estado        = Column(String, nullable=False, server_default="disponible", index=True)
    area          = Column(Numeric(12, 2), nullable=True)
    precio        = Column(Numeric(14, 2), nullable=True)
    ubicacion     = Column(String, nullable=True)
    descripcion   = Column(Text, nullable=True)
    bloqueado_por = Column(String, nullable=True)
    cliente_id    = Column(String, ForeignKey("clientes_actuales.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at    = Column(DateTime, server_default=func.now())
    updated_at    = Column(DateTime, server_default=func.now())

    cliente = relationship("ClienteActual", back_populates="lotes")


# =============================================
# 3. CLIENTES
# =============================================
class ClienteInteresado(Base):
    __tablename__ = "clientes_interesados"
    __table_args__ = {"extend_existing": True}

    id             = Column(String, primary_key=True, index=True)
    nombre         = Column(String, nullable=False)
    email          = Column(String, nullable=True)
    telefono       = Column(String, nullable=True)
    fecha_contacto = Column(DateTime, nullable=False, server_default=func.now())
    notas          = Column(Text, nullable=False, server_default="")
    estado         = Column(String, nullable=False, server_default="activo", index=True)
    created_at     = Column(DateTime, server_default=func.now())


class ClienteActual(Base):
    __tablename__ = "clientes_actuales"
    __table_args__ = {"extend_existing": True}

    id                    = Column(String, primary_key=True, index=True)
    nombre                = Column(String, nullable=False)
    email                 = Column(String, nullable=True)
    telefono              = Column(String, nullable=True)
    cedula                = Column(String, nullable=True)

    # Copia desnormalizada del número de lote (no es FK)
    numero_lote           = Column(String, nullable=False, index=True)

    valor_lote            = Column(Numeric(14, 2), nullable=False)
    deposito_inicial      = Column(Numeric(14, 2), nullable=False, server_default=text("0"))
    saldo_restante        = Column(Numeric(14, 2), nullable=False, server_default=text("0"))
    numero_cuotas         = Column(sa.Integer, nullable=False, server_default=text("1"))
    valor_cuota           = Column(Numeric(14, 2), nullable=False, server_default=text("0"))
    saldo_final           = Column(Numeric(14, 2), nullable=False, server_default=text("0"))

    forma_pago_inicial    = Column(String, nullable=True)
    forma_pago_cuotas     = Column(String, nullable=True)
    tipo_plan_pago        = Column(String, nullable=False, server_default="automatico")
    cuotas_personalizadas = Column(JSON, nullable=True)

    documento_compraventa = Column(String, nullable=True)
    notas_especiales      = Column(Text, nullable=True)
    estado                = Column(String, nullable=False, server_default="activo", index=True)

    # Evita duplicar una liquidación si el cliente reenvía la misma petición
    clave_idempotencia    = Column(String, unique=True, nullable=True)
    numero_operacion      = Column(String(6), nullable=True)

    created_at            = Column(DateTime, server_default=func.now())

    pagos = relationship(
        "PagoCliente",
        back_populates="cliente",
        cascade="all, delete-orphan",
        order_by="PagoCliente.fecha_pago",
    )
    lotes = relationship("Lote", back_populates="cliente")


class PagoCliente(Base):
    __tablename__ = "pagos_clientes"
    __table_args__ = {"extend_existing": True}

    id                = Column(String, primary_key=True, index=True)
    cliente_id        = Column(String, ForeignKey("clientes_actuales.id", ondelete="CASCADE"), nullable=False, index=True)
    fecha_pago        = Column(DateTime, nullable=False, index=True)
    monto             = Column(Numeric(14, 2), nullable=False)
    tipo_pago         = Column(String, nullable=False)
    forma_pago        = Column(String, nullable=True)
    notas             = Column(Text, nullable=True)
    documento_adjunto = Column(String, nullable=True)
    created_at        = Column(DateTime, server_default=func.now())

    cliente = relationship("ClienteActual", back_populates="pagos")


# =============================================
# 4. FINANZAS
# =============================================
class Transaccion(Base):
    __tablename__ = "transactions"
    __table_args__ = {"extend_existing": True}

    id          = Column(String, primary_key=True, index=True)
    date        = Column(Date, nullable=False, index=True)
    type        = Column(String, nullable=False, index=True)   # ('ingreso','egreso')
    amount      = Column(Numeric(14, 2), nullable=False)
    category    = Column(String, nullable=False)
    description = Column(Text, nullable=False, server_default="")
    user        = Column(String, nullable=False)
    attachments = Column(JSON, nullable=True)


class EgresoFuturo(Base):
    __tablename__ = "egresos_futuros"
    __table_args__ = {"extend_existing": True}

    id             = Column(String, primary_key=True, index=True)
    fecha          = Column(Date, nullable=False, index=True)
    tipo           = Column(String, nullable=False)   # ('planificado','recurrente','extraordinario')
    categoria      = Column(String, nullable=False)
    descripcion    = Column(Text, nullable=True)
    monto          = Column(Numeric(14, 2), nullable=False)
    usuario        = Column(String, nullable=False)
    adjuntos       = Column(JSON, nullable=True)
    estado         = Column(String, nullable=False, server_default="pendiente", index=True)
    transaccion_id = Column(String, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    created_at     = Column(DateTime, server_default=func.now())


# =============================================
# 5. NOTAS, DOCUMENTOS Y AUDITORÍA
# =============================================
class Nota(Base):
    __tablename__ = "notes"
    __table_args__ = {"extend_existing": True}

    id         = Column(String, primary_key=True, index=True)
    title      = Column(String, nullable=False)
    content    = Column(Text, nullable=False, server_default="")
    status     = Column(String, nullable=False, server_default="futuro", index=True)
    category   = Column(String, nullable=False, server_default="General")
    created_at = Column(DateTime, server_default=func.now())


class Documento(Base):
    __tablename__ = "documents"
    __table_args__ = {"extend_existing": True}

    id          = Column(String, primary_key=True, index=True)
    name        = Column(String, nullable=False)
    type        = Column(String, nullable=False)
    data        = Column(Text, nullable=False)       # base64 (data URL o crudo)
    size_bytes  = Column(sa.Integer, nullable=False, server_default=text("0"))
    uploaded_by = Column(String, nullable=False)
    uploaded_at = Column(DateTime, server_default=func.now(), index=True)
    category    = Column(String, nullable=False, server_default="General")


class AuditLog(Base):
    __tablename__ = "audit_logs"
    __table_args__ = {"extend_existing": True}

    id        = Column(String, primary_key=True, index=True)
    date      = Column(DateTime, nullable=False, index=True)
    user_id   = Column(String, nullable=True)
    user_name = Column(String, nullable=True)
    action    = Column(String, nullable=False)
    details   = Column(Text, nullable=False, server_default="")


# =============================================
# 6. OBRAS
# =============================================
class Obra(Base):
    __tablename__ = "obras"
    __table_args__ = {"extend_existing": True}

    id                      = Column(String, primary_key=True, index=True)
    nombre                  = Column(String, nullable=False)
    descripcion             = Column(Text, nullable=True)
    etapa                   = Column(String, nullable=False, server_default="planificacion", index=True)
    progreso                = Column(sa.Integer, nullable=False, server_default=text("0"))   # 0-100
    presupuesto             = Column(Numeric(14, 2), nullable=False, server_default=text("0"))
    # Suma de obras_gastos.monto, se recalcula al añadir/borrar un gasto
    gastado                 = Column(Numeric(14, 2), nullable=False, server_default=text("0"))
    fecha_inicio            = Column(Date, nullable=False)
    fecha_fin_estimada      = Column(Date, nullable=True)
    fecha_fin_real          = Column(Date, nullable=True)
    ubicacion               = Column(String, nullable=True)
    responsable             = Column(String, nullable=True)
    estado                  = Column(String, nullable=False, server_default="activa", index=True)
    compartido_con_clientes = Column(Boolean, nullable=False, server_default=text("false"))
    lotes_asociados         = Column(JSON, nullable=True)   # ids de lotes
    created_by              = Column(String, nullable=True)
    created_at              = Column(DateTime, server_default=func.now())
    updated_at              = Column(DateTime, server_default=func.now())

    gastos = relationship(
        "GastoObra",
        back_populates="obra",
        cascade="all, delete-orphan",
        order_by="GastoObra.fecha",
    )
    hitos = relationship(
        "HitoObra",
        back_populates="obra",
        cascade="all, delete-orphan",
        order_by="HitoObra.created_at",
    )


class GastoObra(Base):
    __tablename__ = "obras_gastos"
    __table_args__ = {"extend_existing": True}

    id           = Column(String, primary_key=True, index=True)
    obra_id      = Column(String, ForeignKey("obras.id", ondelete="CASCADE"), nullable=False, index=True)
    fecha        = Column(Date, nullable=False)
    concepto     = Column(String, nullable=False)
    categoria    = Column(String, nullable=False, server_default="otros")
    monto        = Column(Numeric(14, 2), nullable=False)
    proveedor    = Column(String, nullable=True)
    notas        = Column(Text, nullable=True)
    etapa        = Column(String, nullable=True)   # etapa de la obra al registrarlo
    aprobado_por = Column(String, nullable=True)
    created_at   = Column(DateTime, server_default=func.now())

    obra = relationship("Obra", back_populates="gastos")


class HitoObra(Base):
    __tablename__ = "obras_hitos"
    __table_args__ = {"extend_existing": True}

    id               = Column(String, primary_key=True, index=True)
    obra_id          = Column(String, ForeignKey("obras.id", ondelete="CASCADE"), nullable=False, index=True)
    titulo           = Column(String, nullable=False)
    descripcion      = Column(Text, nullable=True)
    fecha            = Column(Date, nullable=True)
    responsable      = Column(String, nullable=True)
    etapa            = Column(String, nullable=True)
    completado       = Column(Boolean, nullable=False, server_default=text("false"))
    fecha_completado = Column(DateTime, nullable=True)
    created_at       = Column(DateTime, server_default=func.now())

    obra = relationship("Obra", back_populates="hitos")
