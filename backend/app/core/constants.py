# backend/app/core/constants.py

"""
Constantes de negocio de Molino.

Aquí concentramos todos los "strings mágicos" que usamos en varios sitios:
- estados de lotes, clientes, egresos, obras y notas
- etapas de una obra con sus días estimados
- tipos de pago que genera la liquidación de un lote
- tipos MIME aceptados para documentos de compraventa
"""

# ----------------------------
# Lotes
# ----------------------------
LOTE_DISPONIBLE = "disponible"
LOTE_RESERVADO = "reservado"
LOTE_VENDIDO = "vendido"
LOTE_BLOQUEADO = "bloqueado"

ESTADOS_LOTE = (LOTE_DISPONIBLE, LOTE_RESERVADO, LOTE_VENDIDO, LOTE_BLOQUEADO)

# Estados que exigen un cliente asociado
ESTADOS_LOTE_CON_CLIENTE = {LOTE_RESERVADO, LOTE_VENDIDO}

# ----------------------------
# Pagos generados por la liquidación (reserva / venta)
# ----------------------------
TIPO_PAGO_DEPOSITO_RESERVA = "Depósito de Reserva"
TIPO_PAGO_CUOTA_INICIAL = "Cuota Inicial"

TIPOS_PAGO_LIQUIDACION = {TIPO_PAGO_DEPOSITO_RESERVA, TIPO_PAGO_CUOTA_INICIAL}

TIPO_PAGO_POR_ACCION = {
    LOTE_RESERVADO: TIPO_PAGO_DEPOSITO_RESERVA,
    LOTE_VENDIDO: TIPO_PAGO_CUOTA_INICIAL,
}

# ----------------------------
# Clientes
# ----------------------------
INTERESADO_ACTIVO = "activo"
INTERESADO_CONVERTIDO = "convertido"

CLIENTE_ACTIVO = "activo"
CLIENTE_PAGADO = "pagado"
CLIENTE_MORA = "mora"

PLAN_AUTOMATICO = "automatico"
PLAN_PERSONALIZADO = "personalizado"

FORMA_PAGO_INICIAL_DEFAULT = "Efectivo"
FORMA_PAGO_CUOTAS_DEFAULT = "Transferencia Bancaria"

# Próximo pago esperado y situación del cliente
DIAS_ENTRE_PAGOS = 30
DIAS_GRACIA_MORA = 7

PAGO_AL_DIA = "al_dia"
PAGO_VENCIDO = "vencido"
PAGO_MORA = "mora"
PAGO_COMPLETADO = "pagado"

# ----------------------------
# Transacciones y egresos futuros
# ----------------------------
TRANSACCION_INGRESO = "ingreso"
TRANSACCION_EGRESO = "egreso"

EGRESO_PENDIENTE = "pendiente"
EGRESO_PAGADO = "pagado"
EGRESO_CANCELADO = "cancelado"

# ----------------------------
# Obras (urbanización del proyecto)
# ----------------------------
OBRA_ACTIVA = "activa"
OBRA_PAUSADA = "pausada"
OBRA_COMPLETADA = "completada"
OBRA_CANCELADA = "cancelada"

# Etapas en orden: (clave, etiqueta, días estimados)
ETAPAS_OBRA = (
    ("planificacion", "Planificación", 30),
    ("topografia", "Topografía", 15),
    ("planos", "Planos Iniciales", 20),
    ("curvas_nivel", "Curvas de Nivel", 10),
    ("planos_finales", "Planos Finales", 15),
    ("documentacion_planeacion", "Documentación y Planeación", 45),
    ("remocion_piedras", "Remoción de Piedras", 20),
    ("construccion_vias", "Construcción de Vías", 60),
    ("entrega_lotes", "Entrega de Lotes", 30),
    ("sucesion_interna", "Sucesión Interna Familiar", 90),
    ("sucesion_lotes", "Sucesión por Lotes", 120),
    ("escrituracion", "Escrituración", 60),
    ("terminada", "Terminada", 0),
)
ETAPA_INICIAL = "planificacion"
ETAPA_FINAL = "terminada"

# % del presupuesto gastado a partir del cual se avisa
ALERTA_PRESUPUESTO_PCT = 90

# ----------------------------
# Notas
# ----------------------------
NOTA_FUTURO = "futuro"
NOTA_TRATADO = "tratado"

# ----------------------------
# Documentos de compraventa
# ----------------------------
MIME_COMPRAVENTA = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
}

# ----------------------------
# Asesor IA
# ----------------------------
MAX_TRANSACCIONES_ANALISIS = 20
MENSAJE_ANALISIS_NO_DISPONIBLE = (
    "Hubo un error al conectar con el asistente financiero. "
    "Por favor verifique su conexión o intente más tarde."
)
