from . import (
    analisis_router,
    auditoria_router,
    auth_router,
    clientes_actuales_router,
    clientes_interesados_router,
    documentos_router,
    egresos_futuros_router,
    lotes_router,
    notas_router,
    obras_router,
    pagos_router,
    transacciones_router,
    users_router,
)

__all__ = [
    "analisis_router",
    "auditoria_router",
    "auth_router",
    "clientes_actuales_router",
    "clientes_interesados_router",
    "documentos_router",
    "egresos_futuros_router",
    "lotes_router",
    "notas_router",
    "obras_router",
    "pagos_router",
    "transacciones_router",
    "users_router",
]
