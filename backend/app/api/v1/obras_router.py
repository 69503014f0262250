"""
Router de OBRAS (urbanización del proyecto).

Endpoints:
- GET    /api/v1/obras                           → listar (filtro estado / busqueda)
- GET    /api/v1/obras/estadisticas              → totales del listado
- GET    /api/v1/obras/etapas                    → catálogo de etapas
- GET    /api/v1/obras/{id}                      → detalle con gastos e hitos
- POST   /api/v1/obras                           → crear (admin)
- PUT    /api/v1/obras/{id}                      → actualizar (admin)
- DELETE /api/v1/obras/{id}                      → eliminar con gastos e hitos (admin)
- POST   /api/v1/obras/{id}/avanzar              → pasar a la siguiente etapa (admin)
- POST   /api/v1/obras/{id}/retroceder           → volver a la etapa anterior (admin)
- POST   /api/v1/obras/{id}/gastos               → registrar gasto (admin)
- DELETE /api/v1/obras/{id}/gastos/{gasto_id}    → borrar gasto (admin)
- POST   /api/v1/obras/{id}/hitos                → añadir hito (admin)
- PUT    /api/v1/obras/{id}/hitos/{hito_id}      → editar / completar hito (admin)
- DELETE /api/v1/obras/{id}/hitos/{hito_id}      → borrar hito (admin)

Reglas de negocio:
- progreso lo calcula SIEMPRE el servidor a partir de la etapa.
- gastado = suma de los gastos de la obra; se recalcula al añadir o borrar.
- Llegar a "terminada" marca la obra como completada con fecha_fin_real hoy.
  Retroceder desde ahí la reactiva.
- Una obra cancelada no cambia de etapa (409).
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import (
    ETAPA_FINAL,
    ETAPA_INICIAL,
    OBRA_ACTIVA,
    OBRA_CANCELADA,
    OBRA_COMPLETADA,
)
from backend.app.db.custom_types import ZERO, to_money
from backend.app.schemas.obras import (
    EstadisticasObras,
    EstadoObra,
    EtapaInfo,
    GastoObraCreate,
    GastoObraRead,
    HitoObraCreate,
    HitoObraRead,
    HitoObraUpdate,
    ObraCreate,
    ObraRead,
    ObraUpdate,
)
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.obra_utils import (
    calcular_estadisticas,
    calcular_gastado,
    calcular_progreso_automatico,
    etapa_anterior,
    listar_etapas,
    porcentaje_gastado,
    siguiente_etapa,
    tiene_alerta_presupuesto,
)
from backend.app.utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/obras", tags=["obras"])

_NO_ENCONTRADA = "Obra no encontrada"
_OBLIGATORIOS = "El nombre y presupuesto son obligatorios"


# =======================================================
# Helpers
# =======================================================
def _obra_out(obra: models.Obra) -> ObraRead:
    out = ObraRead.model_validate(obra)
    return out.model_copy(
        update={
            "porcentaje_gastado": porcentaje_gastado(obra.presupuesto, obra.gastado),
            "alerta_presupuesto": tiene_alerta_presupuesto(obra.presupuesto, obra.gastado),
            "siguiente_etapa": siguiente_etapa(obra.etapa),
        }
    )


def _validar_fechas(inicio: Optional[date], fin: Optional[date]) -> None:
    if inicio and fin and fin < inicio:
        raise HTTPException(
            status_code=422,
            detail="La fecha estimada de fin no puede ser anterior a la de inicio.",
        )


def _aplicar_etapa(obra: models.Obra, etapa: str) -> None:
    """
    Cambia la etapa y deja progreso / estado / fecha_fin_real coherentes.
    """
    obra.etapa = etapa
    obra.progreso = calcular_progreso_automatico(etapa)
    if etapa == ETAPA_FINAL:
        obra.estado = OBRA_COMPLETADA
        obra.fecha_fin_real = date.today()
    elif obra.estado == OBRA_COMPLETADA:
        obra.estado = OBRA_ACTIVA
        obra.fecha_fin_real = None


def _cambiar_etapa(db: Session, obra_id: str, current: models.User, avanzar: bool) -> ObraRead:
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    if obra.estado == OBRA_CANCELADA:
        raise HTTPException(status_code=409, detail="La obra está cancelada.")

    nueva = siguiente_etapa(obra.etapa) if avanzar else etapa_anterior(obra.etapa)
    if nueva is None:
        detalle = "La obra ya está terminada." if avanzar else "La obra está en la primera etapa."
        raise HTTPException(status_code=409, detail=detalle)

    anterior = obra.etapa
    _aplicar_etapa(obra, nueva)
    obra.updated_at = datetime.utcnow()

    accion = "Avanzar etapa de obra" if avanzar else "Retroceder etapa de obra"
    registrar_auditoria(db, current, accion, f"Obra {obra.nombre}: {anterior} -> {nueva}")
    commit_or_rollback(db, "[obras] cambiar etapa")
    db.refresh(obra)
    logger.info("[obras] etapa id=%s %s -> %s", obra.id, anterior, nueva)
    return _obra_out(obra)


# =======================================================
# Consultas
# =======================================================
@router.get("", response_model=List[ObraRead])
def listar_obras(
    estado: Optional[EstadoObra] = Query(None),
    busqueda: Optional[str] = Query(None, description="Texto en nombre o descripción"),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.Obra)
    if estado:
        q = q.filter(models.Obra.estado == estado)
    texto = normalize_text(busqueda)
    if texto:
        patron = f"%{texto}%"
        q = q.filter(or_(models.Obra.nombre.ilike(patron), models.Obra.descripcion.ilike(patron)))
    return [_obra_out(o) for o in q.order_by(models.Obra.fecha_inicio.desc()).all()]


@router.get("/estadisticas", response_model=EstadisticasObras)
def estadisticas_obras(
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return EstadisticasObras(**calcular_estadisticas(db.query(models.Obra).all()))


@router.get("/etapas", response_model=List[EtapaInfo])
def etapas_obra(
    etapa_actual: Optional[str] = Query(None, description="Marca como completadas las anteriores"),
    current: models.User = Depends(require_user),
):
    try:
        return [EtapaInfo(**e) for e in listar_etapas(etapa_actual)]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/{obra_id}", response_model=ObraRead)
def obtener_obra(
    obra_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return _obra_out(get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA))


# =======================================================
# Altas / cambios / bajas
# =======================================================
@router.post("", response_model=ObraRead, status_code=status.HTTP_201_CREATED)
def crear_obra(
    payload: ObraCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    nombre = normalize_text(payload.nombre)
    if not nombre or payload.presupuesto <= 0:
        raise HTTPException(status_code=422, detail=_OBLIGATORIOS)

    inicio = payload.fecha_inicio or date.today()
    _validar_fechas(inicio, payload.fecha_fin_estimada)

    now = datetime.utcnow()
    obra = models.Obra(
        id=generate_uuid(),
        nombre=nombre,
        descripcion=normalize_text(payload.descripcion),
        presupuesto=to_money(payload.presupuesto),
        gastado=ZERO,
        fecha_inicio=inicio,
        fecha_fin_estimada=payload.fecha_fin_estimada,
        ubicacion=normalize_text(payload.ubicacion),
        responsable=normalize_text(payload.responsable) or current.name,
        estado=OBRA_ACTIVA,
        compartido_con_clientes=payload.compartido_con_clientes,
        lotes_asociados=payload.lotes_asociados,
        created_by=current.name,
        created_at=now,
        updated_at=now,
    )
    _aplicar_etapa(obra, payload.etapa or ETAPA_INICIAL)

    db.add(obra)
    registrar_auditoria(db, current, "Crear obra", f"Obra {nombre} - Presupuesto: {obra.presupuesto:.2f}")
    commit_or_rollback(db, "[obras] crear")
    db.refresh(obra)
    logger.info("[obras] crear id=%s etapa=%s", obra.id, obra.etapa)
    return _obra_out(obra)


@router.put("/{obra_id}", response_model=ObraRead)
def actualizar_obra(
    obra_id: str,
    payload: ObraUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    cambios = payload.model_dump(exclude_unset=True)

    if "nombre" in cambios:
        nombre = normalize_text(cambios.pop("nombre"))
        if not nombre:
            raise HTTPException(status_code=422, detail=_OBLIGATORIOS)
        obra.nombre = nombre
    if "presupuesto" in cambios:
        presupuesto = cambios.pop("presupuesto")
        if presupuesto is None or presupuesto <= 0:
            raise HTTPException(status_code=422, detail=_OBLIGATORIOS)
        obra.presupuesto = to_money(presupuesto)

    for campo in ("descripcion", "ubicacion", "responsable"):
        if campo in cambios:
            cambios[campo] = normalize_text(cambios[campo])

    etapa = cambios.pop("etapa", None)
    for campo, valor in cambios.items():
        setattr(obra, campo, valor)

    # La etapa va después del estado: "terminada" manda sobre el estado enviado
    if etapa and etapa != obra.etapa:
        _aplicar_etapa(obra, etapa)

    _validar_fechas(obra.fecha_inicio, obra.fecha_fin_estimada)
    obra.updated_at = datetime.utcnow()

    registrar_auditoria(db, current, "Actualizar obra", f"Obra {obra.nombre} ({obra.etapa})")
    commit_or_rollback(db, "[obras] actualizar")
    db.refresh(obra)
    return _obra_out(obra)


@router.delete("/{obra_id}", status_code=204)
def eliminar_obra(
    obra_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    nombre = obra.nombre
    n_gastos = len(obra.gastos)

    db.delete(obra)   # cascade borra gastos e hitos
    registrar_auditoria(db, current, "Eliminar obra", f"Obra {nombre} - {n_gastos} gastos eliminados")
    commit_or_rollback(db, "[obras] eliminar")
    logger.info("[obras] eliminar id=%s gastos=%s", obra_id, n_gastos)
    return None


# =======================================================
# Etapas
# =======================================================
@router.post("/{obra_id}/avanzar", response_model=ObraRead)
def avanzar_etapa(
    obra_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    return _cambiar_etapa(db, obra_id, current, avanzar=True)


@router.post("/{obra_id}/retroceder", response_model=ObraRead)
def retroceder_etapa(
    obra_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    return _cambiar_etapa(db, obra_id, current, avanzar=False)


# =======================================================
# Gastos
# =======================================================
@router.post("/{obra_id}/gastos", response_model=GastoObraRead, status_code=status.HTTP_201_CREATED)
def registrar_gasto(
    obra_id: str,
    payload: GastoObraCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    concepto = normalize_text(payload.concepto)
    if not concepto:
        raise HTTPException(status_code=422, detail="Concepto y monto son obligatorios")

    gasto = models.GastoObra(
        id=generate_uuid(),
        fecha=payload.fecha or date.today(),
        concepto=concepto,
        categoria=payload.categoria,
        monto=to_money(payload.monto),
        proveedor=normalize_text(payload.proveedor),
        notas=normalize_text(payload.notas),
        etapa=obra.etapa,
        aprobado_por=current.name,
        created_at=datetime.utcnow(),
    )
    obra.gastos.append(gasto)
    obra.gastado = calcular_gastado(obra.gastos)
    obra.updated_at = datetime.utcnow()

    registrar_auditoria(
        db, current, "Registrar gasto de obra",
        f"Obra {obra.nombre} - {concepto} - Monto: {gasto.monto:.2f}",
    )
    commit_or_rollback(db, "[obras] registrar gasto")
    db.refresh(gasto)
    logger.info("[obras] gasto obra_id=%s gastado=%s", obra.id, obra.gastado)
    return gasto


@router.delete("/{obra_id}/gastos/{gasto_id}", status_code=204)
def eliminar_gasto(
    obra_id: str,
    gasto_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    gasto = next((g for g in obra.gastos if g.id == gasto_id), None)
    if gasto is None:
        raise HTTPException(status_code=404, detail="Gasto no encontrado")

    obra.gastos.remove(gasto)   # delete-orphan lo borra
    obra.gastado = calcular_gastado(obra.gastos)
    obra.updated_at = datetime.utcnow()

    registrar_auditoria(
        db, current, "Eliminar gasto de obra",
        f"Obra {obra.nombre} - {gasto.concepto} - Monto: {to_money(gasto.monto):.2f}",
    )
    commit_or_rollback(db, "[obras] eliminar gasto")
    return None


# =======================================================
# Hitos
# =======================================================
def _get_hito(obra: models.Obra, hito_id: str) -> models.HitoObra:
    hito = next((h for h in obra.hitos if h.id == hito_id), None)
    if hito is None:
        raise HTTPException(status_code=404, detail="Hito no encontrado")
    return hito


@router.post("/{obra_id}/hitos", response_model=HitoObraRead, status_code=status.HTTP_201_CREATED)
def crear_hito(
    obra_id: str,
    payload: HitoObraCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    titulo = normalize_text(payload.titulo)
    if not titulo:
        raise HTTPException(status_code=422, detail="El título del hito es obligatorio")

    hito = models.HitoObra(
        id=generate_uuid(),
        titulo=titulo,
        descripcion=normalize_text(payload.descripcion),
        fecha=payload.fecha,
        responsable=normalize_text(payload.responsable) or current.name,
        etapa=payload.etapa or obra.etapa,
        completado=False,
        created_at=datetime.utcnow(),
    )
    obra.hitos.append(hito)

    registrar_auditoria(db, current, "Crear hito de obra", f"Obra {obra.nombre} - {titulo}")
    commit_or_rollback(db, "[obras] crear hito")
    db.refresh(hito)
    return hito


@router.put("/{obra_id}/hitos/{hito_id}", response_model=HitoObraRead)
def actualizar_hito(
    obra_id: str,
    hito_id: str,
    payload: HitoObraUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    """
    completado=true guarda fecha_completado; completado=false la borra.
    """
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    hito = _get_hito(obra, hito_id)
    cambios = payload.model_dump(exclude_unset=True)

    if "titulo" in cambios:
        titulo = normalize_text(cambios["titulo"])
        if not titulo:
            raise HTTPException(status_code=422, detail="El título del hito es obligatorio")
        hito.titulo = titulo
    for campo in ("descripcion", "responsable"):
        if campo in cambios:
            setattr(hito, campo, normalize_text(cambios[campo]))
    if "fecha" in cambios:
        hito.fecha = cambios["fecha"]
    if cambios.get("completado") is not None and cambios["completado"] != hito.completado:
        hito.completado = cambios["completado"]
        hito.fecha_completado = datetime.utcnow() if hito.completado else None

    registrar_auditoria(db, current, "Actualizar hito de obra", f"Obra {obra.nombre} - {hito.titulo}")
    commit_or_rollback(db, "[obras] actualizar hito")
    db.refresh(hito)
    return hito


@router.delete("/{obra_id}/hitos/{hito_id}", status_code=204)
def eliminar_hito(
    obra_id: str,
    hito_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    obra = get_or_404(db, models.Obra, obra_id, _NO_ENCONTRADA)
    hito = _get_hito(obra, hito_id)
    titulo = hito.titulo

    obra.hitos.remove(hito)
    registrar_auditoria(db, current, "Eliminar hito de obra", f"Obra {obra.nombre} - {titulo}")
    commit_or_rollback(db, "[obras] eliminar hito")
    return None
