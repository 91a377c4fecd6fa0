from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campotrack.schemas.user import (
    CambioContrasenaIn,
    CambioContrasenaPropiaIn,
    FincaDeUsuarioOut,
    PerfilUpdate,
    ResetContrasenaIn,
    UsuarioAdminUpdate,
    UsuarioOut,
)
from campotrack.services.user_service import (
    change_own_password,
    change_password,
    delete_user,
    get_profile,
    list_users,
    reset_password,
    update_profile,
    update_user,
)
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_current_actor
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/usuarios", tags=["usuarios"])


# ============ PERFIL PROPIO (antes que /{id_usuario}) ============

@router.get("/me")
def get_me(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """
    Perfil del usuario autenticado con sus fincas.

    SuperAdmin ve todas las fincas con rol_en_finca = 'SuperAdmin'.
    """
    perfil = get_profile(db, actor)
    return {
        "ok": True,
        "usuario": UsuarioOut.model_validate(perfil["usuario"]),
        "fincas": [FincaDeUsuarioOut(**f) for f in perfil["fincas"]],
    }


@router.patch("/me")
def patch_me(
        payload: PerfilUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Actualizar nombre_completo y/o correo_electronico"""
    user = update_profile(db, actor, payload)
    return {"ok": True, "usuario": UsuarioOut.model_validate(user)}


@router.patch("/me/password")
def patch_my_password(
        payload: CambioContrasenaPropiaIn,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    change_own_password(db, actor, payload)
    return {"ok": True, "mensaje": "Contraseña actualizada"}


# ============ ADMINISTRACIÓN ============

@router.get("")
def get_users(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Listar usuarios (solo SuperAdmin)"""
    users = list_users(db, actor)
    return {"ok": True, "usuarios": [UsuarioOut.model_validate(u) for u in users]}


@router.patch("/{id_usuario}")
def patch_user(
        id_usuario: int,
        payload: UsuarioAdminUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Editar usuario (solo SuperAdmin)"""
    user = update_user(db, actor, id_usuario, payload)
    return {"ok": True, "usuario": UsuarioOut.model_validate(user)}


@router.delete("/{id_usuario}")
def remove_user(
        id_usuario: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """
    Eliminar usuario.

    Permisos:
    - SuperAdmin: cualquier usuario que no sea SuperAdmin
    - AdminFinca: usuarios de alguna finca que administra
    """
    delete_user(db, actor, id_usuario)
    return {"ok": True, "mensaje": "Usuario eliminado"}


@router.patch("/{id_usuario}/password")
def patch_user_password(
        id_usuario: int,
        payload: CambioContrasenaIn,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    change_password(db, actor, id_usuario, payload)
    return {"ok": True, "mensaje": "Contraseña actualizada"}


@router.patch("/{id_usuario}/password/reset")
def patch_user_password_reset(
        id_usuario: int,
        payload: ResetContrasenaIn,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Restablecer contraseña de un tercero (solo SuperAdmin)"""
    reset_password(db, actor, id_usuario, payload)
    return {"ok": True, "mensaje": "Contraseña restablecida"}
