"""
Sistema de autorización basado en rol global + roles por finca.

Arquitectura:
- SuperAdmin (rol global): acceso total, salvo eliminar a otro SuperAdmin.
- Roles en fincas: AdminFinca, Empleado, Veterinario (uno por usuario y finca).

La evaluación es PURA: recibe el actor y el contexto ya cargados por quien
llama (dependencias / servicios) y no toca la base de datos.

Orden de evaluación:
1. SuperAdmin ⇒ ALLOW (excepto eliminar a un SuperAdmin).
2. Operaciones de administración de finca ⇒ AdminFinca de ESA finca.
3. Escritura de registros médicos ⇒ AdminFinca, Empleado o Veterinario.
4. Lectura ⇒ cualquier rol en la finca.
5. Resto ⇒ DENY.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from campotrack.enums.roles import RolFinca, RolGlobal
from campotrack.utils.errors import AuthorizationError
from campotrack.utils.logging import get_logger

logger = get_logger(module="permissions")


class Decision(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


class Operacion(str, Enum):
    # Globales (solo SuperAdmin)
    GESTIONAR_FINCAS = "gestionar_fincas"
    LISTAR_USUARIOS = "listar_usuarios"
    ADMINISTRAR_USUARIOS = "administrar_usuarios"
    GESTIONAR_CATALOGO = "gestionar_catalogo"
    CREAR_SUPERADMIN = "crear_superadmin"
    # Regla especial
    ELIMINAR_USUARIO = "eliminar_usuario"
    # Por finca
    ADMINISTRAR_FINCA = "administrar_finca"
    ESCRIBIR_REGISTROS = "escribir_registros"
    LEER_FINCA = "leer_finca"


ROLES_ESCRITURA_REGISTROS = frozenset({RolFinca.ADMIN_FINCA, RolFinca.EMPLEADO, RolFinca.VETERINARIO})


@dataclass(frozen=True)
class Actor:
    """Usuario autenticado con sus membresías, inyectado explícitamente en cada servicio."""
    id_usuario: int
    nombre_usuario: str
    rol_global: RolGlobal
    roles_por_finca: Mapping[int, RolFinca] = field(default_factory=dict)

    @property
    def es_superadmin(self) -> bool:
        return self.rol_global == RolGlobal.SUPER_ADMIN

    def rol_en(self, id_finca: int | None) -> RolFinca | None:
        if id_finca is None:
            return None
        return self.roles_por_finca.get(id_finca)

    def fincas_administradas(self) -> frozenset[int]:
        return frozenset(f for f, r in self.roles_por_finca.items() if r == RolFinca.ADMIN_FINCA)


@dataclass(frozen=True)
class Contexto:
    """
    Datos del recurso objetivo.

    - id_finca: finca dueña del recurso.
    - fincas_relacionadas: otras fincas que dan derecho a lectura (p. ej. origen/destino de traslados).
    - objetivo_rol_global / objetivo_fincas: usuario objetivo (eliminación de usuarios).
    """
    id_finca: int | None = None
    fincas_relacionadas: frozenset[int] = frozenset()
    objetivo_rol_global: RolGlobal | None = None
    objetivo_fincas: frozenset[int] = frozenset()


SIN_CONTEXTO = Contexto()


def _puede_eliminar_usuario(actor: Actor, contexto: Contexto) -> bool:
    if contexto.objetivo_rol_global == RolGlobal.SUPER_ADMIN:
        return False
    if actor.es_superadmin:
        return True
    return bool(actor.fincas_administradas() & contexto.objetivo_fincas)


def can_perform(actor: Actor, operacion: Operacion, contexto: Contexto = SIN_CONTEXTO) -> Decision:
    """Decide ALLOW/DENY para `operacion` sobre el recurso descrito por `contexto`."""
    if operacion == Operacion.ELIMINAR_USUARIO:
        return Decision.ALLOW if _puede_eliminar_usuario(actor, contexto) else Decision.DENY

    # 1. SuperAdmin
    if actor.es_superadmin:
        return Decision.ALLOW

    rol = actor.rol_en(contexto.id_finca)

    # 2. Administración de la finca
    if operacion == Operacion.ADMINISTRAR_FINCA:
        return Decision.ALLOW if rol == RolFinca.ADMIN_FINCA else Decision.DENY

    # 3. Escritura de registros
    if operacion == Operacion.ESCRIBIR_REGISTROS:
        return Decision.ALLOW if rol in ROLES_ESCRITURA_REGISTROS else Decision.DENY

    # 4. Lectura: basta con pertenecer a la finca (o a una relacionada)
    if operacion == Operacion.LEER_FINCA:
        if rol is not None:
            return Decision.ALLOW
        if any(actor.rol_en(f) is not None for f in contexto.fincas_relacionadas):
            return Decision.ALLOW
        return Decision.DENY

    # 5. Operaciones globales u otras
    return Decision.DENY


def ensure_can(
        actor: Actor,
        operacion: Operacion,
        contexto: Contexto = SIN_CONTEXTO,
        mensaje: str = "Sin permisos",
):
    """Validar permiso (lanza AuthorizationError si la decisión es DENY)."""
    if can_perform(actor, operacion, contexto) == Decision.DENY:
        logger.debug(
            "Permiso denegado",
            id_usuario=actor.id_usuario,
            operacion=operacion.value,
            id_finca=contexto.id_finca,
        )
        raise AuthorizationError(mensaje)
