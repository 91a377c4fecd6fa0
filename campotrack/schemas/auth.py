from pydantic import BaseModel, EmailStr, Field

from campotrack.enums.roles import RolFinca, RolGlobal
from campotrack.schemas.user import UsuarioOut


class LoginIn(BaseModel):
    """`usuario` acepta nombre de usuario o correo electrónico."""
    usuario: str = Field(..., min_length=1, max_length=120)
    contrasena: str = Field(..., min_length=1)


class AsignacionIn(BaseModel):
    id_finca: int = Field(..., gt=0)
    rol: RolFinca


class RegisterIn(BaseModel):
    nombre_usuario: str = Field(..., min_length=3, max_length=50)
    correo_electronico: EmailStr
    contrasena: str = Field(..., min_length=6)
    nombre_completo: str = Field(..., min_length=1, max_length=150)
    rol_global: RolGlobal = RolGlobal.USUARIO
    # Opcional: asignar a una finca al crear
    asignacion: AsignacionIn | None = None


class RefreshIn(BaseModel):
    refreshToken: str = Field(..., min_length=1)


class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str


class LoginOut(TokenPair):
    ok: bool = True
    usuario: UsuarioOut
