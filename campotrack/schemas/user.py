from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from campotrack.enums.roles import RolGlobal


class UsuarioOut(BaseModel):
    """Nunca expone el hash de la contraseña."""
    id_usuario: int
    nombre_usuario: str
    correo_electronico: str
    nombre_completo: str
    rol: RolGlobal
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class FincaDeUsuarioOut(BaseModel):
    id_finca: int
    nombre_finca: str
    rol_en_finca: str


class PerfilOut(BaseModel):
    ok: bool = True
    usuario: UsuarioOut
    fincas: list[FincaDeUsuarioOut] = []


class PerfilUpdate(BaseModel):
    """Actualizar datos del propio perfil"""
    nombre_completo: str | None = Field(None, min_length=1, max_length=150)
    correo_electronico: EmailStr | None = None

    class Config:
        extra = "forbid"


class UsuarioAdminUpdate(BaseModel):
    """SuperAdmin edita datos de cualquier usuario"""
    nombre_usuario: str | None = Field(None, min_length=3, max_length=50)
    correo_electronico: EmailStr | None = None
    nombre_completo: str | None = Field(None, min_length=1, max_length=150)
    rol: RolGlobal | None = None

    class Config:
        extra = "forbid"


class CambioContrasenaPropiaIn(BaseModel):
    contrasena_actual: str = Field(..., min_length=1)
    nueva: str = Field(..., min_length=6)


class CambioContrasenaIn(BaseModel):
    """
    - Propio usuario: requiere contrasena_actual.
    - SuperAdmin sobre terceros: solo `nueva`.
    """
    contrasena_actual: str | None = None
    nueva: str = Field(..., min_length=6)


class ResetContrasenaIn(BaseModel):
    nueva: str = Field(..., min_length=6)
