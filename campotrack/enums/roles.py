from enum import Enum


class _CaseInsensitiveEnum(str, Enum):
    """Permite resolver valores sin importar mayúsculas ('empleado' == 'Empleado')."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class RolGlobal(_CaseInsensitiveEnum):
    SUPER_ADMIN = "SuperAdmin"     # Dueño del sistema, acceso total
    USUARIO = "Usuario"            # Acceso según sus roles por finca


class RolFinca(_CaseInsensitiveEnum):
    ADMIN_FINCA = "AdminFinca"     # Administra una finca concreta
    EMPLEADO = "Empleado"          # Registra eventos sanitarios
    VETERINARIO = "Veterinario"    # Registra eventos sanitarios
