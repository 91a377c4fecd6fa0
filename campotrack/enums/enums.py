from campotrack.enums.roles import _CaseInsensitiveEnum


# =====================================================
# 🐄 SEMOVIENTES
# =====================================================
class EstadoSemoviente(_CaseInsensitiveEnum):
    ACTIVO = "Activo"          # Único estado inicial
    TRASLADO = "Traslado"      # Trasladado a otra finca
    VENDIDO = "Vendido"
    FALLECIDO = "Fallecido"
    INACTIVO = "Inactivo"
    ROBADO = "Robado"
    PERDIDO = "Perdido"


class Sexo(_CaseInsensitiveEnum):
    MACHO = "Macho"
    HEMBRA = "Hembra"


class TipoIngreso(_CaseInsensitiveEnum):
    NACIMIENTO = "Nacimiento"
    COMPRA = "Compra"


# =====================================================
# 🚚 MOVIMIENTOS (ledger)
# =====================================================
class TipoMovimiento(_CaseInsensitiveEnum):
    TRASLADO = "Traslado"
    MUERTE = "Muerte"
    VENTA = "Venta"
    NACIMIENTO = "Nacimiento"
    COMPRA = "Compra"


class TipoTransicion(_CaseInsensitiveEnum):
    """Movimientos que un usuario puede registrar vía POST /movimientos"""
    TRASLADO = "Traslado"
    MUERTE = "Muerte"
    VENTA = "Venta"
