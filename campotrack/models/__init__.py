# models/__init__.py
from campotrack.utils.db import Base  # re-export
from .user import Usuario, UsuarioFincaRol
from .farm import Finca
from .catalog import Especie, Raza
from .semoviente import Semoviente
from .registro_medico import RegistroMedico
from .movimiento import MovimientoSemoviente
