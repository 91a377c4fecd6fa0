from fastapi import APIRouter
from .auth import router as auth_router
from .users import router as users_router
from .farms import router as farms_router
from .catalog import router as catalog_router
from .semovientes import router as semovientes_router
from .eventos import router as eventos_router
from .movimientos import router as movimientos_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(farms_router)
api_router.include_router(catalog_router)
api_router.include_router(semovientes_router)
api_router.include_router(eventos_router)
api_router.include_router(movimientos_router)
