from pydantic import BaseModel, Field


class EspecieCreate(BaseModel):
    nombre_especie: str = Field(..., min_length=2, max_length=80)


class EspecieOut(BaseModel):
    id_especie: int
    nombre_especie: str

    class Config:
        from_attributes = True


class RazaCreate(BaseModel):
    nombre_raza: str = Field(..., min_length=2, max_length=80)


class RazaOut(BaseModel):
    id_raza: int
    id_especie: int
    nombre_raza: str

    class Config:
        from_attributes = True
