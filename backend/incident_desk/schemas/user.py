from pydantic import BaseModel, Field


class UserIn(BaseModel):
    """Body of the create/update user endpoints (plain-text password, hashed before storage)."""

    tNombreCompletoUsuario: str = Field(..., min_length=1)
    eMatricula: int
    tContrasena: str = Field(..., alias="tContraseña", min_length=1)
    eEdad: int = Field(..., ge=0)
    tGenero: str
    tCorreoInstitucional: str
    tTelefono: str
    tDireccion: str
    bStateUser: bool = True

    class Config:
        populate_by_name = True

    def as_params(self, hashed_password: str) -> tuple:
        """Positional parameters in the column order used by INSERT/UPDATE and postInsertUser."""
        return (
            self.tNombreCompletoUsuario,
            self.eMatricula,
            hashed_password,
            self.eEdad,
            self.tGenero,
            self.tCorreoInstitucional,
            self.tTelefono,
            self.tDireccion,
            self.bStateUser,
        )
