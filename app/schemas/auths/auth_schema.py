from pydantic import BaseModel, ConfigDict

ROLE_STUDENT = "student"
ROLE_TUTOR = "tutor"


class Principal(BaseModel):
    """
    Identidad ya verificada del usuario que hace la petición.
    Se resuelve una sola vez por request (ver `get_current_principal`) y se pasa a los servicios.
    """
    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    role: str

    def is_same_email(self, email: str) -> bool:
        return bool(email) and self.email.lower() == email.lower()
