from pydantic import ConfigDict
from pydantic_settings import BaseSettings

"""
Se carga automáticamente desde el archivo `.env` o las variables de entorno del sistema.
    - Define y carga la configuración principal de la aplicación desde variables de entorno.
    - Incluye parámetros para la base de datos, seguridad, correo, Stripe y jobs programados.
    - Configuracion global
"""
class Settings(BaseSettings):
    SQLALCHEMY_DATABASE_URI: str
    SECRET_KEY: str

    MAIL_USERNAME: str
    MAIL_PASSWORD: str
    MAIL_FROM: str
    MAIL_PORT: int
    MAIL_SERVER: str
    MAIL_STARTTLS: bool
    MAIL_SSL_TLS: bool
    MAIL_SUPPRESS_SEND: bool = False

    STRIPE_SECRET_KEY: str
    STRIPE_PUBLIC_KEY: str
    STRIPE_WEBHOOK_SECRET: str
    STRIPE_CURRENCY: str = "usd"

    FRONTEND_URL: str = "http://localhost:5173"

    # Precio fijo de la clase de prueba (una sola vez por estudiante)
    TRIAL_PRICE: float = 5.0

    # Secreto compartido con el scheduler externo que dispara los jobs
    JOB_SECRET: str

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
