# vidtube/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "VidTube Accounts API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend (comma-separated in env)
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
        if o.strip()
    ]

    # Database (Tortoise connection URL)
    database_url: str | None = os.getenv("DATABASE_URL")

    # Token signing (access and refresh tokens use different secrets)
    access_token_secret: str | None = os.getenv("ACCESS_TOKEN_SECRET")
    access_token_expiry: str = os.getenv("ACCESS_TOKEN_EXPIRY", "1d")
    refresh_token_secret: str | None = os.getenv("REFRESH_TOKEN_SECRET")
    refresh_token_expiry: str = os.getenv("REFRESH_TOKEN_EXPIRY", "10d")

    # Cloudinary (avatar / cover image host)
    cloudinary_cloud_name: str | None = os.getenv("CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str | None = os.getenv("CLOUDINARY_API_KEY")
    cloudinary_api_secret: str | None = os.getenv("CLOUDINARY_API_SECRET")

    # Multipart uploads are staged here before being pushed to Cloudinary
    temp_upload_dir: str = os.getenv("TEMP_UPLOAD_DIR", "./public/temp")

    # Cookie flags for accessToken / refreshToken
    cookie_secure: bool = _env_flag("COOKIE_SECURE", "true")

    def missing_required(self) -> list[str]:
        """
        Names of the required environment variables that are not set.

        The app refuses to boot while this list is non-empty.
        """
        required = {
            "DATABASE_URL": self.database_url,
            "ACCESS_TOKEN_SECRET": self.access_token_secret,
            "REFRESH_TOKEN_SECRET": self.refresh_token_secret,
            "CLOUDINARY_CLOUD_NAME": self.cloudinary_cloud_name,
            "CLOUDINARY_API_KEY": self.cloudinary_api_key,
            "CLOUDINARY_API_SECRET": self.cloudinary_api_secret,
        }
        return [name for name, value in required.items() if not value]


settings = Settings()  # Instantiate configuration
