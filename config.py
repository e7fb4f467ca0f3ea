import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

def clean_env_value(value):
    """Clean environment variable value by removing surrounding quotes if present"""
    if value and isinstance(value, str):
        value = value.strip()

        # Remove single or double quotes from beginning and end
        if (value.startswith("'") and value.endswith("'")) or (value.startswith('"') and value.endswith('"')):
            value = value[1:-1]

        return value or None
    else:
        return value


def env_str(name, default=None):
    """Read a string environment variable; empty values fall back to the default"""
    value = clean_env_value(os.getenv(name))
    return default if value is None else value


def env_int(name, default):
    """Read an integer environment variable, falling back to the default"""
    value = clean_env_value(os.getenv(name))
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Settings:
    # API settings
    API_TITLE = "Sound Board API"
    API_VERSION = "1.0.0"

    # Base directories
    BASE_DIR = Path(__file__).parent

    def __init__(self, **overrides):
        # MongoDB settings
        self.MONGODB_URL = env_str("MONGODB_URL", "mongodb://localhost:27017")
        self.MONGODB_DB_NAME = env_str("MONGODB_DB_NAME", "sound_board")

        # JWT settings
        self.JWT_SECRET_KEY = env_str("JWT_SECRET_KEY", "your-secret-key-change-this")
        self.JWT_ALGORITHM = "HS256"
        self.JWT_ACCESS_TOKEN_EXPIRE_DAYS = env_int("JWT_ACCESS_TOKEN_EXPIRE_DAYS", 30)
        self.BCRYPT_ROUNDS = env_int("BCRYPT_ROUNDS", 10)

        # S3-compatible object storage settings
        self.S3_ACCESS_KEY_ID = env_str("S3_ACCESS_KEY_ID")
        self.S3_SECRET_ACCESS_KEY = env_str("S3_SECRET_ACCESS_KEY")
        self.S3_REGION = env_str("S3_REGION", "us-east-1")
        self.S3_BUCKET = env_str("S3_BUCKET")
        self.S3_ENDPOINT_URL = env_str("S3_ENDPOINT_URL")
        self.S3_PUBLIC_DOMAIN = env_str("S3_PUBLIC_DOMAIN")
        self.S3_UPLOAD_PREFIX = env_str("S3_UPLOAD_PREFIX", "sounds/")
        self.UPLOAD_TOKEN_EXPIRES_SECONDS = env_int("UPLOAD_TOKEN_EXPIRES_SECONDS", 3600)

        # Sound limits
        self.MAX_FILE_SIZE = env_int("MAX_FILE_SIZE", 5 * 1024 * 1024)  # 5MB
        self.MAX_SOUND_DURATION = env_int("MAX_SOUND_DURATION", 30)  # seconds

        # Proxy settings
        self.PROXY_TIMEOUT_SECONDS = env_int("PROXY_TIMEOUT_SECONDS", 60)

        # Server settings
        self.STATIC_DIR = self.BASE_DIR / env_str("STATIC_DIR", "public")
        self.CORS_ORIGINS = [
            origin.strip()
            for origin in env_str("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        self.LOG_DIR = env_str("LOG_DIR", "logs")
        self.LOG_FILE = env_str("LOG_FILE", "soundboard.log")
        self.LOG_LEVEL = env_str("LOG_LEVEL", "INFO").upper()
        self.PORT = env_int("PORT", 3000)

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def storage_configured(self) -> bool:
        """True when every setting needed to mint upload credentials is present"""
        return all([
            self.S3_ACCESS_KEY_ID,
            self.S3_SECRET_ACCESS_KEY,
            self.S3_BUCKET,
            self.S3_PUBLIC_DOMAIN,
        ])

    @property
    def max_file_size_mb(self) -> str:
        """Configured size limit rendered in megabytes, e.g. '5'"""
        return f"{self.MAX_FILE_SIZE / 1024 / 1024:g}"


# Create settings instance
settings = Settings()
