import os
import yaml

ROOT_PATH = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_FILE_PATH = os.environ.get(
    "SESSIONKEEPER_CONFIG", os.path.join(ROOT_PATH, "env.yaml")
)

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sessionkeeper.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = data.get("JWT_ISSUER", "sessionkeeper")
    ACCESS_TOKEN_TTL_MINUTES = int(data.get("ACCESS_TOKEN_TTL_MINUTES", 15))
    REFRESH_TOKEN_TTL_HOURS = int(data.get("REFRESH_TOKEN_TTL_HOURS", 24))

    MAX_ACTIVE_SESSIONS = int(data.get("MAX_ACTIVE_SESSIONS", 3))
    REFRESH_REPLAY_REVOKES_ALL = bool(data.get("REFRESH_REPLAY_REVOKES_ALL", True))
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))

    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
    EVENT_QUEUE_SIZE = int(data.get("EVENT_QUEUE_SIZE", 1000))
    EVENT_TIMEOUT_SECONDS = float(data.get("EVENT_TIMEOUT_SECONDS", 5))
