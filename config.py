"""
ReadAble Configuration
Supports AWS Parameter Store for production secrets
"""
import json
import os

try:
    import boto3
except ImportError:
    boto3 = None


def get_parameter(name: str, default: str = "") -> str:
    """Get parameter from AWS Parameter Store or environment"""
    # Environment variable takes precedence
    env_key = name.upper().replace("-", "_").replace("/", "_")
    if env_key in os.environ:
        return os.environ[env_key]

    if boto3 and os.environ.get("USE_PARAMETER_STORE"):
        try:
            ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "us-west-2"))
            path = os.environ.get("PARAMETER_STORE_PATH", "/readable/prod/")
            response = ssm.get_parameter(Name=f"{path}{name}", WithDecryption=True)
            return response["Parameter"]["Value"]
        except Exception:
            pass

    return default


def _json_env(name: str) -> dict:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        return {}
    return value if isinstance(value, dict) else {}


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Session (the bridge id lives in a browser-session cookie)
    SESSION_PERMANENT = False
    SESSION_COOKIE_SAMESITE = "Lax"

    # Security
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600

    # Uploads: base64 inflates a 10MB PDF to ~13.4MB of JSON
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES * 2
    UPLOAD_POLICY_OVERRIDES = _json_env("UPLOAD_POLICY_OVERRIDES")

    # OpenAI
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_LESSON_MODEL = os.environ.get("OPENAI_LESSON_MODEL", "gpt-4o")
    OPENAI_TTS_MODEL = os.environ.get("OPENAI_TTS_MODEL", "tts-1")
    OPENAI_TTS_VOICE = os.environ.get("OPENAI_TTS_VOICE", "alloy")

    # Anthropic
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL = os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
    ANTHROPIC_VERSION = os.environ.get("ANTHROPIC_VERSION", "2023-06-01")
    ANTHROPIC_URL = os.environ.get("ANTHROPIC_URL", "https://api.anthropic.com/v1/messages")

    # Google TTS
    TTS_LANG = os.environ.get("TTS_LANG", "en")

    # Providers
    UPSTREAM_TIMEOUT = float(os.environ.get("UPSTREAM_TIMEOUT", "120"))
    REWRITE_MAX_CHARS = int(os.environ.get("REWRITE_MAX_CHARS", "16000"))
    OCR_FALLBACK = os.environ.get("OCR_FALLBACK", "1") == "1"

    # Readers
    FOCUS_MINUTES = int(os.environ.get("FOCUS_MINUTES", "25"))
    BRIDGE_TTL = int(os.environ.get("BRIDGE_TTL", "3600"))
    BRIDGE_MAX_SLOTS = int(os.environ.get("BRIDGE_MAX_SLOTS", "512"))

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "2025.1")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Override with Parameter Store in production
    SECRET_KEY = get_parameter("secret-key", Config.SECRET_KEY)
    OPENAI_API_KEY = get_parameter("openai-api-key", Config.OPENAI_API_KEY)
    ANTHROPIC_API_KEY = get_parameter("anthropic-api-key", Config.ANTHROPIC_API_KEY)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    WTF_CSRF_ENABLED = False
    OPENAI_API_KEY = "test-openai-key"
    ANTHROPIC_API_KEY = "test-anthropic-key"
    OCR_FALLBACK = False
    BRIDGE_MAX_SLOTS = 8


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
