import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", 0))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./open_spaces.db")

# Links in emails are built from the request origin unless this is set
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", None)

SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me-in-production")
SESSION_COOKIE_NAME = "session_id"
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "true").lower() != "false"

MAILGUN_API_KEY = os.getenv("MAILGUN_API_KEY", None)
MAILGUN_DOMAIN = os.getenv("MAILGUN_DOMAIN", None)
MAILGUN_BASE_URL = os.getenv("MAILGUN_BASE_URL", "https://api.mailgun.net/v3")
MAIL_FROM = os.getenv("MAIL_FROM", None)
MAIL_TIMEOUT_SECONDS = float(os.getenv("MAIL_TIMEOUT_SECONDS", 10))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

# TTLs in seconds
LOGIN_TOKEN_TTL = 15 * 60
INVITE_TOKEN_TTL = 7 * 24 * 60 * 60
SESSION_TTL = 24 * 60 * 60
IDEA_TTL = 24 * 60 * 60

IDEA_WRITE_RETRIES = int(os.getenv("IDEA_WRITE_RETRIES", 5))

ROLE_ADMIN = "admin"
ROLE_FACILITATOR = "facilitator"
VALID_ROLES = (ROLE_ADMIN, ROLE_FACILITATOR)

ANONYMOUS_AUTHOR = "anonymous"
ANONYMOUS_VOTER = "anonymous"
MERGE_DEFAULT_AUTHOR = "facilitator"

GENERIC_LOGIN_MESSAGE = "If an account exists for this email, a magic link has been sent."
