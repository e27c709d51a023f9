REDIS_IDEA_KEY = "idea:{idea_id}" # idea id - JSON idea record
REDIS_IDEA_PREFIX = "idea:"
REDIS_TOKEN_KEY = "token:{token}" # magic link token - JSON {user_id, email, role, purpose}
REDIS_SESSION_KEY = "session:{session_id}" # session id - JSON {user_id, email, role, created_at}

# **TTL**
# - `token:{t}` expires after 15 minutes (login) or 7 days (invitation).
# - `session:{id}` expires after 24 hours, mirrored by the cookie max-age.
# - `idea:{id}` expires 24 hours after its last write.
