"""Centralized constants for StreamWarden."""


# ===== AUDIT & LOGGING =====
class AuditConstants:
    HASH_ALGORITHM = "sha256"
    LOG_FILENAME_PATTERN = "streamwarden_audit_{date}.jsonl"


# ===== RULE ACTIONS =====
class ActionConstants:
    TRUST_ADJUST_MIN = -100
    TRUST_ADJUST_MAX = 100
    TRUST_SCORE_MIN = 0
    TRUST_SCORE_MAX = 100
    KILL_DELAY_MAX_SECONDS = 300
    MESSAGE_MAX_LENGTH = 500
    DEFAULT_WINDOW_HOURS = 24
    COOLDOWN_KEY_PREFIX = "rule:cooldown"


# ===== LEGACY RULE MIGRATION =====
class MigrationConstants:
    DAYS_PER_WEEK = 7
    DAYS_PER_MONTH = 30  # approximate
    DEFAULT_SEVERITY = "warning"

    # Defaults the legacy rule API applied on creation
    DEFAULT_MAX_SPEED_KMH = 500
    DEFAULT_MIN_DISTANCE_KM = 100
    DEFAULT_MAX_IPS = 5
    DEFAULT_WINDOW_HOURS = 24
    DEFAULT_MAX_STREAMS = 3
    DEFAULT_INACTIVITY_VALUE = 30


# ===== DATA & QUERY LIMITS =====
class DataConstants:
    PENDING_CONFIRMATIONS_LIMIT = 50
    CONFIRMATION_EXPIRY_HOURS = 24


# ===== MONITORING =====
class MonitoringConstants:
    DEFAULT_BATCH_SIZE = 20
    CLOUDWATCH_MAX_BATCH = 20
