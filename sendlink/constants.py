# sendlink/constants.py
# Domain limits shared by the server and the client mirror

# Boards expire after a week without writes
BOARD_TTL_SECONDS: int = 60 * 60 * 24 * 7
BOARD_KEY_PREFIX: str = "board"

# Share links
DEFAULT_SHARE_EXPIRY_SECONDS: int = 60 * 60 * 24
MAX_SHARE_EXPIRY_SECONDS: int = 60 * 60 * 24 * 30
SLUG_PATTERN: str = r"^[a-z0-9-]+$"
SLUG_MIN_LENGTH: int = 3
SLUG_MAX_LENGTH: int = 50
GENERATED_SLUG_LENGTH: int = 8
SLUG_ALPHABET: str = "abcdefghijklmnopqrstuvwxyz0123456789"
SLUG_GENERATION_ATTEMPTS: int = 5

# Uploads
MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
DEFAULT_MIME_TYPE: str = "application/octet-stream"
UNKNOWN_FILE_NAME: str = "unknown"

# Board IDs are random base-36 strings
BOARD_ID_ALPHABET: str = "0123456789abcdefghijklmnopqrstuvwxyz"
BOARD_ID_LENGTH: int = 8
MEDIA_ID_SUFFIX_LENGTH: int = 9
