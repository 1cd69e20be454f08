"""Constants for formstate"""

from .enums import ValidatorKind

# ==================== File Paths ====================
LOG_FILE_DEFAULT = "data/formstate.log"

# ==================== Reserved Keys ====================
RESERVED_STATUS_KEY = "status"  # never writable through Form.set_value
ITEM_ID_KEY = "item_id"  # carried in every group item snapshot
CANCEL_TOKEN_PARAM = "cancel_token"  # injected into Request operation kwargs

# ==================== Schema ====================
REQUIRED = "required"
UNBOUNDED = -1

# ==================== Request Retry ====================
REQUEST_RETRIES = 1
REQUEST_RETRY_DELAY = 0.5  # seconds

# ==================== Validation Messages ====================
DEFAULT_MESSAGES = {
    ValidatorKind.NONE: "{key} is invalid.",
    ValidatorKind.REQUIRED: "{key} is missing.",
    ValidatorKind.PREDICATE: "{key} doesn't pass validator function.",
    ValidatorKind.PATTERN: "{key} doesn't match validation regex.",
}
