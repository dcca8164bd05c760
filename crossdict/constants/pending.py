from datetime import timedelta
from enum import Enum


class PendingStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


RESOLVED_STATUSES = (PendingStatus.APPROVED.value, PendingStatus.REJECTED.value)


class PendingScope(str, Enum):
    ALL = "all"
    OWN = "own"


# Roles
ROLE_EDITOR = "EDITOR"

# Permission codes stored in role_permissions
PERMISSION_PENDING_REVIEW = "pending:review"

# Retention sweep: at most once per 6h per process, keep 30 days of resolved cards,
# small batches so user actions are not paused for long
CLEANUP_INTERVAL = timedelta(hours=6)
CLEANUP_RETENTION = timedelta(days=30)
CLEANUP_BATCH_LIMIT = 200

# Moderation list page size
PENDING_PAGE_SIZE = 50

# Flat edit form keys: desc_text_<id>, desc_diff_<id>, desc_end_<id>, desc_tags_<id>
DESC_TEXT_PREFIX = "desc_text_"
DESC_DIFF_PREFIX = "desc_diff_"
DESC_END_PREFIX = "desc_end_"
DESC_TAGS_PREFIX = "desc_tags_"

DESC_FIELD_PREFIXES = {
    DESC_TEXT_PREFIX: "text",
    DESC_DIFF_PREFIX: "difficulty",
    DESC_END_PREFIX: "end_date",
    DESC_TAGS_PREFIX: "tags",
}
