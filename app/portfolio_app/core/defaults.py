from __future__ import annotations

# Environment and config defaults
DEFAULT_ENV_NAME = "dev"
DEFAULT_DEV_ENV_NAMES = ("dev", "development", "local", "test")
DEFAULT_STORAGE_BACKEND = "sqlite"
DEFAULT_STORAGE_BACKENDS = ("sqlite", "memory")
DEFAULT_STORAGE_PATH = ".local/portfolio_store.db"
DEFAULT_STORAGE_QUOTA_BYTES = 5 * 1024 * 1024
DEFAULT_STORAGE_FAULT_MODE = "raise"
DEFAULT_STORAGE_FAULT_MODES = ("raise", "absorb")

# Durable medium keys; each key holds one independent document
PROJECTS_STORAGE_KEY = "portfolio-projects"
CONTACTS_STORAGE_KEY = "portfolio-contacts"
PROFILE_IMAGE_STORAGE_KEY = "portfolio-profile-image"

# Simulated API round-trip times (milliseconds)
DEFAULT_API_DELAY_FETCH_MS = 600
DEFAULT_API_DELAY_SAVE_MS = 800
DEFAULT_API_DELAY_DELETE_MS = 500
DEFAULT_API_DELAY_CONTACT_MS = 700
DEFAULT_API_DELAY_STATUS_MS = 200

# Notifications
DEFAULT_NOTIFY_POLL_INTERVAL_SEC = 30.0
DEFAULT_NOTIFY_PERMISSION = "default"
NOTIFICATION_TITLE = "New Portfolio Message"
NOTIFICATION_ICON = "/logo.png"

# Search
DEFAULT_SEARCH_DEBOUNCE_MS = 300
FACET_ALL = "All"
CONTACT_FILTER_OPTIONS = ("all", "new", "read", "replied")

# User-facing copy
CONTACT_ACK_MESSAGE = "Thank you for your message! I will get back to you soon."

# Validation rules
MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif")
MIN_PROJECT_TITLE_LENGTH = 3
MIN_PROJECT_DESCRIPTION_LENGTH = 10
MIN_CONTACT_MESSAGE_LENGTH = 10
