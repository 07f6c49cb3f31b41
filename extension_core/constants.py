"""
Константы для всего приложения.
Централизованное хранение всех магических чисел и строк.
"""

# ============= Namespaces =============
CORE_NAMESPACE = "core"  # Встроенный набор функций хоста, загружается первым
GALLERY_NAMESPACE = "gallery"

# ============= Extension Limits =============
EXTENSION_LOAD_TIMEOUT = 60  # Таймаут установки одного расширения (секунды)

# ============= Extension Status =============
EXTENSION_STATUS_PENDING = "pending"
EXTENSION_STATUS_INSTALLED = "installed"
EXTENSION_STATUS_FAILED = "failed"

# ============= Host Flags =============
HOST_FLAG_RESTART_REQUIRED = "restart_required"

# ============= Lifecycle Events =============
EVENT_EXTENSION_INSTALLED = "extension.installed"
EVENT_EXTENSION_UPGRADED = "extension.upgraded"
EVENT_EXTENSION_FAILED = "extension.failed"
EVENT_EXTENSION_DISABLED = "extension.disabled"
EVENT_EXTENSION_ENABLED = "extension.enabled"

# ============= Role Sources =============
ROLE_SOURCE_SYSTEM = "system"
ROLE_SOURCE_USER = "user"

# ============= Setting Kinds =============
SETTING_KIND_OBJECT = "object"
SETTING_KIND_ARRAY = "array"
SETTING_KIND_STRING = "string"
SETTING_KIND_NUMBER = "number"
SETTING_KIND_BOOLEAN = "boolean"
SETTING_KIND_NULL = "null"

# ============= Database =============
DB_POOL_SIZE = 20  # Размер пула соединений БД
DB_MAX_OVERFLOW = 10  # Максимум дополнительных соединений при перегрузке
DB_POOL_RECYCLE = 3600  # Время переиспользования соединений (секунды)
DB_POOL_PRE_PING = True  # Проверка соединений перед использованием

# ============= EventBus =============
EVENT_BUS_MAX_LOG_SIZE = 1000  # Максимальный размер лога событий

# ============= HTTP =============
API_PREFIX = "/api/v1"
