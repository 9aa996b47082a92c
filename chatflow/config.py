"""
对话流全局配置常量
存放所有硬编码的参数，便于后续调整
"""


class Config:
    """全局对话流配置"""

    # ========== 安全阀 ==========
    MAX_WALK_DEPTH = 50             # 单次遍历最多经过的消息数
    MAX_PROCESSING_CYCLES = 25      # 编排器单次调用最多循环次数

    # ========== 消息默认值 ==========
    INITIAL_MESSAGE_ID = 1
    DEFAULT_MESSAGE_DELAY = 1000    # 毫秒
    DEFAULT_SENDER = "bot"
    USER_SENDER = "user"
    DEFAULT_PLACEHOLDER_TEXT = "Type your answer..."
    MULTI_TEXT_SEPARATOR = "|||"    # 多段消息分隔符

    # ========== 数据目录 ==========
    DATA_DIR = "data"
    DATA_DIR_ENV = "CHATFLOW_DATA_DIR"
    SEQUENCES_SUBDIR = "sequences"
    CONTENT_SUBDIR = "content"
    FORMATTERS_SUBDIR = "formatters"
    SEQUENCE_EXTENSIONS = (".json", ".yaml", ".yml")
    CONTENT_EXTENSION = ".txt"
    DEFAULT_SEQUENCE_ID = "welcome_seq"

    # ========== HTTP 会话 ==========
    MAX_SESSIONS = 1000             # 内存中最多保留的会话数，超出时淘汰最久未使用的

    # ========== 语义内容 ==========
    # 具体主题 -> 通用主题 (例如 task_completion -> completion)
    GENERIC_SUBJECTS = (
        "completion", "failure", "success", "error", "input", "name",
        "welcome", "save", "delete", "update", "create", "status",
        "selection", "permission", "creation", "modification",
    )
    CONTENT_DEFAULT_SUBJECT = "default"

    # ========== 活跃日 ==========
    ACTIVE_DAYS_KEY = "task.activeDays"
    ACTIVE_DATE_LOOKAHEAD_DAYS = 365
    DATE_FORMAT = "%Y-%m-%d"
