from enum import Enum


class MessageType(str, Enum):
    """
    Message Types - decides how the walker and renderer treat a message.
    """
    TEXT = "text"
    CHOICE = "choice"
    TEXT_INPUT = "textInput"
    AUTOROUTE = "autoroute"
    DATA_ACTION = "dataAction"
    SYSTEM = "system"


class DataActionType(str, Enum):
    """
    Data Action Types - mutations applied to persisted state
    """
    SET = "set"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    RESET = "reset"
    APPEND = "append"       # add an element to a list key
    REMOVE = "remove"       # drop an element from a list key
    TRIGGER = "trigger"     # emit an event, no state change


class WalkStopReason(str, Enum):
    """
    Why the walker stopped walking
    """
    INTERACTIVE_MESSAGE = "interactiveMessage"   # choice/textInput needs user input
    SEQUENCE_BOUNDARY = "sequenceBoundary"       # message points at another sequence
    END_OF_CHAIN = "endOfChain"                  # no next message (or autoroute pending)
    MAX_DEPTH_REACHED = "maxDepthReached"        # safety valve


class TemplateFunction(str, Enum):
    """
    Named values computed when a data action runs
    """
    TODAY_DATE = "TODAY_DATE"
    NEXT_ACTIVE_DATE = "NEXT_ACTIVE_DATE"
    NEXT_ACTIVE_WEEKDAY = "NEXT_ACTIVE_WEEKDAY"
    FIRST_ACTIVE_DATE = "FIRST_ACTIVE_DATE"


# 不直接展示给用户的消息类型
HIDDEN_MESSAGE_TYPES = (MessageType.AUTOROUTE, MessageType.DATA_ACTION)

# 需要用户输入才能继续的消息类型
INTERACTIVE_MESSAGE_TYPES = (MessageType.CHOICE, MessageType.TEXT_INPUT)
