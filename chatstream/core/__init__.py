from chatstream.core.constants import ToolName as ToolName
from chatstream.core.exceptions import (
    ChatStreamError as ChatStreamError,
    ConfigurationError as ConfigurationError,
    FrameDecodeError as FrameDecodeError,
    HistoryLoadError as HistoryLoadError,
)
from chatstream.core.utils import now_ms as now_ms, to_epoch_ms as to_epoch_ms
