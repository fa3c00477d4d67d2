"""chatstream: conversion of assistant chat streams into UI messages."""

from chatstream.adapters.batch import BatchAdapter, convert_conversation_history
from chatstream.adapters.streaming import StreamingAdapter
from chatstream.config import ProcessorConfig, load_config
from chatstream.main import app
from chatstream.processor.processor import UnifiedMessageProcessor


__version__ = "0.1.0"

__all__ = [
    "app",
    "BatchAdapter",
    "convert_conversation_history",
    "load_config",
    "ProcessorConfig",
    "StreamingAdapter",
    "UnifiedMessageProcessor",
    "__version__",
]
