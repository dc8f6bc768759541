from .chat_orchestrator import ChatOrchestrator, ChatStream
from .context_compressor import CompressionState, ContextCompressor
from .conversation_service import ConversationService
from .document_context import DocumentContext, DocumentContextAssembler
from .model_registry import ModelRegistry
from .stream_accumulator import StreamAccumulator

__all__ = [
    "ChatOrchestrator",
    "ChatStream",
    "CompressionState",
    "ContextCompressor",
    "ConversationService",
    "DocumentContext",
    "DocumentContextAssembler",
    "ModelRegistry",
    "StreamAccumulator",
]
