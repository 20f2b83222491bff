"""External service integrations for the SkillSphere platform."""

from .assemblyai_client import (
    AssemblyAIClient,
    AssemblyAIError,
    FakeAssemblyAIClient,
    SpeechToTextProvider,
)
from .base import ProviderError
from .gemini_client import (
    DisabledTextGenerator,
    FakeTextGenerator,
    GeminiClient,
    GeminiError,
    TextGenerator,
)
from .hundredms_client import FakeHundredMsClient, HundredMsClient, HundredMsError, VideoProvider
from .stream_chat_client import ChatProvider, FakeStreamChatClient, StreamChatClient, StreamChatError

__all__ = [
    "AssemblyAIClient",
    "AssemblyAIError",
    "ChatProvider",
    "DisabledTextGenerator",
    "FakeAssemblyAIClient",
    "FakeHundredMsClient",
    "FakeStreamChatClient",
    "FakeTextGenerator",
    "GeminiClient",
    "GeminiError",
    "HundredMsClient",
    "HundredMsError",
    "ProviderError",
    "SpeechToTextProvider",
    "StreamChatClient",
    "StreamChatError",
    "TextGenerator",
    "VideoProvider",
]
