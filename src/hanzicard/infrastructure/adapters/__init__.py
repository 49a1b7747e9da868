# Infrastructure Adapters Package
from .anthropic_gateway import AnthropicLookupGateway
from .vision_ocr import ClaudeVisionRecognizer

__all__ = ["AnthropicLookupGateway", "ClaudeVisionRecognizer"]
