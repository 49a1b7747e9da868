"""
Service Factory
Centralizes the wiring of adapters and services from an AppConfig.

Callers that build several services should create one messages client with
get_messages_client and pass it in, then close it when done.
"""

import logging

from hanzicard.application.capture_service import CaptureService
from hanzicard.application.config import AppConfig
from hanzicard.application.resolver import LookupResolver
from hanzicard.infrastructure.adapters.anthropic_client import AnthropicMessagesClient
from hanzicard.infrastructure.adapters.anthropic_gateway import AnthropicLookupGateway
from hanzicard.infrastructure.adapters.vision_ocr import ClaudeVisionRecognizer
from hanzicard.infrastructure.dictionary import (
    LocalDictionary,
    load_default_dictionary,
    load_default_phrases,
)
from hanzicard.infrastructure.storage.json_store import JsonCardRepository
from hanzicard.infrastructure.storage.photo_store import FilesystemPhotoStore

logger = logging.getLogger(__name__)


def get_messages_client(config: AppConfig) -> AnthropicMessagesClient:
    api_key = config.anthropic_api_key.get_secret_value()
    if not api_key:
        logger.warning("No Anthropic API key configured; remote lookups will fail")
    return AnthropicMessagesClient(
        api_key=api_key,
        url=config.anthropic_api_url,
        model=config.model,
        version=config.anthropic_version,
        timeout=config.request_timeout,
    )


def get_dictionary(config: AppConfig) -> LocalDictionary:
    if config.dictionary_path:
        return LocalDictionary.load(config.dictionary_path)
    return load_default_dictionary()


def get_gateway(
    config: AppConfig, client: AnthropicMessagesClient | None = None
) -> AnthropicLookupGateway:
    return AnthropicLookupGateway(
        client or get_messages_client(config),
        character_max_tokens=config.character_max_tokens,
        word_max_tokens=config.word_max_tokens,
    )


def get_resolver(
    config: AppConfig, client: AnthropicMessagesClient | None = None
) -> LookupResolver:
    return LookupResolver(get_dictionary(config), get_gateway(config, client))


def get_repository(config: AppConfig) -> JsonCardRepository:
    return JsonCardRepository(config.store_path)


def get_capture_service(
    config: AppConfig,
    client: AnthropicMessagesClient | None = None,
    resolver: LookupResolver | None = None,
    repository: JsonCardRepository | None = None,
) -> CaptureService:
    client = client or get_messages_client(config)
    return CaptureService(
        recognizer=ClaudeVisionRecognizer(client, max_tokens=config.ocr_max_tokens),
        resolver=resolver or get_resolver(config, client),
        phrases=load_default_phrases(),
        repository=repository or get_repository(config),
        photo_store=FilesystemPhotoStore(config.photos_dir),
    )
