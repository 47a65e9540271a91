"""
Tailoring app AI providers

Thin adapters that send one system + user prompt to a chat model and return
the raw text of the reply. Provider errors are translated into the tailoring
exception hierarchy so callers never see SDK exception types.
"""
from __future__ import annotations

import logging
from typing import Optional

import openai
from django.conf import settings
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from .exceptions import (
    NOT_CONFIGURED_MESSAGE,
    AIConfigurationError,
    AIQuotaExceeded,
    TailoringPipelineError,
)

logger = logging.getLogger(__name__)

OPENAI_QUOTA_MESSAGE = 'OpenAI API quota exceeded. Please check your billing.'
OPENAI_INVALID_KEY_MESSAGE = 'Invalid OpenAI API key configured on server.'


def _setting(name: str, default: str = '') -> str:
    return getattr(settings, name, default) or default


class OpenAIChatProvider:
    """
    Chat Completions client with optional JSON mode.
    """

    name = 'openai'

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self.api_key = api_key or _setting('OPENAI_API_KEY')
        if not self.api_key and client is None:
            raise AIConfigurationError(NOT_CONFIGURED_MESSAGE)
        self.model = model or _setting('OPENAI_MODEL', 'gpt-4o')
        self.client = client or openai.OpenAI(api_key=self.api_key)

    def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool = False,
    ) -> str:
        request_params = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': system},
                {'role': 'user', 'content': prompt},
            ],
            'temperature': temperature,
            'max_tokens': max_tokens,
        }
        if json_mode:
            request_params['response_format'] = {'type': 'json_object'}

        try:
            completion = self.client.chat.completions.create(**request_params)
        except openai.OpenAIError as exc:
            raise self.translate_error(exc) from exc

        if not completion.choices:
            return ''
        return (completion.choices[0].message.content or '').strip()

    @staticmethod
    def translate_error(exc: Exception) -> TailoringPipelineError:
        code = getattr(exc, 'code', None)
        logger.error('OpenAI API error (%s): %s', code or type(exc).__name__, exc)
        if code == 'insufficient_quota':
            return AIQuotaExceeded(OPENAI_QUOTA_MESSAGE)
        if code == 'invalid_api_key':
            return AIConfigurationError(OPENAI_INVALID_KEY_MESSAGE)
        message = getattr(exc, 'message', None) or str(exc)
        return TailoringPipelineError(message)


class GeminiProvider:
    """
    Gemini client via google-genai. The system prompt travels as
    ``system_instruction``; JSON mode maps to an ``application/json`` MIME type.
    """

    name = 'gemini'

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self.api_key = api_key or _setting('GEMINI_API_KEY')
        if not self.api_key and client is None:
            raise AIConfigurationError(NOT_CONFIGURED_MESSAGE)
        self.model = model or _setting('GEMINI_MODEL', 'gemini-1.5-flash')
        self.client = client or genai.Client(api_key=self.api_key)

    def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool = False,
    ) -> str:
        config = genai_types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type='application/json' if json_mode else None,
        )
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[{'role': 'user', 'parts': [{'text': prompt}]}],
                config=config,
            )
        except genai_errors.APIError as exc:
            raise self.translate_error(exc) from exc
        return (getattr(response, 'text', '') or '').strip()

    @staticmethod
    def translate_error(exc: Exception) -> TailoringPipelineError:
        status = getattr(exc, 'status', None)
        message = getattr(exc, 'message', None) or str(exc)
        logger.error('Gemini API error (%s): %s', status or getattr(exc, 'code', ''), message)
        if status == 'RESOURCE_EXHAUSTED' or getattr(exc, 'code', None) == 429:
            return AIQuotaExceeded('Gemini API quota exceeded. Please check your billing.')
        if 'API key' in message:
            return AIConfigurationError('Invalid Gemini API key configured on server.')
        return TailoringPipelineError(message)


PROVIDERS = {
    OpenAIChatProvider.name: OpenAIChatProvider,
    GeminiProvider.name: GeminiProvider,
}

_client = None


def get_ai_client():
    """
    Return the process-wide provider chosen by ``AI_PROVIDER``, building it on first use.

    Raises:
        AIConfigurationError: If the provider has no API key configured.
    """
    global _client
    if _client is None:
        provider_name = (getattr(settings, 'AI_PROVIDER', 'openai') or 'openai').lower()
        provider_class = PROVIDERS.get(provider_name)
        if provider_class is None:
            raise AIConfigurationError(f"Unknown AI provider '{provider_name}'.")
        _client = provider_class()
        logger.info('AI provider initialised: %s (%s)', _client.name, _client.model)
    return _client


def reset_ai_client() -> None:
    global _client
    _client = None
