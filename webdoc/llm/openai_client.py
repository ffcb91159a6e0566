"""
OpenAI LLM Client.
Implements LLMProvider for OpenAI GPT models.
"""

import base64
import json
from typing import Any

from openai import AsyncOpenAI

from .provider import LLMProvider, LLMMessage, LLMResponse, parse_json_content
from ..core.config import settings


class OpenAIClient(LLMProvider):
    """
    OpenAI GPT client implementing LLMProvider interface.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to config)
            model: Model name (defaults to config)
        """
        self.api_key = api_key or settings.openai_api_key
        self._model = model or settings.openai_model

        if not self.api_key:
            raise ValueError("OpenAI API key not configured")

        self.client = AsyncOpenAI(api_key=self.api_key)

    @property
    def model_name(self) -> str:
        return self._model

    def _build_messages(
        self,
        messages: list[LLMMessage] | str,
        system_prompt: str | None,
        images: list[bytes] | None,
    ) -> list[dict[str, Any]]:
        api_messages: list[dict[str, Any]] = []

        if system_prompt:
            api_messages.append({
                "role": "system",
                "content": system_prompt
            })

        if isinstance(messages, str):
            messages = [LLMMessage(role="user", content=messages)]

        for msg in messages:
            api_messages.append({
                "role": msg.role,
                "content": msg.content,
                **({"name": msg.name} if msg.name else {})
            })

        # Attach screenshots to the last user message
        if images:
            for message in reversed(api_messages):
                if message["role"] == "user":
                    parts: list[dict[str, Any]] = [
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": "data:image/png;base64,"
                                + base64.b64encode(image).decode()
                            },
                        }
                        for image in images
                    ]
                    parts.append({"type": "text", "text": message["content"]})
                    message["content"] = parts
                    break

        return api_messages

    async def invoke(
        self,
        messages: list[LLMMessage] | str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        images: list[bytes] | None = None,
    ) -> LLMResponse:
        """
        Invoke OpenAI API.

        Args:
            messages: Messages or single user message
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens
            images: Optional PNG screenshots

        Returns:
            LLM response
        """
        response = await self.client.chat.completions.create(
            model=self._model,
            messages=self._build_messages(messages, system_prompt, images),
            temperature=temperature,
            max_tokens=max_tokens,
        )

        choice = response.choices[0]

        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            },
        )

    async def invoke_with_structured_output(
        self,
        messages: list[LLMMessage] | str,
        output_schema: dict[str, Any],
        system_prompt: str | None = None,
        temperature: float = 0.7,
        images: list[bytes] | None = None,
    ) -> dict[str, Any]:
        """
        Invoke with structured JSON output using response_format.

        Args:
            messages: Messages or single user message
            output_schema: JSON schema for output
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            images: Optional PNG screenshots

        Returns:
            Parsed JSON response
        """
        schema_instruction = (
            f"{system_prompt or ''}\n\n"
            f"You MUST respond with valid JSON matching this schema:\n"
            f"```json\n{json.dumps(output_schema, indent=2)}\n```\n"
            f"Do not include any text outside the JSON object."
        )

        response = await self.client.chat.completions.create(
            model=self._model,
            messages=self._build_messages(messages, schema_instruction.strip(), images),
            temperature=temperature,
            response_format={"type": "json_object"}
        )

        return parse_json_content(response.choices[0].message.content or "{}")
