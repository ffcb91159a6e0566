"""
Anthropic LLM Client.
Implements LLMProvider for Claude models.
"""

import base64
import json
from typing import Any

from anthropic import AsyncAnthropic

from .provider import LLMProvider, LLMMessage, LLMResponse, parse_json_content
from ..core.config import settings


class AnthropicClient(LLMProvider):
    """
    Anthropic Claude client implementing LLMProvider interface.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to config)
            model: Model name (defaults to config)
        """
        self.api_key = api_key or settings.anthropic_api_key
        self._model = model or settings.anthropic_model

        if not self.api_key:
            raise ValueError("Anthropic API key not configured")

        self.client = AsyncAnthropic(api_key=self.api_key)

    @property
    def model_name(self) -> str:
        return self._model

    def _build_messages(
        self,
        messages: list[LLMMessage] | str,
        images: list[bytes] | None,
    ) -> tuple[list[dict[str, Any]], str]:
        """
        Build the messages list (Anthropic doesn't include system in messages).

        Returns:
            Messages and any system text found among them
        """
        api_messages: list[dict[str, Any]] = []
        extra_system = ""

        if isinstance(messages, str):
            messages = [LLMMessage(role="user", content=messages)]

        for msg in messages:
            if msg.role == "system":
                extra_system = f"{extra_system}\n{msg.content}".strip()
            else:
                api_messages.append({
                    "role": msg.role,
                    "content": msg.content
                })

        if images:
            for message in reversed(api_messages):
                if message["role"] == "user":
                    blocks: list[dict[str, Any]] = [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": "image/png",
                                "data": base64.b64encode(image).decode(),
                            },
                        }
                        for image in images
                    ]
                    blocks.append({"type": "text", "text": message["content"]})
                    message["content"] = blocks
                    break

        return api_messages, extra_system

    async def invoke(
        self,
        messages: list[LLMMessage] | str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        images: list[bytes] | None = None,
    ) -> LLMResponse:
        """
        Invoke Anthropic API.

        Args:
            messages: Messages or single user message
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens
            images: Optional PNG screenshots

        Returns:
            LLM response
        """
        api_messages, extra_system = self._build_messages(messages, images)
        system = f"{system_prompt or ''}\n{extra_system}".strip()

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": api_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(**kwargs)

        content = "".join(
            block.text for block in response.content if block.type == "text"
        )

        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
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
        Invoke with structured JSON output.

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
            f"Do not include any text outside the JSON object. "
            f"Start your response with {{ and end with }}"
        )

        response = await self.invoke(
            messages,
            system_prompt=schema_instruction.strip(),
            temperature=temperature,
            images=images,
        )
        return parse_json_content(response.content)
