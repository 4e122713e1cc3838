"""Language model oracle client

Thin async wrapper over the OpenAI chat completions API. The oracle is a
text-in/JSON-out collaborator: callers own prompts and schema checks, this
module only transports text and decodes the JSON envelope.
"""

import base64
import json
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from backend.app.core.config import settings
from backend.app.core.exceptions import OracleUnavailable
from backend.app.core.logging import get_logger

logger = get_logger(__name__)


class OracleResponseError(ValueError):
    """Oracle answered, but not with a JSON object"""


def parse_json_content(content: Optional[str]) -> Dict[str, Any]:
    """
    Decode an oracle reply into a JSON object

    Markdown code fences around the payload are tolerated.

    Raises:
        OracleResponseError: If the reply is empty, not JSON, or not an object
    """
    if not content or not content.strip():
        raise OracleResponseError("empty response")

    payload = content.strip()
    if payload.startswith("```"):
        payload = payload.strip("`")
        if payload.lower().startswith("json"):
            payload = payload[4:]

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"invalid JSON: {e.msg}")

    if not isinstance(parsed, dict):
        raise OracleResponseError(f"expected a JSON object, got {type(parsed).__name__}")

    return parsed


class OracleClient:
    """Single-attempt JSON and vision calls against the configured model"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        self._api_key = (api_key if api_key is not None else settings.OPENAI_API_KEY) or ""
        self._base_url = base_url or settings.OPENAI_BASE_URL
        self._timeout_s = timeout_s or settings.OPENAI_TIMEOUT_S
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key.strip())

    def _get_client(self) -> AsyncOpenAI:
        if not self.is_configured():
            raise OracleUnavailable("OPENAI_API_KEY is not configured")

        if self._client is None:
            # Retries are the caller's decision, never the transport's
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout_s,
                max_retries=0,
            )
        return self._client

    async def _chat(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool
    ) -> Optional[str]:
        create_kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._get_client().chat.completions.create(**create_kwargs)
        except openai.OpenAIError as e:
            logger.error(f"Oracle call failed (model={model}): {str(e)}")
            raise OracleUnavailable(str(e))

        return response.choices[0].message.content if response.choices else None

    async def complete_json(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2000
    ) -> Dict[str, Any]:
        """
        Send a prompt and decode the JSON object reply

        Raises:
            OracleUnavailable: If the oracle is unconfigured or the call fails
            OracleResponseError: If the reply is not a JSON object
        """
        content = await self._chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            model=model or settings.OPENAI_MODEL,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )
        return parse_json_content(content)

    async def transcribe_images(
        self,
        images: Sequence[bytes],
        *,
        instructions: str,
        model: Optional[str] = None,
        max_tokens: int = 3000
    ) -> str:
        """
        Transcribe page images to plain text

        Args:
            images: PNG-encoded page images, in reading order
            instructions: Transcription instructions
            model: Vision-capable model name

        Returns:
            Transcribed text (may be empty)
        """
        content: List[Dict[str, Any]] = [{"type": "text", "text": instructions}]
        for image in images:
            encoded = base64.b64encode(image).decode("utf-8")
            content.append({"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}})

        reply = await self._chat(
            [
                {"role": "system", "content": "You transcribe scanned documents. Return plain text only."},
                {"role": "user", "content": content},
            ],
            model=model or settings.OPENAI_VISION_MODEL,
            temperature=0.0,
            max_tokens=max_tokens,
            json_mode=False,
        )
        return (reply or "").strip()
