"""
Model client: the single place the language model is called.

The governed system prompt goes first, then the trimmed conversation
history, then the current user message. A failed call or an empty reply
aborts the turn with UpstreamFailure; nothing is saved for it.
"""

import logging
from typing import Dict, List, Optional, Protocol, Sequence

import openai

from pachai_kernel.errors import UpstreamFailure
from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.conversation import Message, MessageRole

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    def complete(
        self,
        system_prompt: str,
        history: Sequence[Message],
        user_message: str,
    ) -> str:
        ...


def build_chat_messages(
    system_prompt: str,
    history: Sequence[Message],
    user_message: str,
) -> List[Dict[str, str]]:
    """OpenAI chat payload: system, history (agent → assistant), then the user turn."""
    messages = [{"role": "system", "content": system_prompt}]
    for m in history:
        role = "user" if m.role == MessageRole.USER else "assistant"
        messages.append({"role": role, "content": m.content})
    messages.append({"role": "user", "content": user_message})
    return messages


class OpenAICompletionClient:
    """
    Chat completions over the openai SDK.

    The API key is read by the SDK from OPENAI_API_KEY unless passed in.
    """

    def __init__(
        self,
        config: Optional[PachaiConfig] = None,
        api_key: Optional[str] = None,
        client: Optional[openai.OpenAI] = None,
    ):
        self.config = config or PachaiConfig()
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> openai.OpenAI:
        # Built on first use so an app can start before a key is configured.
        if self._client is None:
            try:
                self._client = openai.OpenAI(api_key=self._api_key)
            except openai.OpenAIError as e:
                raise UpstreamFailure(f"OpenAI client not configured: {e}") from e
        return self._client

    def complete(
        self,
        system_prompt: str,
        history: Sequence[Message],
        user_message: str,
    ) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.config.model_name,
                messages=build_chat_messages(system_prompt, history, user_message),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except openai.OpenAIError as e:
            logger.error(f"[LLM] Completion failed: {e}")
            raise UpstreamFailure(f"Model call failed: {e}") from e

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            logger.error("[LLM] Empty completion")
            raise UpstreamFailure("Model returned an empty response")
        return content
