import logging
from typing import Any, Optional

import openai
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_openai import ChatOpenAI

from chatterm.config import ChatTermConfig
from chatterm.core.errors import TransportError
from chatterm.models import ChatMessage, TranscriptEntry

logger = logging.getLogger(__name__)


def build_llm(model: str, api_key: str, base_url: Optional[str] = None, timeout: float = 60):
    # max_retries=0: a failed request is reported, never retried
    return ChatOpenAI(
        model=model,
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
        max_retries=0,
    )


def _to_langchain(message: ChatMessage) -> BaseMessage:
    if message.role == 'assistant':
        return AIMessage(content=message.content)
    return HumanMessage(content=message.content)


def _token_usage(reply: AIMessage) -> tuple[int, int]:
    usage = getattr(reply, 'usage_metadata', None)
    if usage:
        return usage['input_tokens'], usage['output_tokens']

    meta: dict[str, Any] = reply.response_metadata or {}
    token_usage = meta.get('token_usage') or {}
    if 'prompt_tokens' in token_usage and 'completion_tokens' in token_usage:
        return token_usage['prompt_tokens'], token_usage['completion_tokens']

    raise TransportError("response did not include token usage")


def _reply_text(reply: AIMessage) -> str:
    content = reply.content
    if isinstance(content, str):
        return content
    return ''.join(
        part.get('text', '') if isinstance(part, dict) else str(part)
        for part in content
    )


class ChatClient:
    """
    Sends request windows to a chat-completions endpoint.

    The first message of every request is prefixed with the session preamble;
    the prompt recorded in the returned entry has it stripped again.
    """

    def __init__(self, llm: BaseChatModel, initial_prompt: str):
        self.llm = llm
        self.preamble = f"{initial_prompt}\n\n" if initial_prompt else ""

    @classmethod
    def from_config(cls, config: ChatTermConfig) -> "ChatClient":
        llm = build_llm(
            config.openai_model,
            config.openai_api_key,
            base_url=config.base_url,
            timeout=config.request_timeout,
        )
        return cls(llm, config.initial_prompt)

    def send_request(self, messages: list[ChatMessage]) -> TranscriptEntry:
        if not messages:
            raise ValueError("cannot send an empty request")

        msgs = [_to_langchain(m) for m in messages]
        msgs[0] = type(msgs[0])(content=self.preamble + messages[0].content)

        try:
            reply = self.llm.invoke(msgs)
        except openai.OpenAIError as e:
            message = getattr(e, 'message', None) or str(e)
            logger.warning("Completion request failed: %s", message)
            raise TransportError(message) from e
        except Exception as e:
            logger.exception("Unexpected error from the chat model")
            raise TransportError(f"{type(e).__name__}: {e}") from e

        prompt_tokens, answer_tokens = _token_usage(reply)
        prompt = msgs[-1].content
        if self.preamble and prompt.startswith(self.preamble):
            prompt = prompt[len(self.preamble):]

        return TranscriptEntry(
            message=prompt,
            response=_reply_text(reply),
            num_tokens_message=prompt_tokens,
            num_tokens_response=answer_tokens,
        )
