"""lucid_rag.generation.llm_interface

Unified interface and factory for chat-completion model backends.

This module defines a small, provider-agnostic abstraction for chat
completions and a concrete implementation backed by the LangChain OpenAI chat
wrapper. A factory function is provided to instantiate the appropriate LLM
implementation from a configuration mapping.

Classes
-------
BaseLLM
    Abstract interface specifying the API used by the RAG pipeline.
OpenAIChatLikeLLM
    Chat completions using an OpenAI-compatible HTTP API via LangChain.

Functions
---------
create_llm
    Construct an LLM implementation from a configuration mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence
import threading

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
DEFAULT_API_BASE = "https://api.openai.com/v1"

_ROLE_TO_MESSAGE = {
    "system": SystemMessage,
    "user": HumanMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
    "ai": AIMessage,
}


def to_langchain_messages(messages: Sequence[Mapping[str, str]]) -> list[BaseMessage]:
    """Convert ``{"role", "content"}`` mappings into LangChain messages.

    Parameters
    ----------
    messages : Sequence[Mapping[str, str]]
        Ordered chat turns.

    Returns
    -------
    list[BaseMessage]
        LangChain message objects in the same order.

    Raises
    ------
    ValueError
        If a message has an unsupported role.
    """
    converted: list[BaseMessage] = []
    for message in messages:
        role = str(message.get("role", "")).lower()
        message_cls = _ROLE_TO_MESSAGE.get(role)
        if message_cls is None:
            raise ValueError(f"Unsupported chat message role: {role!r}")
        converted.append(message_cls(content=message.get("content", "")))
    return converted


class BaseLLM(ABC):
    """Abstract interface for chat completions.

    Concrete implementations wrap provider-specific clients and expose a
    small, consistent API used by the RAG pipeline.
    """

    @classmethod
    @abstractmethod
    def from_config_dict(
            cls,
            config: dict,
            callback_manager: BaseCallbackHandler = None
        ) -> "BaseLLM":
        """Create an LLM instance from a configuration mapping.

        Parameters
        ----------
        config : dict
            Configuration parameters for the concrete implementation.
        callback_manager : BaseCallbackHandler, optional
            Optional callback handler for logging/telemetry/streaming.

        Returns
        -------
        BaseLLM
            An initialised LLM implementation.
        """
        pass

    @abstractmethod
    def create_chat_completion(
            self,
            messages: Sequence[Mapping[str, str]],
            model_name: Optional[str] = None,
            options: Optional[Mapping[str, Any]] = None,
        ) -> str:
        """Generate the assistant reply to ``messages``.

        Parameters
        ----------
        messages : Sequence[Mapping[str, str]]
            Ordered ``{"role", "content"}`` turns.
        model_name : str or None, optional
            Model to use. ``None`` selects the configured model.
        options : Mapping[str, Any] or None, optional
            Per-call generation parameters (e.g., ``temperature``,
            ``max_tokens``).

        Returns
        -------
        str
            Assistant message content.
        """
        pass


class OpenAIChatLikeLLM(BaseLLM):
    """LLM interface using an OpenAI-compatible Chat Completions API via LangChain.

    This implementation wraps :class:`langchain_openai.ChatOpenAI`. One client
    is kept per model name so that callers may request a model other than the
    configured default.

    Parameters
    ----------
    model_name : str
        Default model identifier (e.g., ``"gpt-3.5-turbo"``).
    api_base : str
        Base URL for the OpenAI-compatible API endpoint.
    api_key : str
        API key value.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry/streaming.
    timeout : float, optional
        Per-request timeout in seconds.
    max_retries : int, optional
        Upper bound on provider retries per request.
    **model_kwargs : Any
        Default generation parameters forwarded to ``ChatOpenAI`` (e.g.,
        ``temperature``, ``max_tokens``).
    """

    def __init__(
        self,
        model_name: str = DEFAULT_CHAT_MODEL,
        api_base: str = DEFAULT_API_BASE,
        api_key: str = None,
        callback_manager: BaseCallbackHandler = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        **model_kwargs: Any,
    ):
        self.model_name = model_name
        self.api_base = api_base
        self.model_kwargs = dict(model_kwargs)
        self._api_key = api_key
        self._callbacks = [callback_manager] if callback_manager is not None else None
        self._timeout = timeout
        self._max_retries = max_retries

        self._lock = threading.Lock()
        self._clients: dict[str, ChatOpenAI] = {}
        self.llm = self._get_or_build(model_name)

    def _get_or_build(self, model_name: str) -> ChatOpenAI:
        with self._lock:
            client = self._clients.get(model_name)
            if client is None:
                client = ChatOpenAI(
                    model=model_name,
                    base_url=self.api_base,
                    api_key=self._api_key,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                    callbacks=self._callbacks,
                    **self.model_kwargs,
                )
                self._clients[model_name] = client
            return client

    @classmethod
    def from_config_dict(
        cls,
        config: dict,
        callback_manager: BaseCallbackHandler = None,
    ) -> "OpenAIChatLikeLLM":
        """Create an OpenAI-compatible chat LLM from a mapping.

        Recognised keys: ``model_name``, ``api_base``, ``api_key``,
        ``timeout``, ``max_retries`` and ``model_kwargs``.
        """
        return cls(
            model_name=config.get('model_name') or DEFAULT_CHAT_MODEL,
            api_base=config.get('api_base') or DEFAULT_API_BASE,
            api_key=config.get('api_key'),
            callback_manager=callback_manager,
            timeout=float(config.get('timeout', 30.0)),
            max_retries=int(config.get('max_retries', 2)),
            **(config.get('model_kwargs') or {}),
        )

    def create_chat_completion(
            self,
            messages: Sequence[Mapping[str, str]],
            model_name: Optional[str] = None,
            options: Optional[Mapping[str, Any]] = None,
        ) -> str:
        client = self._get_or_build(model_name or self.model_name)
        response = client.invoke(to_langchain_messages(messages), **dict(options or {}))
        content = response.content if hasattr(response, "content") else response
        return content if isinstance(content, str) else str(content)


# ----------------- Factory helpers -----------------

def _get_llm_kind(cfg: Mapping[str, Any]) -> str:
    for key in ("kind", "type", "provider", "backend", "impl"):
        val = cfg.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return ""


def _normalize_llm_kind(kind: str) -> str:
    k = kind.strip().lower().replace("-", "_").replace(" ", "_")
    aliases = {
        "openai": "openai_chat_like",
        "openai_chat": "openai_chat_like",
        "openaichatlike": "openai_chat_like",
        "openai_like": "openai_chat_like",
        "openailike": "openai_chat_like",
    }
    return aliases.get(k, k)


def create_llm(config: Mapping[str, Any], callback_manager: Optional[BaseCallbackHandler] = None) -> BaseLLM:
    """Construct an LLM implementation from a configuration mapping.

    Parameters
    ----------
    config : Mapping[str, Any]
        Configuration mapping. The implementation is selected by one of the
        discriminator keys ``kind``, ``type``, ``provider``, ``backend`` or
        ``impl``; the default is :class:`OpenAIChatLikeLLM`.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry/streaming.

    Returns
    -------
    BaseLLM
        An initialised LLM implementation.

    Raises
    ------
    TypeError
        If ``config`` is not a mapping.
    ValueError
        If the discriminator selects an unsupported implementation.
    """
    if not isinstance(config, Mapping):
        raise TypeError(f"create_llm expected a mapping/dict, got {type(config)}")

    kind_raw = _get_llm_kind(config)
    kind = _normalize_llm_kind(kind_raw) if kind_raw else "openai_chat_like"

    registry = {
        "openai_chat_like": OpenAIChatLikeLLM,
    }

    cls = registry.get(kind)
    if cls is None:
        raise ValueError(
            f"Unknown LLM kind '{kind_raw}' (normalized to '{kind}'). "
            f"Supported kinds: {sorted(registry.keys())}."
        )

    return cls.from_config_dict(dict(config), callback_manager=callback_manager)


__all__ = [
    "DEFAULT_CHAT_MODEL",
    "BaseLLM",
    "OpenAIChatLikeLLM",
    "create_llm",
    "to_langchain_messages",
]
