"""lucid_rag.retrieval.embedder

Embedding interfaces and factories for the retrieval layer.

This module defines a small provider-agnostic interface for producing vector
embeddings from text, along with a concrete implementation backed by the
LlamaIndex OpenAI-compatible embedding wrapper. A factory function is provided
to construct an embedder implementation from configuration.

Classes
-------
BaseEmbedder
    Abstract interface specifying the API used by the RAG pipeline.
OpenAILikeEmbedder
    Embedder backed by an OpenAI-compatible HTTP API via LlamaIndex.

Functions
---------
create_embedder
    Create an embedder implementation from a configuration mapping.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional
import threading

from langchain_core.callbacks import BaseCallbackHandler
from llama_index.core.base.embeddings.base import BaseEmbedding as LlamaIndexBaseEmbedding

DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"
DEFAULT_API_BASE = "https://api.openai.com/v1"


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return bool(value)


class BaseEmbedder(ABC):
    """Abstract interface for text embedding.

    Concrete implementations wrap a provider-specific embedder and expose a
    small, consistent API used by the RAG pipeline.
    """

    @abstractmethod
    def create_embedding(self, text: str, model_name: Optional[str] = None) -> list[float]:
        """Embed ``text`` with ``model_name``.

        Parameters
        ----------
        text : str
            Text to embed.
        model_name : str or None, optional
            Embedding model to use. ``None`` selects the configured model.

        Returns
        -------
        list[float]
            Embedding vector.

        Raises
        ------
        Exception
            Any transport or API failure from the provider. Callers wrap these
            into :class:`~lucid_rag.common.errors.ProviderError`.
        """
        pass

    @classmethod
    @abstractmethod
    def from_config_dict(
            cls,
            config: Dict[str, Any],
            callback_manager: BaseCallbackHandler = None
        ) -> "BaseEmbedder":
        """Create an embedder from a configuration mapping.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration mapping.
        callback_manager : BaseCallbackHandler, optional
            Optional callback handler for logging/telemetry/streaming.

        Returns
        -------
        BaseEmbedder
            An initialised embedder implementation.
        """
        pass


class OpenAILikeEmbedder(BaseEmbedder):
    """Embedder backed by an OpenAI-compatible embedding API via LlamaIndex.

    This implementation wraps :class:`llama_index.embeddings.openai_like.OpenAILikeEmbedding`.
    One LlamaIndex client is kept per model name so that callers may request a
    model other than the configured default.

    Parameters
    ----------
    model_name : str
        Default model identifier for the embedding endpoint.
    api_base : str
        Base URL for the OpenAI-compatible embedding API endpoint.
    api_key : str or None, optional
        API key sent as a bearer token.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry/streaming.
    model_kwargs : dict[str, Any] or None, optional
        Additional keyword arguments forwarded to the underlying embedder.
    timeout : float, optional
        Per-request timeout in seconds.
    max_retries : int, optional
        Upper bound on provider retries per request.
    """

    def __init__(
            self,
            model_name: str = DEFAULT_EMBEDDING_MODEL,
            *,
            api_base: str = DEFAULT_API_BASE,
            api_key: str = None,
            callback_manager: BaseCallbackHandler = None,
            model_kwargs: dict[str, Any] = None,
            timeout: float = 30.0,
            max_retries: int = 2,
            reuse_client: bool = True,
        ):
        self.model_name = model_name
        self.api_base = api_base
        self._api_key = api_key
        self._callback_manager = callback_manager
        self._model_kwargs = model_kwargs or {}
        self._timeout = timeout
        self._max_retries = max_retries
        self._reuse_client = reuse_client

        self._lock = threading.Lock()
        self._embedders: dict[str, LlamaIndexBaseEmbedding] = {}
        self.embedder = self._get_or_build(model_name)

    def _get_or_build(self, model_name: str) -> LlamaIndexBaseEmbedding:
        from llama_index.embeddings.openai_like import OpenAILikeEmbedding

        with self._lock:
            embedder = self._embedders.get(model_name)
            if embedder is None:
                embedder = OpenAILikeEmbedding(
                    model_name=model_name,
                    api_base=self.api_base,
                    api_key=self._api_key,
                    callback_manager=self._callback_manager,
                    additional_kwargs=self._model_kwargs,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                    reuse_client=self._reuse_client,
                )
                self._embedders[model_name] = embedder
            return embedder

    def create_embedding(self, text: str, model_name: Optional[str] = None) -> list[float]:
        embedder = self._get_or_build(model_name or self.model_name)
        return list(embedder.get_text_embedding(text))

    @classmethod
    def from_config_dict(
            cls,
            config: Dict[str, Any],
            callback_manager: BaseCallbackHandler = None
        ) -> "OpenAILikeEmbedder":
        """Create an OpenAI-compatible embedder from a configuration mapping.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration mapping. Recognised keys: ``model_name``,
            ``api_base``, ``api_key``, ``model_kwargs``, ``timeout``,
            ``max_retries`` and ``reuse_client``.
        callback_manager : BaseCallbackHandler, optional
            Optional callback handler for logging/telemetry/streaming.

        Returns
        -------
        OpenAILikeEmbedder
            An initialised embedder instance.
        """
        return cls(
            model_name=config.get("model_name") or DEFAULT_EMBEDDING_MODEL,
            api_base=config.get("api_base") or DEFAULT_API_BASE,
            api_key=config.get("api_key"),
            callback_manager=callback_manager,
            model_kwargs=config.get("model_kwargs", {}),
            timeout=float(config.get("timeout", config.get("request_timeout", 30.0))),
            max_retries=int(config.get("max_retries", 2)),
            reuse_client=_as_bool(config.get("reuse_client"), True),
        )


# ----------------- Factory helpers -----------------

def _get_embedder_kind(cfg: Mapping[str, Any]) -> str:
    """Extract the embedder kind/type/provider discriminator from a config mapping.

    Returns
    -------
    str
        The first non-empty discriminator value found, or an empty string if none
        is present.
    """
    for key in ("kind", "type", "provider", "backend", "impl"):
        val = cfg.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return ""


def _normalize_embedder_kind(kind: str) -> str:
    """Normalise an embedder kind/type string to a stable registry key.

    CamelCase becomes snake_case, whitespace and hyphens become underscores,
    and repeated underscores collapse (e.g., ``"OpenAILike"`` -> ``"openai_like"``).
    """
    k = kind.strip()
    if not k:
        return ""

    # Insert underscores between camel-case boundaries.
    out: list[str] = []
    prev = ""
    for ch in k:
        if prev and prev.islower() and ch.isupper():
            out.append("_")
        out.append(ch)
        prev = ch

    k2 = "".join(out)
    k2 = k2.replace("-", "_").replace(" ", "_")

    while "__" in k2:
        k2 = k2.replace("__", "_")

    k2 = k2.lower()

    k2 = k2.replace("open_ai_like", "openai_like")
    k2 = k2.replace("open_ailike", "openai_like")
    k2 = k2.replace("openailike", "openai_like")

    return k2


def create_embedder(
    config: Mapping[str, Any],
    callback_manager: Optional[BaseCallbackHandler] = None,
) -> BaseEmbedder:
    """Create an embedder implementation from a configuration mapping.

    The concrete implementation is selected by a discriminator field in the
    configuration (one of: ``kind``, ``type``, ``provider``, ``backend``, or
    ``impl``). Without a discriminator, :class:`OpenAILikeEmbedder` is used.

    Parameters
    ----------
    config : Mapping[str, Any]
        Configuration mapping used to construct the embedder.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry/streaming.

    Returns
    -------
    BaseEmbedder
        An initialised embedder implementation.

    Raises
    ------
    TypeError
        If ``config`` is not a mapping.
    ValueError
        If the discriminator selects an unsupported implementation.
    """
    if not isinstance(config, Mapping):
        raise TypeError(f"create_embedder expected a mapping/dict, got {type(config)}")

    kind_raw = _get_embedder_kind(config)
    kind = _normalize_embedder_kind(kind_raw)

    registry = {
        "openai_like": OpenAILikeEmbedder,
        "openai": OpenAILikeEmbedder,
    }

    cls = registry.get(kind) if kind else OpenAILikeEmbedder

    if cls is None:
        raise ValueError(
            f"Unknown embedder kind '{kind_raw}' (normalized to '{kind}'). "
            f"Supported kinds: {sorted(registry.keys())}."
        )

    return cls.from_config_dict(dict(config), callback_manager=callback_manager)


__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "BaseEmbedder",
    "OpenAILikeEmbedder",
    "create_embedder",
]
