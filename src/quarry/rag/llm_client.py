"""LiteLLM client wrapper: generation call, retries and API key validation.

All hosted-model calls route through LiteLLM. Its built-in retry is used
(num_retries=3, exponential backoff). API key presence is validated before
the first request so a missing key fails fast as a configuration error.
"""

from __future__ import annotations

import os

import litellm

from quarry.rag.language import ARABIC, detect

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of a LiteLLM model string (``openai`` if none)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 512,
    temperature: float = 0.7,
    num_retries: int = 3,
) -> str:
    """Call litellm.completion() with retry/backoff. Returns content string.

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""


# ------------------------------------------------------------------
# Conversational answer over retrieved context
# ------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are a friendly assistant answering questions from a knowledge base.

Knowledge base context:
{context}

Response style:
- Speak naturally, keep answers to two or three sentences
- Use simple, everyday language without lists or markdown
- If the context does not contain the answer, say so plainly

Language:
- {language_instruction}"""

_LANGUAGE_INSTRUCTIONS: dict[str, str] = {
    ARABIC: "Respond in Arabic, using natural spoken Arabic.",
    "en": "Respond in English, using casual, friendly English.",
}


def build_messages(
    query: str,
    context: str,
    history: list[dict],
    language: str,
) -> list[dict]:
    """Return the OpenAI-style message list for a grounded chat turn.

    *history* entries are ``{"role": "user" | "assistant", "content": str}``;
    other roles are dropped.
    """
    system = _SYSTEM_PROMPT.format(
        context=context or "(no relevant context found)",
        language_instruction=_LANGUAGE_INSTRUCTIONS.get(language, _LANGUAGE_INSTRUCTIONS["en"]),
    )
    messages: list[dict] = [{"role": "system", "content": system}]
    messages.extend(
        {"role": m["role"], "content": m["content"]}
        for m in history
        if m.get("role") in ("user", "assistant")
    )
    messages.append({"role": "user", "content": query})
    return messages


def chat(
    query: str,
    context: str,
    history: list[dict] | None = None,
    *,
    model: str = "gemini/gemini-2.5-flash",
    max_tokens: int = 512,
    temperature: float = 0.7,
    num_retries: int = 3,
) -> tuple[str, str]:
    """Answer *query* from *context*, in the language the query is written in.

    Returns:
        ``(generated_text, language_tag)`` where the tag is ``"en"`` or ``"ar"``.
    """
    language = detect(query).primary
    messages = build_messages(query, context, history or [], language)
    text = complete(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return text, language
