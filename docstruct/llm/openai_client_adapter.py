import httpx
import openai

from docstruct.llm.client_base import BaseModelClient
from docstruct.llm.exceptions import ModelClientError, ModelNetworkError


class OpenAIClientAdapter(BaseModelClient):
    """Model client built on the OpenAI-compatible chat completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "anchored_sections",
                        "strict": False,
                        "schema": json_schema,
                    },
                },
                messages=messages,
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ModelNetworkError(f"Model provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ModelClientError(f"Model provider API error: {exc}") from exc

        if not response.choices:
            raise ModelClientError("Model returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise ModelClientError("Model returned empty response")
        return content
