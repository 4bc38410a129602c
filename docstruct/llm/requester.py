import json

from docstruct.llm.client_base import BaseModelClient
from docstruct.llm.prompt_loader import load_prompt_template
from docstruct.logging.logger import Log
from docstruct.schema.registry import SchemaRegistry


class ModelRequester:
    """Sends an anchored document to a model and returns the raw response."""

    def __init__(
        self,
        *,
        client: BaseModelClient,
        registry: SchemaRegistry,
        model: str,
        temperature: float = 0.0,
        target_language: str = "English",
        system_prompt: str = "",
    ) -> None:
        self._client = client
        self._registry = registry
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._target_language = target_language
        self._system_prompt = system_prompt
        self._templates: dict[str, str] = {}

    def request(self, anchored_text: str, schema_type: str) -> str:
        json_schema = self._registry.definition(schema_type)
        prompt = self._build_prompt(anchored_text, schema_type, json_schema)
        Log.debug(f"Model prompt for '{schema_type}':\n{prompt}")
        raw_response = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=json_schema,
        )
        Log.debug(f"Model raw response:\n{raw_response}")
        return raw_response

    def _build_prompt(
        self,
        anchored_text: str,
        schema_type: str,
        json_schema: dict[str, object],
    ) -> str:
        template = self._templates.get(schema_type)
        if template is None:
            template = load_prompt_template(schema_type)
            self._templates[schema_type] = template
        return template.format(
            anchored_text=anchored_text,
            json_schema=json.dumps(json_schema, ensure_ascii=False, indent=2),
            target_language=self._target_language,
        )
