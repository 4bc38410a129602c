from pathlib import Path

from docstruct.llm.exceptions import ModelClientError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(schema_type: str, directory: Path | None = None) -> str:
    """Load the prompt template for a schema type.

    Args:
        schema_type: Response schema type, e.g. "translation".
        directory: Directory holding ``<schema_type>_prompt.txt`` files.
                   Defaults to the bundled prompts directory.

    Returns:
        The raw template string with placeholders.

    Raises:
        ModelClientError: if the file cannot be read.
    """
    path = (directory or _DEFAULT_PROMPT_DIR) / f"{schema_type.lower()}_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModelClientError(f"Failed to load prompt template: {exc}") from exc
