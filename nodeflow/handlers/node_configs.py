"""
Node configuration catalogue.

Describes the parameters each built-in node kind accepts: their type,
label, default and whether they are required. Handlers read their
defaults from here, and the API serves the catalogue to editors that
render node property forms.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from nodeflow.engine.errors import HandlerError
from nodeflow.engine.models import NodeKind, kind_key


@dataclass(frozen=True)
class ConfigField:
    """A single configurable parameter of a node kind."""
    name: str
    type: str  # string | number | boolean | select | textarea
    label: str
    required: bool = False
    default: Any = None
    options: List[str] = field(default_factory=list)
    placeholder: Optional[str] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "label": self.label,
            "required": self.required,
            "default": self.default,
            "options": list(self.options),
            "placeholder": self.placeholder,
            "description": self.description,
        }


_GPT_MODELS = ["gpt-3.5-turbo", "gpt-4", "gpt-4-turbo"]


NODE_CONFIGS: Dict[str, List[ConfigField]] = {
    NodeKind.WEB_SCRAPING.value: [
        ConfigField("url", "string", "Website URL", required=True,
                    placeholder="https://example.com",
                    description="The URL of the website to scrape"),
        ConfigField("maxLength", "number", "Max Summary Length", default=500,
                    description="Maximum length of the generated summary"),
        ConfigField("includeImages", "boolean", "Include Images", default=False,
                    description="Whether to include image descriptions in the summary"),
    ],
    NodeKind.STRUCTURED_OUTPUT.value: [
        ConfigField("schema", "textarea", "JSON Schema", required=True,
                    placeholder='{"type": "object", "properties": {...}}',
                    description="JSON schema defining the expected output structure"),
        ConfigField("model", "select", "Model", default="gpt-3.5-turbo", options=_GPT_MODELS,
                    description="Model used for structured output generation"),
        ConfigField("temperature", "number", "Temperature", default=0.1,
                    description="Controls randomness in the output (0-1)"),
    ],
    NodeKind.EMBEDDING_GENERATOR.value: [
        ConfigField("model", "select", "Embedding Model", default="text-embedding-ada-002",
                    options=["text-embedding-ada-002", "text-embedding-3-small", "text-embedding-3-large"],
                    description="Embedding model to use"),
        ConfigField("dimensions", "number", "Dimensions", default=1536,
                    description="Number of dimensions for the embedding vector"),
        ConfigField("normalize", "boolean", "Normalize Vectors", default=True,
                    description="Whether to normalize the embedding vectors"),
    ],
    NodeKind.SIMILARITY_SEARCH.value: [
        ConfigField("vectorStore", "string", "Vector Store ID", required=True,
                    placeholder="vs_1234567890",
                    description="ID of the vector store to search in"),
        ConfigField("topK", "number", "Top K Results", default=5,
                    description="Number of similar items to return"),
        ConfigField("similarityThreshold", "number", "Similarity Threshold", default=0.7,
                    description="Minimum similarity score (0-1)"),
        ConfigField("filter", "textarea", "Filter Expression",
                    placeholder='{"category": "news"}',
                    description="Optional filter to apply to the search"),
    ],
    NodeKind.LLM_TASK.value: [
        ConfigField("prompt", "textarea", "System Prompt", required=True,
                    placeholder="You are a helpful assistant...",
                    description="The system prompt for the LLM task"),
        ConfigField("model", "select", "Model", default="gpt-3.5-turbo", options=_GPT_MODELS,
                    description="Model to use"),
        ConfigField("temperature", "number", "Temperature", default=0.7,
                    description="Controls randomness in the output (0-1)"),
        ConfigField("maxTokens", "number", "Max Tokens", default=1000,
                    description="Maximum number of tokens to generate"),
    ],
    NodeKind.DATA_INPUT.value: [
        ConfigField("inputType", "select", "Input Type", default="text",
                    options=["text", "json", "url", "file"],
                    description="Type of input data expected"),
        ConfigField("placeholder", "string", "Placeholder Text",
                    placeholder="Enter your input here...",
                    description="Placeholder text for the input field"),
        ConfigField("required", "boolean", "Required", default=True,
                    description="Whether this input is required"),
    ],
    NodeKind.DATA_OUTPUT.value: [
        ConfigField("outputFormat", "select", "Output Format", default="json",
                    options=["json", "text", "csv", "markdown"],
                    description="Format of the output data"),
        ConfigField("filename", "string", "Filename", default="output.json",
                    placeholder="output.json",
                    description="Default filename for exported data"),
        ConfigField("includeMetadata", "boolean", "Include Metadata", default=False,
                    description="Whether to include execution metadata in output"),
    ],
}


def get_config_fields(kind: Any) -> List[ConfigField]:
    """Config fields for a kind (empty for kinds without a catalogue entry)."""
    return NODE_CONFIGS.get(kind_key(kind), [])


def get_config_field(kind: Any, name: str) -> Optional[ConfigField]:
    for config_field in get_config_fields(kind):
        if config_field.name == name:
            return config_field
    return None


def config_value(kind: Any, config: Dict[str, Any], name: str) -> Any:
    """
    Read a config value, falling back to the catalogue default.

    Missing, None and empty-string values count as unset. Number fields
    given as strings (as form inputs often are) are converted.
    """
    config_field = get_config_field(kind, name)
    value = config.get(name)

    if value is None or value == "":
        return config_field.default if config_field else None

    if config_field and config_field.type == "number" and isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            raise HandlerError(
                f"{config_field.label} must be a number, got '{value}'",
                kind=kind_key(kind),
            )
        return int(number) if number.is_integer() else number

    return value


def missing_required(kind: Any, config: Dict[str, Any]) -> List[str]:
    """Names of required fields that are unset in `config`."""
    return [
        config_field.name
        for config_field in get_config_fields(kind)
        if config_field.required and config.get(config_field.name) in (None, "")
    ]
