"""Export the USF document models as a standard JSON Schema.

The result describes the shape of a USF document for editors, linters and
documentation sites. It is generated from the pydantic models, so it never
drifts from what ``usf.schema.validate`` accepts structurally.
"""

from typing import Any

from pydantic import BaseModel, Field

from usf.config import get_config
from usf.models import Document
from usf.validators import SUPPORTED_VERSIONS


def _default_schema_id() -> str:
    return get_config().schema_id


def _default_title() -> str:
    return get_config().schema_title


def _default_draft() -> str:
    return get_config().schema_draft


class JsonSchemaOptions(BaseModel):
    """Metadata written over the generated schema."""

    schema_id: str = Field(default_factory=_default_schema_id)
    title: str = Field(default_factory=_default_title)
    draft: str = Field(default_factory=_default_draft)
    version_enum: list[int] = Field(default_factory=lambda: list(SUPPORTED_VERSIONS))


def to_json_schema(
    schema: type[BaseModel] = Document,
    options: JsonSchemaOptions | None = None,
) -> dict[str, Any]:
    """Build a JSON Schema document for a USF document model.

    Args:
        schema: Model class to describe, ``Document`` unless a draft schema is wanted.
        options: Metadata overrides; defaults come from configuration.

    Returns:
        JSON-serializable dict with ``$schema``, ``$id`` and ``title`` first.
    """
    options = options or JsonSchemaOptions()
    generated = schema.model_json_schema()
    generated.pop("title", None)

    properties = generated.get("properties", {})
    if "version" in properties:
        properties["version"]["enum"] = list(options.version_enum)

    return {
        "$schema": options.draft,
        "$id": options.schema_id,
        "title": options.title,
        **generated,
    }
