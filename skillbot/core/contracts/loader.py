import yaml
from jsonschema import validate, ValidationError
from pathlib import Path


SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"


class ContractViolation(Exception):
    pass


class ContextCorruptionError(ContractViolation):
    """Raised when a persisted conversation context does not match its schema."""
    pass


def load_schema(name: str) -> dict:
    schema_path = SCHEMAS_DIR / name
    if not schema_path.exists():
        raise ContractViolation(f"Missing required contract schema: {schema_path}")

    with open(schema_path, "r") as f:
        return yaml.safe_load(f)


def validate_context_document(document: dict) -> None:
    schema = load_schema("context.schema.yaml")
    try:
        validate(instance=document, schema=schema)
    except ValidationError as e:
        raise ContextCorruptionError(f"Context validation failed: {e.message}")


def validate_change_record(record: dict) -> None:
    schema = load_schema("param-change.schema.yaml")
    try:
        validate(instance=record, schema=schema)
    except ValidationError as e:
        raise ContractViolation(f"Parameter change record validation failed: {e.message}")
