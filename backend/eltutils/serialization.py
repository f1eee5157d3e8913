from enum import Enum
from datetime import datetime, date
from sqlalchemy.inspection import inspect


def to_camel(key):
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def to_dict(model_instance, include_relationships=False, include_hidden=False):
    """Serialize a model row into the camelCase JSON shape the dashboard client expects."""
    output = {}
    mapper = inspect(model_instance.__class__)

    for column in mapper.columns:
        key = column.key
        value = getattr(model_instance, key)

        if not include_hidden and key in ["password_hash"]:
            continue

        if isinstance(value, Enum):
            output[to_camel(key)] = value.value
        elif isinstance(value, (datetime, date)):
            output[to_camel(key)] = value.isoformat()
        else:
            output[to_camel(key)] = value

    if include_relationships:
        for rel in mapper.relationships:
            rel_value = getattr(model_instance, rel.key)
            if rel_value is None:
                output[to_camel(rel.key)] = None
            elif isinstance(rel_value, list):
                output[to_camel(rel.key)] = [to_dict(item) for item in rel_value]
            else:
                output[to_camel(rel.key)] = to_dict(rel_value)

    return output
