import enum
from sqlalchemy import Boolean, Integer, String, Text, Enum, Date, DateTime, Float
from eltdash.models import School
from eltutils.serialization import to_camel


def _options(rows, label_attr="name"):
    return [{"label": getattr(row, label_attr), "value": row.id} for row in rows]


def generate_schema_from_model(model, model_name, current_user=None):
    """Describe a model's editable columns so the client can render a form for it."""
    exclude_fields = {"id", "created_at", "updated_at", "upload_date", "recorded_by", "created_by"}
    schema = []

    for column in model.__table__.columns:
        name = column.name
        if name in exclude_fields:
            continue

        field_schema = {
            "name": to_camel(name),
            "label": name.replace("_", " ").title(),
            "required": not column.nullable and column.default is None,
        }

        if isinstance(column.type, Enum):
            enum_class = column.type.enum_class
            field_schema["type"] = "select"
            if enum_class and issubclass(enum_class, enum.Enum):
                field_schema["options"] = [{"label": e.value, "value": e.value} for e in enum_class]
            else:
                field_schema["options"] = list(column.type.enums)

        elif isinstance(column.type, Text):
            field_schema["type"] = "textarea"

        elif isinstance(column.type, String):
            if name.endswith("_url"):
                field_schema["type"] = "file"
                if "image" in name:
                    field_schema["accept"] = "image/*"
                else:
                    field_schema["accept"] = ".pdf,.doc,.docx"
            elif "email" in name:
                field_schema["type"] = "email"
            elif "phone" in name:
                field_schema["type"] = "tel"
            else:
                field_schema["type"] = "text"

        elif isinstance(column.type, Integer):
            if name == "school_id":
                field_schema["type"] = "select"
                schools = School.query.order_by(School.name)
                if current_user is not None and current_user.school_id and current_user.role.name in ("school_admin", "instructor"):
                    schools = schools.filter(School.id == current_user.school_id)
                field_schema["options"] = _options(schools.all())
            else:
                field_schema["type"] = "number"

        elif isinstance(column.type, Float):
            field_schema["type"] = "number"

        elif isinstance(column.type, Boolean):
            field_schema["type"] = "checkbox"

        elif isinstance(column.type, DateTime):
            field_schema["type"] = "datetime"

        elif isinstance(column.type, Date):
            field_schema["type"] = "date"

        else:
            field_schema["type"] = "text"

        schema.append(field_schema)

    return {
        "model": model_name,
        "fields": schema,
    }
