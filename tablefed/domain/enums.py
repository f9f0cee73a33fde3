"""Domain enumerations for tablefed.

Enums represent fixed sets of domain values (field types, table status,
publication states, mapping operation kinds).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class FieldType(_ValuesMixin, str, Enum):
    """Declared type of a table field."""

    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    ARRAY = "Array"

    @classmethod
    def parse(cls, value: "str | FieldType") -> "FieldType":
        """Parse a type name case-insensitively ('string', 'Int', ...). Raises ValueError."""
        if isinstance(value, FieldType):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Invalid field type: {value!r}; expected one of {cls.values()}")

    @property
    def graphql_type(self) -> str:
        """GraphQL type used for this field in generated documents."""
        return "[String]" if self is FieldType.ARRAY else self.value

    @property
    def is_key_capable(self) -> bool:
        """Whether the type can be a partition key or index key."""
        return self in (FieldType.STRING, FieldType.INT, FieldType.FLOAT)

    @property
    def attribute_type(self) -> str:
        """Key attribute type in the physical store ('N' numeric, 'S' string)."""
        return "N" if self in (FieldType.INT, FieldType.FLOAT) else "S"


class TableStatus(_ValuesMixin, str, Enum):
    """Table lifecycle status; decommissioning records the delete intent."""

    ACTIVE = "active"
    DECOMMISSIONING = "decommissioning"


class PublicationState(_ValuesMixin, str, Enum):
    """Schema publication state machine."""

    DRAFTED = "drafted"
    SUBMITTED = "submitted"
    ACTIVE = "active"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (
            PublicationState.ACTIVE,
            PublicationState.FAILED,
            PublicationState.TIMED_OUT,
        )


class OperationKind(_ValuesMixin, str, Enum):
    """Generated GraphQL operations that get a field-mapping resolver."""

    GET = "get"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH = "publish"

    @property
    def parent_type(self) -> str:
        """GraphQL container type holding the operation's field."""
        return "Query" if self in (OperationKind.GET, OperationKind.LIST) else "Mutation"

    def field_name(self, type_name: str) -> str:
        """Field name of this operation for a generated type (e.g. getTab12_orders)."""
        return f"{self.value}{type_name}"

    @classmethod
    def storage_backed(cls) -> list["OperationKind"]:
        """Operations resolved against the table's own data source."""
        return [kind for kind in cls if kind is not OperationKind.PUBLISH]
