from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import TypeAlias

    from psycopg import Connection

    PsycopgConnection: TypeAlias = Connection[Any]
else:
    from psycopg import Connection

    PsycopgConnection = Connection

__all__ = ("PsycopgConnection",)
