"""PostgreSQL process store: processes table plus a child documents table."""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Sequence

from prime_crm.exceptions import ProcessNotFoundError, StoreError
from prime_crm.models.enums import UserRole
from prime_crm.models.process import Process, extra_fields_to_list, utcnow
from prime_crm.sinks.serialization import process_from_dict, serialize_value, to_dict
from prime_crm.store.base import ProcessRepository

logger = logging.getLogger(__name__)

PROCESS_COLUMNS = (
    "id",
    "client_name",
    "client_id",
    "client_email",
    "client_cpf",
    "attendant_id",
    "type",
    "value",
    "status",
    "extra_fields",
    "has_unread",
    "created_at",
    "updated_at",
)

DOCUMENT_COLUMNS = (
    "process_id",
    "id",
    "name",
    "status",
    "url",
    "uploaded_at",
    "feedback",
    "is_extra",
    "position",
)

SCHEMA_DDL = (
    """
    CREATE TABLE IF NOT EXISTS processes (
        id TEXT PRIMARY KEY,
        client_name TEXT NOT NULL,
        client_id TEXT,
        client_email TEXT,
        client_cpf TEXT,
        attendant_id TEXT,
        type TEXT NOT NULL,
        value NUMERIC(15, 2) NOT NULL CHECK (value >= 0),
        status TEXT NOT NULL,
        extra_fields JSONB NOT NULL DEFAULT '[]'::jsonb,
        has_unread BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS process_documents (
        process_id TEXT NOT NULL REFERENCES processes(id) ON DELETE CASCADE,
        id TEXT NOT NULL,
        name TEXT NOT NULL,
        status TEXT NOT NULL,
        url TEXT,
        uploaded_at TIMESTAMPTZ,
        feedback TEXT,
        is_extra BOOLEAN NOT NULL DEFAULT FALSE,
        position INTEGER NOT NULL,
        PRIMARY KEY (process_id, id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_processes_client_id ON processes (client_id)",
    "CREATE INDEX IF NOT EXISTS idx_processes_attendant_id ON processes (attendant_id)",
)

_SELECT_PROCESSES = f"SELECT {', '.join(PROCESS_COLUMNS)} FROM processes"  # noqa: S608
_SELECT_DOCUMENTS = (
    f"SELECT {', '.join(DOCUMENT_COLUMNS)} FROM process_documents "  # noqa: S608
    "WHERE process_id = ANY(%s) ORDER BY process_id, position"
)
_INSERT_PROCESS = (
    f"INSERT INTO processes ({', '.join(PROCESS_COLUMNS)}) "  # noqa: S608
    f"VALUES ({', '.join('%s::jsonb' if c == 'extra_fields' else '%s' for c in PROCESS_COLUMNS)})"
)
_UPDATE_PROCESS = (
    "UPDATE processes SET "
    + ", ".join(
        f"{c} = %s::jsonb" if c == "extra_fields" else f"{c} = %s"
        for c in PROCESS_COLUMNS
        if c != "id"
    )
    + " WHERE id = %s"
)
_INSERT_DOCUMENT = (
    f"INSERT INTO process_documents ({', '.join(DOCUMENT_COLUMNS)}) "  # noqa: S608
    f"VALUES ({', '.join(['%s'] * len(DOCUMENT_COLUMNS))})"
)


def _process_params(process: Process) -> dict[str, Any]:
    """Column values for a process row.

    Extra fields are stored as a JSON array of ``{label, value}`` entries
    because JSONB objects do not keep key order.
    """
    return {
        "id": process.id,
        "client_name": process.client_name,
        "client_id": process.client_id,
        "client_email": process.client_email,
        "client_cpf": process.client_cpf,
        "attendant_id": process.attendant_id,
        "type": process.type,
        "value": process.value,
        "status": process.status.value,
        "extra_fields": json.dumps(
            [to_dict(item) for item in extra_fields_to_list(process.extra_fields)],
            ensure_ascii=False,
        ),
        "has_unread": process.has_unread,
        "created_at": process.created_at,
        "updated_at": process.updated_at,
    }


def _document_rows(process: Process) -> list[tuple]:
    return [
        (
            process.id,
            doc.id,
            doc.name,
            serialize_value(doc.status),
            doc.url,
            doc.uploaded_at,
            doc.feedback,
            doc.is_extra,
            position,
        )
        for position, doc in enumerate(process.documents)
    ]


class PostgresProcessStore(ProcessRepository):
    """Relational store backed by psycopg."""

    def __init__(self, connection_string: str, clock: Callable[[], datetime] = utcnow) -> None:
        """Initialize PostgreSQL store.

        Parameters
        ----------
        connection_string : str
            PostgreSQL connection URL.
        clock : Callable[[], datetime]
            Source of ``updated_at`` timestamps.
        """
        import psycopg

        super().__init__(clock)
        self.conn = psycopg.connect(connection_string)

    def ensure_schema(self) -> None:
        """Create the tables and indexes if they do not exist."""
        with self.conn.cursor() as cur:
            for statement in SCHEMA_DDL:
                cur.execute(statement)
        self.conn.commit()
        logger.info("PostgreSQL schema ready")

    def get_process(self, process_id: str) -> Process:
        processes = self._query(f"{_SELECT_PROCESSES} WHERE id = %s", (process_id,))
        if not processes:
            raise ProcessNotFoundError(f"Process {process_id} not found")
        return processes[0]

    def get_processes(
        self,
        role: UserRole | str,
        user_id: str,
        user_email: str | None = None,
    ) -> list[Process]:
        role = UserRole(role)
        if role == UserRole.ATTENDANT:
            where, params = " WHERE attendant_id = %s", (user_id,)
        elif role == UserRole.CLIENT:
            where = (
                " WHERE client_id = %s"
                " OR (client_id IS NULL AND lower(client_email) = lower(%s))"
            )
            params = (user_id, user_email or "")
        else:
            where, params = "", ()
        return self._query(f"{_SELECT_PROCESSES}{where} ORDER BY updated_at DESC", params)

    def _list_all(self) -> Iterable[Process]:
        return self._query(_SELECT_PROCESSES, ())

    def _insert(self, process: Process) -> None:
        params = _process_params(process)
        self._write(
            process.id,
            lambda cur: cur.execute(_INSERT_PROCESS, tuple(params[c] for c in PROCESS_COLUMNS)),
            _document_rows(process),
        )

    def _save(self, process: Process) -> None:
        params = _process_params(process)
        values = tuple(params[c] for c in PROCESS_COLUMNS if c != "id") + (process.id,)

        def update(cur: Any) -> None:
            cur.execute(_UPDATE_PROCESS, values)
            if cur.rowcount == 0:
                raise ProcessNotFoundError(f"Process {process.id} not found")
            cur.execute("DELETE FROM process_documents WHERE process_id = %s", (process.id,))

        self._write(process.id, update, _document_rows(process))

    def close(self) -> None:
        """Close connection."""
        self.conn.close()

    def _write(self, process_id: str, statement: Callable[[Any], None], document_rows: list[tuple]) -> None:
        try:
            with self.conn.cursor() as cur:
                statement(cur)
                if document_rows:
                    cur.executemany(_INSERT_DOCUMENT, document_rows)
            self.conn.commit()
        except ProcessNotFoundError:
            self.conn.rollback()
            raise
        except Exception as e:
            self.conn.rollback()
            raise StoreError(f"Failed to write process {process_id}: {e}") from e

    def _query(self, sql: str, params: Sequence[Any]) -> list[Process]:
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
                rows = [dict(zip(PROCESS_COLUMNS, row)) for row in cur.fetchall()]
                if not rows:
                    return []
                cur.execute(_SELECT_DOCUMENTS, ([row["id"] for row in rows],))
                doc_rows = [dict(zip(DOCUMENT_COLUMNS, row)) for row in cur.fetchall()]
        except Exception as e:
            self.conn.rollback()
            raise StoreError(f"Query failed: {e}") from e

        documents: dict[str, list[dict]] = {}
        for doc in doc_rows:
            documents.setdefault(doc["process_id"], []).append(doc)
        for row in rows:
            row["documents"] = documents.get(row["id"], [])
        return [process_from_dict(row) for row in rows]
