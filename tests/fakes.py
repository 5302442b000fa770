"""In-memory stand-in for the Supabase client: tables, storage bucket and auth."""
import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

from postgrest.exceptions import APIError

UNIQUE_CONSTRAINTS = {
    "groups": [("invite_code",)],
    "group_members": [("group_id", "user_id")],
    "participants": [("ride_id", "user_id")],
    "profiles": [("id",)],
}

TABLE_DEFAULTS = {
    "group_members": {"joined_at": None},
    "notifications": {"read": False},
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeResponse:
    def __init__(self, data: List[dict], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self._op = "select"
        self._columns = "*"
        self._count = None
        self._payload = None
        self._on_conflict = None
        self._filters = []
        self._order = None
        self._limit = None

    # Operations

    def select(self, columns: str = "*", count: Optional[str] = None):
        self._op = "select"
        self._columns = columns
        self._count = count
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload: dict):
        self._op = "update"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def upsert(self, payload, on_conflict: str = ""):
        self._op = "upsert"
        self._payload = payload
        self._on_conflict = [c.strip() for c in on_conflict.split(",") if c.strip()]
        return self

    # Filters

    def eq(self, column: str, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column: str, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column: str, value):
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column: str, value):
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, size: int):
        self._limit = size
        return self

    # Execution

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def _project(self, row: dict) -> dict:
        if self._columns.strip() == "*":
            return copy.deepcopy(row)
        columns = [c.strip() for c in self._columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in columns}

    def execute(self) -> FakeResponse:
        self.db.check_failure(self.table_name, self._op)
        rows = self.db.tables.setdefault(self.table_name, [])

        if self._op == "select":
            matched = [r for r in rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                matched.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
            count = len(matched) if self._count else None
            if self._limit is not None:
                matched = matched[:self._limit]
            return FakeResponse([self._project(r) for r in matched], count)

        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            new_rows = [self.db.with_defaults(self.table_name, p) for p in payload]
            self.db.check_unique(self.table_name, new_rows)
            rows.extend(new_rows)
            return FakeResponse(copy.deepcopy(new_rows))

        if self._op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self._payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self._op == "delete":
            deleted = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(deleted))

        if self._op == "upsert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            result = []
            for item in payload:
                existing = next(
                    (r for r in rows if all(r.get(c) == item.get(c) for c in self._on_conflict)),
                    None,
                )
                if existing is not None:
                    existing.update(copy.deepcopy(item))
                    result.append(copy.deepcopy(existing))
                else:
                    new_row = self.db.with_defaults(self.table_name, item)
                    self.db.check_unique(self.table_name, [new_row])
                    rows.append(new_row)
                    result.append(copy.deepcopy(new_row))
            return FakeResponse(result)

        raise ValueError(f"Unsupported operation {self._op}")


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path: str, file: bytes, file_options: Optional[dict] = None):
        if self.storage.fail_uploads:
            raise RuntimeError("storage unavailable")
        self.storage.files[(self.name, path)] = file
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"{FakeStorage.BASE_URL}/{self.name}/{path}"

    def remove(self, paths: List[str]):
        removed = []
        for path in paths:
            if self.storage.files.pop((self.name, path), None) is not None:
                removed.append({"name": path})
        return removed


class FakeStorage:
    BASE_URL = "https://fake.supabase.co/storage/v1/object/public"

    def __init__(self):
        self.files: Dict[tuple, bytes] = {}
        self.fail_uploads = False

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeAdmin:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth

    def get_user_by_id(self, user_id: str):
        return SimpleNamespace(user=self.auth.user(user_id))


class FakeAuth:
    """Bearer tokens are user ids; INVALID_TOKEN is rejected."""

    INVALID_TOKEN = "invalid-token"

    def __init__(self):
        self.accounts: Dict[str, dict] = {}
        self.admin = FakeAdmin(self)

    def user(self, user_id: str, email: Optional[str] = None, metadata: Optional[dict] = None):
        return SimpleNamespace(id=user_id, email=email or f"{user_id}@example.com", user_metadata=metadata or {})

    def get_user(self, jwt: Optional[str] = None):
        if not jwt or jwt == self.INVALID_TOKEN:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.user(jwt))

    def sign_up(self, credentials: dict):
        email = credentials["email"]
        if email in self.accounts:
            raise RuntimeError("User already registered")
        user_id = str(uuid.uuid4())
        metadata = credentials.get("options", {}).get("data", {})
        self.accounts[email] = {"id": user_id, "password": credentials["password"], "metadata": metadata}
        return SimpleNamespace(user=self.user(user_id, email, metadata), session=None)

    def sign_in_with_password(self, credentials: dict):
        account = self.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        user = self.user(account["id"], credentials["email"], account["metadata"])
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=account["id"]))

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self._failures: Dict[tuple, int] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # Test helpers

    def seed(self, table: str, *rows: dict) -> List[dict]:
        new_rows = [self.with_defaults(table, r) for r in rows]
        self.tables.setdefault(table, []).extend(new_rows)
        return new_rows

    def rows(self, table: str, **filters) -> List[dict]:
        return [
            r for r in self.tables.get(table, [])
            if all(r.get(k) == v for k, v in filters.items())
        ]

    def fail(self, table: str, op: str, times: int = 1) -> None:
        """Make the next `times` executions of op on table raise a database error"""
        self._failures[(table, op)] = times

    def check_failure(self, table: str, op: str) -> None:
        remaining = self._failures.get((table, op), 0)
        if remaining > 0:
            self._failures[(table, op)] = remaining - 1
            raise APIError({"code": "XX000", "message": f"injected {op} failure on {table}"})

    def with_defaults(self, table: str, row: dict) -> dict:
        new_row = copy.deepcopy(row)
        new_row.setdefault("id", str(uuid.uuid4()))
        new_row.setdefault("created_at", _now())
        for key, value in TABLE_DEFAULTS.get(table, {}).items():
            new_row.setdefault(key, value)
        if table == "group_members" and new_row.get("joined_at") is None:
            new_row["joined_at"] = _now()
        return new_row

    def check_unique(self, table: str, new_rows: List[dict]) -> None:
        existing = self.tables.get(table, [])
        for columns in UNIQUE_CONSTRAINTS.get(table, []):
            seen = {tuple(r.get(c) for c in columns) for r in existing}
            for row in new_rows:
                key = tuple(row.get(c) for c in columns)
                if key in seen:
                    raise APIError({
                        "code": "23505",
                        "message": f"duplicate key value violates unique constraint on {table}{columns}",
                    })
                seen.add(key)
