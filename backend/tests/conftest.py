"""
In-memory stand-in for the parts of the Supabase client the services use:
PostgREST table queries, one storage bucket and the auth/admin API.
"""
from __future__ import annotations

import itertools
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from moondiary.config import STORAGE_BUCKET
from moondiary.models.diary import DiaryEntry, MoonPhase
from moondiary.services.auth_service import AuthService
from moondiary.services.diary_service import DiaryService
from moondiary.services.media_service import MediaService

PUBLIC_URL_BASE = f"https://demo.supabase.co/storage/v1/object/public/{STORAGE_BUCKET}"


class FakeAPIError(Exception):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters: List = []
        self.ordering: List = []
        self.row_limit: Optional[int] = None

    def select(self, *columns):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] <= value)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def _matches(self, row) -> bool:
        return all(check(row) for check in self.filters)

    def execute(self):
        failure = self.db.failures.pop((self.table, self.action), None)
        if failure is not None:
            raise failure

        rows = self.db.tables.setdefault(self.table, [])
        if self.action == "insert":
            return SimpleNamespace(data=[self.db.insert_row(self.table, self.payload)])

        matched = [row for row in rows if self._matches(row)]
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in matched])
        if self.action == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(row) for row in matched])

        for column, desc in reversed(self.ordering):
            matched.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeBucket:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def upload(self, path, file, file_options=None):
        if self.db.storage_error is not None:
            raise self.db.storage_error
        self.db.objects[path] = {"content": file, "options": file_options}
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"{PUBLIC_URL_BASE}/{path}"

    def remove(self, paths):
        if self.db.storage_error is not None:
            raise self.db.storage_error
        for path in paths:
            self.db.objects.pop(path, None)
            self.db.removed.append(path)
        return []


class FakeStorage:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def from_(self, bucket):
        assert bucket == STORAGE_BUCKET
        return FakeBucket(self.db)


class FakeAdminAuth:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.deleted_users: List[str] = []
        self.password_updates: Dict[str, str] = {}
        self.revoked_tokens: List[str] = []
        self.delete_error: Optional[Exception] = None

    def delete_user(self, user_id, should_soft_delete=False):
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted_users.append(user_id)
        users = self.db.auth.users
        for email in [email for email, account in users.items() if account.id == user_id]:
            del users[email]

    def update_user_by_id(self, user_id, attributes):
        self.password_updates[user_id] = attributes["password"]
        for account in self.db.auth.users.values():
            if account.id == user_id:
                account.password = attributes["password"]

    def sign_out(self, jwt, scope="global"):
        self.revoked_tokens.append(jwt)


class FakeAuth:
    """``session_token`` is the access token this client is currently signed in with."""

    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.users: Dict[str, SimpleNamespace] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.serials = itertools.count(1)
        self.auto_confirm = True
        self.reset_requests: List = []
        self.session_token: Optional[str] = None
        self.admin = FakeAdminAuth(db)

    def add_user(self, email, password, nickname=None, user_id=None):
        account = SimpleNamespace(
            id=user_id or f"user-{len(self.users) + 1}",
            email=email,
            password=password,
            user_metadata={"nickname": nickname} if nickname else {},
        )
        self.users[email] = account
        return account

    def _session(self, account, rotated=False):
        serial = next(self.serials)
        access_token = f"sb-token-{account.id}.{serial}" if rotated else f"sb-token-{account.id}"
        refresh_token = f"sb-refresh-{account.id}.{serial}"
        self.refresh_tokens[refresh_token] = account.id
        self.session_token = access_token
        return SimpleNamespace(access_token=access_token, refresh_token=refresh_token)

    def sign_up(self, credentials):
        if credentials["email"] in self.users:
            raise FakeAPIError("User already registered")
        nickname = credentials.get("options", {}).get("data", {}).get("nickname")
        account = self.add_user(credentials["email"], credentials["password"], nickname)
        session = self._session(account) if self.auto_confirm else None
        return SimpleNamespace(user=account, session=session)

    def sign_in_with_password(self, credentials):
        account = self.users.get(credentials["email"])
        if account is None or account.password != credentials["password"]:
            raise FakeAPIError("Invalid login credentials")
        return SimpleNamespace(user=account, session=self._session(account))

    def refresh_session(self, refresh_token=None):
        # Refresh tokens are single use
        user_id = self.refresh_tokens.pop(refresh_token, None)
        account = next((a for a in self.users.values() if a.id == user_id), None)
        if account is None:
            raise FakeAPIError("Invalid Refresh Token: Refresh Token Not Found")
        return SimpleNamespace(user=account, session=self._session(account, rotated=True))

    def get_user(self, jwt=None):
        for account in self.users.values():
            token = f"sb-token-{account.id}"
            if jwt == token or (jwt or "").startswith(f"{token}."):
                return SimpleNamespace(user=account)
        raise FakeAPIError("invalid JWT")

    def reset_password_for_email(self, email, options=None):
        self.reset_requests.append((email, options))


class FakeSupabase:
    """Tables are lists of dict rows; ``unique`` lists the columns that must be unique together."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.unique = {"diary_entries": ("user_id", "date")}
        self.failures: Dict = {}
        self.objects: Dict[str, Dict] = {}
        self.removed: List[str] = []
        self.storage_error: Optional[Exception] = None
        self.storage = FakeStorage(self)
        self.auth = FakeAuth(self)
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.session_clients: List["FakeSupabase"] = []

    def table(self, name):
        return FakeQuery(self, name)

    def new_session_client(self) -> "FakeSupabase":
        """A separate client over the same project: shared rows, objects and users, its own auth state."""
        client = FakeSupabase()
        client.tables = self.tables
        client.unique = self.unique
        client.failures = self.failures
        client.objects = self.objects
        client.removed = self.removed
        client._ids = self._ids
        client.auth.users = self.auth.users
        client.auth.refresh_tokens = self.auth.refresh_tokens
        client.auth.serials = self.auth.serials
        client.auth.auto_confirm = self.auth.auto_confirm
        client.auth.admin = self.auth.admin
        self.session_clients.append(client)
        return client

    def fail(self, table, action, error):
        """The next ``action`` on ``table`` raises ``error``."""
        self.failures[(table, action)] = error

    def insert_row(self, table, payload):
        row = dict(payload)
        columns = self.unique.get(table)
        if columns:
            for existing in self.tables.setdefault(table, []):
                if all(existing.get(c) == row.get(c) for c in columns):
                    raise FakeAPIError(
                        'duplicate key value violates unique constraint "diary_entries_user_id_date_key"',
                        code="23505",
                    )
        row.setdefault("id", f"{table}-{next(self._ids)}")
        if table == "diary_entries":
            self._clock += timedelta(minutes=1)
            row.setdefault("created_at", self._clock.isoformat())
            row.setdefault("updated_at", row["created_at"])
            row.setdefault("note", None)
            row.setdefault("media_urls", None)
        self.tables.setdefault(table, []).append(row)
        return dict(row)


def make_entry(day, mood=MoonPhase.FULL, entry_id=None, created_at=None, **extra) -> DiaryEntry:
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return DiaryEntry(
        id=entry_id or f"entry-{day.isoformat()}",
        user_id="user-1",
        date=day,
        mood=mood,
        created_at=created_at,
        **extra,
    )


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def media_service(fake_supabase):
    return MediaService(fake_supabase)


@pytest.fixture
def diary_service(fake_supabase, media_service):
    return DiaryService(fake_supabase, media_service)


@pytest.fixture
def auth_service(fake_supabase):
    return AuthService(
        fake_supabase,
        admin_factory=lambda: fake_supabase,
        session_factory=fake_supabase.new_session_client,
    )
