import copy
import io
import json

import pytest
from PIL import Image as PILImage

from database import LocalStore
from rest_store import RestStore

SKIPPED_PARAMS = {"select", "order", "limit", "on_conflict"}


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "minilok_test.db")


@pytest.fixture
def local_store(db_path):
    return LocalStore(db_path)


# ----------------------------- #
# 🌐 PostgREST tiruan untuk RestStore
# ----------------------------- #
class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        if text is not None:
            self.content = text.encode()
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode()
        self.text = self.content.decode()

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.content)


class FakePostgrest:
    """Subset PostgREST di memori: filter eq., join activities!inner, upsert on_conflict."""

    def __init__(self):
        self.headers = {}
        self.tables = {"activities": [], "achievements": [], "pdca": []}
        self.calls = []
        self.fail_with = None
        self.repeat_reads = 1

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        table = url.rsplit("/", 1)[-1]
        params = dict(params or {})
        self.calls.append({
            "method": method, "table": table, "params": params, "json": json,
            "headers": dict(headers or {}), "timeout": timeout,
        })
        if isinstance(self.fail_with, Exception):
            raise self.fail_with
        if self.fail_with is not None:
            return self.fail_with

        handler = getattr(self, f"_{method.lower()}")
        return handler(table, params, json)

    def _matches(self, row, params):
        for column, condition in params.items():
            if column in SKIPPED_PARAMS or "." in column:
                continue
            if str(row.get(column)) != condition[len("eq."):]:
                return False
        return True

    def _embed(self, row, params):
        select = params.get("select", "*")
        if "activities!inner(" not in select:
            return row
        parent = next((a for a in self.tables["activities"] if a["id"] == row["activity_id"]), None)
        if parent is None:
            return None
        cluster_filter = params.get("activities.cluster_id")
        if cluster_filter and parent["cluster_id"] != cluster_filter[len("eq."):]:
            return None
        columns = select.split("activities!inner(")[1].rstrip(")").split(",")
        return dict(row, activities={c: parent[c] for c in columns})

    def _get(self, table, params, payload):
        rows = []
        for row in self.tables[table]:
            if not self._matches(row, params):
                continue
            embedded = self._embed(copy.deepcopy(row), params)
            if embedded is not None:
                rows.extend([embedded] * self.repeat_reads)
        if "limit" in params:
            rows = rows[: int(params["limit"])]
        return FakeResponse(200, rows)

    def _post(self, table, params, payload):
        if table != "activities":
            if not any(a["id"] == payload["activity_id"] for a in self.tables["activities"]):
                return FakeResponse(409, {"message": "insert or update violates foreign key constraint"})
        conflict = params.get("on_conflict")
        if conflict:
            columns = conflict.split(",")
            for row in self.tables[table]:
                if all(row[c] == payload[c] for c in columns):
                    row.update(payload)
                    return FakeResponse(201, [copy.deepcopy(row)])
        self.tables[table].append(copy.deepcopy(payload))
        return FakeResponse(201, [copy.deepcopy(payload)])

    def _patch(self, table, params, payload):
        updated = []
        for row in self.tables[table]:
            if self._matches(row, params):
                row.update(payload)
                updated.append(copy.deepcopy(row))
        return FakeResponse(200, updated)

    def _delete(self, table, params, payload):
        self.tables[table] = [r for r in self.tables[table] if not self._matches(r, params)]
        return FakeResponse(204)


@pytest.fixture
def fake_session():
    return FakePostgrest()


@pytest.fixture
def rest_store(fake_session):
    return RestStore("https://contoh.supabase.co/", "kunci-rahasia", timeout=5, session=fake_session)


@pytest.fixture(params=["local", "rest"])
def any_store(request, db_path, fake_session):
    if request.param == "local":
        return LocalStore(db_path)
    return RestStore("https://contoh.supabase.co", "kunci-rahasia", session=fake_session)


# ----------------------------- #
# 🖼️ Rasterizer palsu untuk ekspor PDF
# ----------------------------- #
def _tiny_png():
    buffer = io.BytesIO()
    PILImage.new("RGB", (8, 6), color=(13, 148, 136)).save(buffer, format="PNG")
    return buffer.getvalue()


class RecordingRenderer:
    def __init__(self):
        self.figures = []
        self.png = _tiny_png()

    def __call__(self, fig, width, height):
        self.figures.append((fig, width, height))
        return self.png


@pytest.fixture
def renderer():
    return RecordingRenderer()
