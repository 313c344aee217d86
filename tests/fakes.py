"""In-process fakes of the Qdrant REST API and the Ollama embedding API.

Both are plain request handlers meant to be wrapped in httpx.MockTransport.
"""

import hashlib
import json
import math
import re

import httpx

from shared.helper.text_splitter import content_hash, make_chunk_id
from shared.models.datastore import Datastore
from shared.models.document import Chunk, ChunkMetadata

VECTOR_SIZE = 32
QDRANT_URL = "http://qdrant.test:6333"
OLLAMA_URL = "http://ollama.test:11434"

_COLLECTION_PATH = re.compile(r"^/collections/(?P<name>[^/]+)(?P<rest>/.*)?$")


def _json(payload: dict, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def _not_found(name: str) -> httpx.Response:
    return _json({"status": {"error": f"Not found: Collection `{name}` doesn't exist!"}}, 404)


def _matches(payload: dict, condition: dict) -> bool:
    value = payload.get(condition["key"])
    values = value if isinstance(value, list) else [value]
    match = condition["match"]
    if "value" in match:
        return match["value"] in values
    return any(candidate in values for candidate in match["any"])


def _passes(payload: dict, filter_: dict | None) -> bool:
    if not filter_:
        return True
    return all(_matches(payload, condition) for condition in filter_.get("must", []))


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeQdrant:
    """Minimal stateful Qdrant: collections, indexes, points, filters and cosine search."""

    def __init__(self) -> None:
        self.collections: dict[str, dict] = {}
        self.requests: list[tuple[str, str]] = []
        self.upsert_batches: list[int] = []
        self.fail_upsert_at: int | None = None  # 1-based upsert call answered with 500
        self.fail_create_with: int | None = None
        self.unreachable = False
        self.last_search_body: dict | None = None

    ################ INSPECTION ##################
    def points(self, collection: str) -> dict[str, dict]:
        return self.collections[collection]["points"]

    def points_of(self, collection: str, datasource_id: str) -> list[dict]:
        return [p for p in self.points(collection).values() if p["payload"]["datasource_id"] == datasource_id]

    def count_requests(self, method: str, suffix: str) -> int:
        return sum(1 for m, path in self.requests if m == method and path.endswith(suffix))

    ################ HANDLER ##################
    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        path = request.url.path
        self.requests.append((request.method, path))
        if path == "/healthz":
            return httpx.Response(200, text="healthz check passed")

        match = _COLLECTION_PATH.match(path)
        if not match:
            return _json({"status": {"error": "unknown route"}}, 404)
        name, rest = match.group("name"), match.group("rest") or ""
        body = json.loads(request.content) if request.content else {}
        collection = self.collections.get(name)

        if rest == "" and request.method == "PUT":
            return self._create_collection(name, body)
        if rest == "/exists":
            return _json({"result": {"exists": collection is not None}, "status": "ok"})
        if collection is None:
            return _not_found(name)
        if rest == "" and request.method == "DELETE":
            del self.collections[name]
            return _json({"result": True, "status": "ok"})
        if rest == "/index":
            collection["indexes"].append(body)
            return _json({"result": {"status": "completed"}, "status": "ok"})
        if rest == "/points" and request.method == "PUT":
            return self._upsert(collection, body)
        if rest == "/points/delete":
            points = collection["points"]
            for point_id in [pid for pid, p in points.items() if _passes(p["payload"], body.get("filter"))]:
                del points[point_id]
            return _json({"result": {"status": "completed"}, "status": "ok"})
        if rest == "/points/search":
            return self._search(collection, body)
        if rest == "/points/count":
            count = sum(1 for p in collection["points"].values() if _passes(p["payload"], body.get("filter")))
            return _json({"result": {"count": count}, "status": "ok"})
        if rest == "/points/scroll":
            hits = [p for p in collection["points"].values() if _passes(p["payload"], body.get("filter"))]
            hits = hits[: body.get("limit") or 10]
            fields = body.get("with_payload")
            result = [
                {"id": p["id"], "payload": {k: v for k, v in p["payload"].items() if not isinstance(fields, list) or k in fields}}
                for p in hits
            ]
            return _json({"result": {"points": result, "next_page_offset": None}, "status": "ok"})
        return _json({"status": {"error": "unknown route"}}, 404)

    def _create_collection(self, name: str, body: dict) -> httpx.Response:
        if self.fail_create_with:
            return _json({"status": {"error": "create rejected"}}, self.fail_create_with)
        if name in self.collections:
            return _json({"status": {"error": f"Collection `{name}` already exists!"}}, 409)
        self.collections[name] = {"config": body, "indexes": [], "points": {}}
        return _json({"result": True, "status": "ok"})

    def _upsert(self, collection: dict, body: dict) -> httpx.Response:
        self.upsert_batches.append(len(body["points"]))
        if self.fail_upsert_at == len(self.upsert_batches):
            return _json({"status": {"error": "service overloaded"}}, 500)
        size = collection["config"]["vectors"]["size"]
        for point in body["points"]:
            if len(point["vector"]) != size:
                return _json({"status": {"error": "Wrong input: Vector dimension error"}}, 400)
        for point in body["points"]:
            collection["points"][point["id"]] = point
        return _json({"result": {"status": "completed"}, "status": "ok"})

    def _search(self, collection: dict, body: dict) -> httpx.Response:
        self.last_search_body = body
        hits = []
        for point in collection["points"].values():
            if not _passes(point["payload"], body.get("filter")):
                continue
            hit = {"id": point["id"], "score": _cosine(body["vector"], point["vector"]), "version": 0}
            if body.get("with_payload"):
                hit["payload"] = point["payload"]
            if body.get("with_vector"):
                hit["vector"] = point["vector"]
            hits.append(hit)
        hits.sort(key=lambda h: h["score"], reverse=True)
        return _json({"result": hits[: body["limit"]], "status": "ok", "time": 0.001})


def embed_text(text: str) -> list[float]:
    """Deterministic bag-of-words vector: identical texts get identical vectors."""
    vector = [0.0] * VECTOR_SIZE
    for word in re.findall(r"\w+", text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % VECTOR_SIZE
        vector[bucket] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeOllama:
    """Ollama /api/embed and /api/show backed by embed_text()."""

    def __init__(self) -> None:
        self.embed_calls: list[list[str]] = []
        self.show_calls = 0
        self.fail_with: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        if request.url.path == "/api/show":
            self.show_calls += 1
            return _json({"model_info": {"general.architecture": "nomic-bert", "nomic-bert.embedding_length": VECTOR_SIZE}})
        if request.url.path == "/api/embed":
            if self.fail_with:
                return _json({"error": "model not loaded"}, self.fail_with)
            self.embed_calls.append(list(body["input"]))
            return _json({"model": body["model"], "embeddings": [embed_text(text) for text in body["input"]]})
        return httpx.Response(200, text="Ollama is running")


def make_chunks(datasource_id: str, texts: list[str], tags: list[str] | None = None, source: str | None = None) -> list[Chunk]:
    datasource_hash = content_hash("".join(texts))
    return [
        Chunk(
            text=text,
            metadata=ChunkMetadata(
                chunk_id=make_chunk_id(datasource_id, offset),
                datasource_id=datasource_id,
                source=source or f"https://example.com/{datasource_id}",
                tags=tags or [],
                chunk_hash=content_hash(text),
                datasource_hash=datasource_hash,
                chunk_offset=offset,
            ),
        )
        for offset, text in enumerate(texts)
    ]


def make_datastore(datastore_id: str = "datastore-1", **config) -> Datastore:
    return Datastore(id=datastore_id, type="qdrant", config={"base_url": QDRANT_URL, **config}, owner_id="user-1")
