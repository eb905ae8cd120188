import json
import threading

import pytest

from toolflow.protocol.errors import EmbeddingDimensionError, StorageFault
from toolflow.retrieval.vector_store import JsonVectorStore
from toolflow.types import Document


def _doc(text: str, embedding: list[float], provider: str = "openai", doc_id: str = "doc-1") -> Document:
    return Document(id=doc_id, text=text, embedding=embedding, provider=provider)


def test_document_is_found_with_its_own_embedding(store: JsonVectorStore) -> None:
    store.add(_doc("alpha", [0.3, 0.4, 0.5]))
    store.add(_doc("beta", [-1.0, 0.2, 0.0]))

    hits = store.query([0.3, 0.4, 0.5], "openai", 2)

    assert hits[0].document.text == "alpha"
    assert hits[0].score == pytest.approx(1.0)
    assert hits[0].rank == 1
    assert len(hits) == 2


def test_similarity_is_normalized_not_raw_dot_product(store: JsonVectorStore) -> None:
    store.add(_doc("aligned", [1.0, 0.0]))
    store.add(_doc("large", [10.0, 10.0]))

    hits = store.query([1.0, 0.0], "openai", 2)

    assert [hit.document.text for hit in hits] == ["aligned", "large"]
    assert hits[1].score == pytest.approx(2 ** -0.5)


def test_zero_k_and_empty_store_return_nothing(tmp_path) -> None:
    store = JsonVectorStore(tmp_path / "missing" / "store.json")

    assert store.query([1.0, 0.0], "openai", 3) == []
    store.add(_doc("alpha", [1.0, 0.0]))
    assert store.query([1.0, 0.0], "openai", 0) == []
    assert store.query([1.0, 0.0], "openai", -2) == []


def test_absent_store_file_is_not_created_by_reads(tmp_path) -> None:
    path = tmp_path / "store.json"
    store = JsonVectorStore(path)

    assert len(store) == 0
    assert not path.exists()


def test_query_never_crosses_providers(store: JsonVectorStore) -> None:
    store.add(_doc("openai doc", [1.0, 0.0], provider="openai"))
    store.add(_doc("ollama doc", [1.0, 0.0, 0.0], provider="ollama"))

    openai_hits = store.query([1.0, 0.0], "openai", 10)
    ollama_hits = store.query([1.0, 0.0, 0.0], "ollama", 10)

    assert [hit.document.provider for hit in openai_hits] == ["openai"]
    assert [hit.document.provider for hit in ollama_hits] == ["ollama"]


def test_ties_keep_store_order(store: JsonVectorStore) -> None:
    for name in ("first", "second", "third"):
        store.add(_doc(name, [0.0, 1.0]))

    hits = store.query([0.0, 2.0], "openai", 3)

    assert [hit.document.text for hit in hits] == ["first", "second", "third"]


def test_writes_persist_across_instances(tmp_path) -> None:
    path = tmp_path / "store.json"
    JsonVectorStore(path).add_many([_doc("a", [1.0, 0.0]), _doc("b", [0.0, 1.0])])

    reloaded = JsonVectorStore(path)

    assert [doc.text for doc in reloaded.all()] == ["a", "b"]
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload[0] == {"id": "doc-1", "text": "a", "embedding": [1.0, 0.0], "provider": "openai"}


def test_malformed_records_are_skipped(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text(
        json.dumps(
            [
                {"id": "ok", "text": "good", "embedding": [1.0], "provider": "openai"},
                {"id": "bad", "text": "no provider", "embedding": [1.0]},
                {"id": "bad", "text": "unknown provider", "embedding": [1.0], "provider": "other"},
                "not a record",
            ]
        ),
        encoding="utf-8",
    )

    assert [doc.id for doc in JsonVectorStore(path).all()] == ["ok"]


@pytest.mark.parametrize("content", ["{not json", '{"docs": []}'])
def test_unreadable_store_raises_storage_fault(tmp_path, content: str) -> None:
    path = tmp_path / "store.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StorageFault):
        JsonVectorStore(path).query([1.0], "openai", 1)


def test_dimension_mismatch_is_rejected_without_writing(store: JsonVectorStore) -> None:
    store.add(_doc("alpha", [1.0, 0.0, 0.0]))

    with pytest.raises(EmbeddingDimensionError):
        store.add_many([_doc("ok", [0.0, 1.0, 0.0]), _doc("short", [1.0, 0.0])])

    assert [doc.text for doc in JsonVectorStore(store.path).all()] == ["alpha"]
    assert store.dimension("openai") == 3
    assert store.dimension("ollama") is None


def test_query_with_wrong_dimension_is_rejected(store: JsonVectorStore) -> None:
    store.add(_doc("alpha", [1.0, 0.0, 0.0]))

    with pytest.raises(EmbeddingDimensionError):
        store.query([1.0, 0.0], "openai", 1)


def test_concurrent_adds_do_not_lose_documents(tmp_path) -> None:
    path = tmp_path / "store.json"
    store = JsonVectorStore(path)

    threads = [
        threading.Thread(target=store.add, args=(_doc(f"doc {i}", [float(i), 1.0], doc_id=f"d{i}"),))
        for i in range(12)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 12
    assert len(JsonVectorStore(path)) == 12
