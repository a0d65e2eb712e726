#!/usr/bin/env python3

import pytest

from feindexer.config import IndexerSettings
from feindexer.documents import Document
from feindexer.indexers import INDEXERS
from feindexer.indexers.base import Counter, Indexer


class _Toy(Indexer):
    name = "toy"
    core = "toy"
    chunk_size = 10
    batch_size = 2

    def index(self):
        for rng in self.chunks("thing", "thing_key"):
            for row in self.db.rows("select thing_key from thing where x", **rng.params):
                doc = Document()
                doc.add_field("thingKey", row["thing_key"])
                self.add_doc(doc)


def test_counter():
    c = Counter(start=1)
    assert c.next() == 1
    assert c.next() == 2
    assert c.value == 3


def test_class_defaults_survive_empty_settings(fake_db, client):
    job = _Toy(fake_db, client, IndexerSettings())
    assert (job.chunk_size, job.batch_size) == (10, 2)


def test_configured_sizes_override_defaults(fake_db, client):
    job = _Toy(fake_db, client, IndexerSettings(chunk_size=3, batch_size=50))
    assert (job.chunk_size, job.batch_size) == (3, 50)
    assert job.writer.batch_size == 50


def test_run_deletes_first_and_commits_once(fake_db, client):
    fake_db.with_bounds("thing", "thing_key", 1, 25)
    fake_db.on("from thing", lambda p: [{"thing_key": k} for k in range(p["start"], min(p["end"], 26))])

    stats = _Toy(fake_db, client).run()

    assert client.calls[0] == "delete"
    assert client.calls[-1] == "commit"
    assert client.commits == 1
    assert [d["thingKey"] for d in client.docs] == list(range(1, 26))
    assert stats["documents"] == 25
    # three chunks: [1, 11) [11, 21) [21, 31)
    assert [q[1] for q in fake_db.queries] == [
        {"start": 1, "end": 11}, {"start": 11, "end": 21}, {"start": 21, "end": 31}]


def test_empty_table_still_clears_the_core(fake_db, client):
    _Toy(fake_db, client).run()
    assert client.calls == ["delete", "commit"]
    assert client.docs == []


def test_failure_skips_the_commit(fake_db, client):
    class Broken(_Toy):
        def index(self):
            raise RuntimeError("source went away")

    with pytest.raises(RuntimeError):
        Broken(fake_db, client).run()
    assert client.commits == 0


def test_registry_order_and_cores():
    assert list(INDEXERS) == [
        "reference", "allele", "sequence", "probe",
        "vocabBrowser", "recombinaseMatrix", "qsOtherBucket",
    ]
    for name, cls in INDEXERS.items():
        assert cls.name == name
        assert cls.core
