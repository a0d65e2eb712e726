#!/usr/bin/env python3

from feindexer.indexers.qs_other_bucket import (PRIMARY_ID_WEIGHT, SECONDARY_ID_WEIGHT, QSObject,
                                                QSOtherBucketIndexer, homology_class_description)


def _terms(client):
    return [(d["searchTermExact"], d["searchTermWeight"], d["sequenceNum"]) for d in client.docs]


def test_homology_class_description():
    counts = {"human": 1, "mouse": 2, "rat": 0, "zebrafish": 3}
    assert homology_class_description(counts, "Pax6, Pax6b") == \
        "Class with 1 human, 2 mouse (Pax6, Pax6b), 3 zebrafish"
    assert homology_class_description({"human": 1}) == "Class with 1 human"


def test_shared_object_fields():
    doc = QSObject("MGI:1", "name", "Genotype", detail_uri="/accession/MGI:1").new_document().to_dict()
    assert doc == {"primaryID": "MGI:1", "name": "name", "objectType": "Genotype",
                   "detailUri": "/accession/MGI:1"}


def test_sequences_primary_then_secondary(fake_db, client):
    base = {"primary_ldb": "Sequence DB", "sequence_type": "DNA", "description": "Pax6 cDNA",
            "by_sequence_type": 1}
    fake_db.on("from sequence s inner join sequence_sequence_num n", [
        dict(base, primary_id="AB1", other_id="AB1", other_ldb="Sequence DB"),
        dict(base, primary_id="AB1", other_id="NM_1", other_ldb="RefSeq"),
        dict(base, primary_id="AB2", other_id=None, other_ldb=None),
    ])
    job = QSOtherBucketIndexer(fake_db, client)
    job.index_sequences()
    job.writer.finish()

    assert _terms(client) == [
        ("AB1", PRIMARY_ID_WEIGHT, 0),
        ("NM_1", SECONDARY_ID_WEIGHT, 1),
        ("AB2", PRIMARY_ID_WEIGHT, 1),
    ]
    assert [d["uniqueKey"] for d in client.docs] == [0, 1, 2]
    first = client.docs[0]
    assert first["searchTermType"] == "GenBank, EMBL, DDBJ ID"
    assert first["detailUri"] == "/sequence/AB1"
    assert first["objectSubtype"] == "DNA"
    assert client.docs[1]["primaryID"] == "AB1"


def test_homology_clusters(fake_db, client):
    fake_db.on("from homology_cluster hc, homology_cluster_organism hco",
               [{"cluster_key": 9, "symbol": "Pax6"}])
    fake_db.on("select hc.cluster_key, m.marker_subtype as term",
               [{"cluster_key": 9, "term": "protein coding gene"}])
    fake_db.on("select hc.cluster_key, a.ancestor_term as term", [{"cluster_key": 9, "term": "gene"}])
    counts = {"mouse_marker_count": 1, "human_marker_count": 1, "rat_marker_count": 1,
              "zebrafish_marker_count": 0}
    fake_db.on("from homology_cluster c, homology_cluster_counts ct", [
        dict(counts, cluster_key=9, acc_id="OMIM:607108", logical_db="OMIM", organism="human"),
        dict(counts, cluster_key=9, acc_id="RGD:3258", logical_db="RGD", organism="rat"),
    ])
    job = QSOtherBucketIndexer(fake_db, client)
    job.index_homology_classes()
    job.writer.finish()

    assert _terms(client) == [
        ("OMIM:607108", PRIMARY_ID_WEIGHT, 1),
        ("607108", PRIMARY_ID_WEIGHT, 1),
        ("RGD:3258", PRIMARY_ID_WEIGHT, 1),
    ]
    doc = client.docs[0]
    assert doc["primaryID"] == "9"
    assert doc["name"] == "Class with 1 human, 1 mouse (Pax6), 1 rat"
    assert doc["searchTermDisplay"] == "OMIM:607108 (human)"
    assert doc["markerTypeFacets"] == ["gene", "protein coding gene"]
    assert doc["detailUri"] == "/homology/cluster/key/9"


def test_genepaint_ids_without_pane(fake_db, client):
    fake_db.on("from image i inner join image_sequence_num s", [
        {"image_type": "Expression", "mgi_id": "MGI:100", "logical_db": "GenePaint",
         "acc_id": "EB1234/5", "by_default": 1},
        {"image_type": "Phenotype", "mgi_id": "MGI:200", "logical_db": None,
         "acc_id": None, "by_default": 2},
    ])
    job = QSOtherBucketIndexer(fake_db, client)
    job.index_images()
    job.writer.finish()

    assert [d["searchTermExact"] for d in client.docs] == ["MGI:100", "EB1234/5", "EB1234", "MGI:200"]
    assert client.docs[0]["name"] == "EB1234/5"
    assert client.docs[0]["objectType"] == "Expression Image"
    assert client.docs[-1]["name"] == "MGI:200"
    assert client.docs[-1]["objectType"] == "Phenotype Image"


def test_unique_keys_run_across_sections(fake_db, client):
    fake_db.on("from genotype g", [{"primary_id": "MGI:G1"}, {"primary_id": "MGI:G2"}])
    fake_db.on("from antibody", [{"primary_id": "MGI:A1", "name": "anti-Pax6"}])

    QSOtherBucketIndexer(fake_db, client).run()

    assert [d["uniqueKey"] for d in client.docs] == [0, 1, 2]
    assert [d["sequenceNum"] for d in client.docs] == [0, 1, 2]
    assert [d["objectType"] for d in client.docs] == ["Genotype", "Genotype", "Antibody"]
    assert client.calls[0] == "delete" and client.commits == 1
