#!/usr/bin/env python3

import pytest
from sqlalchemy import create_engine, text

from feindexer.config import DatabaseSettings
from feindexer.errors import QueryError
from feindexer.extract import SourceDatabase


@pytest.fixture
def source(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'fe.db'}")
    with engine.begin() as conn:
        conn.execute(text("create table reference (reference_key integer, jnum_id text)"))
        conn.execute(text("insert into reference values (3, 'J:3'), (10, 'J:10'), (25, 'J:25')"))
    db = SourceDatabase(DatabaseSettings(url="sqlite://"), engine=engine)
    with db:
        yield db
    engine.dispose()


def test_rows_bind_range_parameters(source):
    rows = source.fetch_all(
        "select jnum_id from reference where reference_key >= :start and reference_key < :end "
        "order by reference_key", start=3, end=25)
    assert [r["jnum_id"] for r in rows] == ["J:3", "J:10"]


def test_key_bounds_and_scalar(source):
    assert source.key_bounds("reference", "reference_key") == (3, 25)
    assert source.scalar("select count(*) from reference") == 3


def test_temp_tables_live_in_the_session(source):
    source.create_temp_table("tmp_refs", "select reference_key from reference where reference_key > :k", k=5)
    assert source.temp_tables == ["tmp_refs"]
    assert source.scalar("select count(*) from tmp_refs") == 2


def test_failed_query_is_query_error(source):
    with pytest.raises(QueryError) as err:
        source.fetch_all("select * from no_such_table")
    assert "no_such_table" in err.value.detail
