"""Tests for DataFrame to INSERT conversion."""

import pandas as pd
import pytest

from chainsql import df_sql
from chainsql.df_handler import df_records


@pytest.fixture
def df():
    return pd.DataFrame({"id": [1, 2, 3], "name": ["a", None, "c"], "score": [1.5, float("nan"), 3.0]})


def test_records_replace_missing_values_with_none(df):
    assert df_records(df) == [
        {"id": 1, "name": "a", "score": 1.5},
        {"id": 2, "name": None, "score": None},
        {"id": 3, "name": "c", "score": 3.0},
    ]


def test_single_chunk(df):
    assert df_sql(df, "t") == ["INSERT INTO `t` (`id`, `name`, `score`) VALUES (1, 'a', 1.5),\n(2, NULL, NULL),\n(3, 'c', 3)"]


def test_chunks_and_column_subset(df):
    assert df_sql(df, "t", ["id"], chunk_size=2) == [
        "INSERT INTO `t` (`id`) VALUES (1),\n(2)",
        "INSERT INTO `t` (`id`) VALUES (3)",
    ]


def test_update_columns_produce_upserts(df):
    assert df_sql(df.head(2), "t", ["id", "name"], update_columns=["name"]) == [
        "INSERT INTO `t` (`id`, `name`) VALUES (1, 'a') ON DUPLICATE KEY UPDATE `name`='a'",
        "INSERT INTO `t` (`id`, `name`) VALUES (2, NULL) ON DUPLICATE KEY UPDATE `name`=NULL",
    ]


def test_empty_frame_gives_no_statements():
    assert df_sql(pd.DataFrame({"a": []}), "t") == []


def test_errors(df):
    with pytest.raises(TypeError, match="pandas DataFrame"):
        df_sql([{"a": 1}], "t")
    with pytest.raises(ValueError, match="chunk_size"):
        df_sql(df, "t", chunk_size=0)
    with pytest.raises(ValueError, match="Columns not found"):
        df_sql(df, "t", ["missing"])
    with pytest.raises(ValueError, match="Update columns must be inserted columns"):
        df_sql(df, "t", ["id"], update_columns=["name"])
