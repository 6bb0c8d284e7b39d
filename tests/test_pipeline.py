from decimal import Decimal

import pytest

from sales_etl import PipelineConfig, SalesETL
from sales_etl.exceptions import ExtractionError, LoadError

from conftest import ConnectionProxy, fetch_target, insert_source_rows, make_row


def test_scenario_null_net_pay_and_rerun_with_new_row(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [make_row("A1", netpay="100.50"), make_row("A2", netpay=None)])
    etl = SalesETL(source_db, target_db, config)

    first = etl.run()

    rows = fetch_target(target_db)
    assert first.rows_processed == 2
    assert [row["fsno"] for row in rows] == ["A1", "A2"]
    assert Decimal(str(rows[0]["net_pay"])) == Decimal("100.50")
    assert rows[1]["net_pay"] is None

    insert_source_rows(source_db, [make_row("A3", netpay="5")])
    second = etl.run()

    assert second.rows_processed == 3
    assert second.rows_inserted == 1
    assert second.target_rows == 3
    assert [row["fsno"] for row in fetch_target(target_db)] == ["A1", "A2", "A3"]


def test_rerun_against_unchanged_source_is_idempotent(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [make_row(f"S{i:03d}") for i in range(25)])
    etl = SalesETL(source_db, target_db, config)

    first = etl.run()
    second = etl.run()

    assert first.target_rows == second.target_rows == 25
    assert second.rows_inserted == 0
    assert second.rows_processed == 25


def test_null_fields_are_loaded_as_null(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [make_row(
        "N1", salestype=None, customer=None, date=None, unitprice=None, soldquantity=None,
    )])

    SalesETL(source_db, target_db, config).run()

    row = fetch_target(target_db)[0]
    assert row["salestype"] is None
    assert row["customer"] is None
    assert row["sale_date"] is None
    assert row["unit_price"] is None
    assert row["sold_quantity"] is None
    assert row["region"] == "Addis Ababa"


def test_bad_row_is_skipped_and_later_rows_load(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [
        make_row("B1"),
        make_row("B2", soldquantity="twelve"),
        make_row("B3"),
    ])

    result = SalesETL(source_db, target_db, config).run()

    assert result.rows_processed == 2
    assert result.rows_skipped == 1
    assert [row["fsno"] for row in fetch_target(target_db)] == ["B1", "B3"]


def test_hard_load_error_leaves_target_untouched(source_db, target_db) -> None:
    target_db.execute(
        "CREATE TABLE SalesDB (fsno VARCHAR(50) PRIMARY KEY, salestype VARCHAR(50), "
        "attachmentno VARCHAR(50), customer VARCHAR(100), region VARCHAR(50), sale_date DATE, "
        "code VARCHAR(50), item_name VARCHAR(100), measurement_unit VARCHAR(50), "
        "unit_price NUMERIC(12, 2), sold_quantity NUMERIC(12, 2), "
        "net_pay NUMERIC(12, 2) CHECK (net_pay >= 0))"
    )
    insert_source_rows(source_db, [
        make_row(f"F{i:02d}", netpay="-3" if i == 5 else "3") for i in range(1, 11)
    ])
    etl = SalesETL(source_db, target_db, PipelineConfig({'target_paramstyle': 'qmark'}))

    with pytest.raises(LoadError) as excinfo:
        etl.run()

    assert excinfo.value.rows_processed == 4
    assert excinfo.value.fsno == "F05"
    assert fetch_target(target_db) == []


def test_missing_source_table_aborts_before_loading(source_db, target_db) -> None:
    config = PipelineConfig({'source_table': 'NoSuchSales', 'target_paramstyle': 'qmark'})
    with pytest.raises(ExtractionError):
        SalesETL(source_db, target_db, config).run()
    assert fetch_target(target_db) == []


def test_custom_target_table(source_db, target_db) -> None:
    insert_source_rows(source_db, [make_row("A1")])
    config = PipelineConfig({'target_table': 'sales_replica_test', 'target_paramstyle': 'qmark'})

    result = SalesETL(source_db, target_db, config).run()

    assert result.target_rows == 1
    assert fetch_target(target_db, 'sales_replica_test')[0]["item_name"] == "Cement 50kg"


def test_pipeline_summary_mentions_counts(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [make_row("A1"), make_row("A2")])
    etl = SalesETL(source_db, target_db, config)
    summary = etl.get_pipeline_summary(etl.run())
    assert "Rows processed: 2" in summary
    assert "Target table rows: 2" in summary


def test_lost_target_before_first_insert_releases_source_cursor(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [make_row("A1"), make_row("A2")])
    source = ConnectionProxy(source_db)
    target = ConnectionProxy(target_db, fail_cursor_open_after=1)

    with pytest.raises(LoadError) as excinfo:
        SalesETL(source, target, config).run()

    assert excinfo.value.fsno is None
    assert excinfo.value.rows_processed == 0
    assert source.cursors[0].closed
    assert target.rollbacks == 1


def test_empty_fsno_loads_once_across_runs(source_db, target_db, config) -> None:
    insert_source_rows(source_db, [make_row("")])
    etl = SalesETL(source_db, target_db, config)

    etl.run()
    second = etl.run()

    assert second.rows_processed == 1
    assert second.rows_inserted == 0
    assert [row["fsno"] for row in fetch_target(target_db)] == [""]


def test_null_fsno_fails_the_run_and_rolls_back(source_db, target_db, config) -> None:
    target_db.execute(
        "CREATE TABLE SalesDB (fsno VARCHAR(50) NOT NULL PRIMARY KEY, salestype VARCHAR(50), "
        "attachmentno VARCHAR(50), customer VARCHAR(100), region VARCHAR(50), sale_date DATE, "
        "code VARCHAR(50), item_name VARCHAR(100), measurement_unit VARCHAR(50), "
        "unit_price NUMERIC(12, 2), sold_quantity NUMERIC(12, 2), net_pay NUMERIC(12, 2))"
    )
    insert_source_rows(source_db, [make_row("A1"), make_row(None)])

    with pytest.raises(LoadError) as excinfo:
        SalesETL(source_db, target_db, config).run()

    assert excinfo.value.fsno is None
    assert fetch_target(target_db) == []


def test_empty_source_commits_an_empty_run(source_db, target_db, config) -> None:
    target = ConnectionProxy(target_db)

    result = SalesETL(source_db, target, config).run()

    assert result.rows_processed == 0
    assert result.target_rows == 0
    # one commit for the table DDL, one for the load transaction
    assert target.commits == 2
