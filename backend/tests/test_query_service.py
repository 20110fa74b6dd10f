"""Tests for the query execution service."""

import pytest
from unittest.mock import patch

from restodb.core.database import Recordset
from restodb.core.errors import (
    DatabaseUnavailable,
    DriverConnectionError,
    DriverErrorKind,
    DriverExecutionError,
    NotFound,
    QueryExecutionFailed,
)
from restodb.models.query import QueryStatus
from restodb.services.query_service import QueryService

PLATOS = Recordset(rows=[
    [("id", 1), ("nombre", "Tapas"), ("precio", 8.5)],
    [("id", 2), ("nombre", "Paella"), ("precio", 14.0)],
])


class TestExecute:
    """Tests for QueryService.execute."""

    @pytest.mark.asyncio
    async def test_success(self, store, saved_connection, fake_session):
        """A successful query returns the result and records it."""
        factory = fake_session(recordset=PLATOS)
        service = QueryService(store, session_factory=factory)

        result = await service.execute(saved_connection.id, "SELECT * FROM platos")

        assert [c.name for c in result.columns] == ["id", "nombre", "precio"]
        assert result.row_count == 2
        assert result.execution_time >= 0
        factory.session.execute.assert_awaited_once_with("SELECT * FROM platos")
        # The session was opened with the stored profile and closed again
        assert factory.call_args.args[0].id == saved_connection.id
        factory.session.__aexit__.assert_awaited_once()

        history = store.list_queries()
        assert len(history) == 1
        assert history[0].status == QueryStatus.SUCCESS
        assert history[0].connection_id == saved_connection.id
        assert history[0].query == "SELECT * FROM platos"
        assert history[0].results == result
        assert history[0].error is None

    @pytest.mark.asyncio
    async def test_sql_sent_verbatim(self, store, saved_connection, fake_session):
        """No trimming, splitting or rewriting of the text."""
        factory = fake_session()
        sql = "  SELECT 1;\nSELECT 2;  "
        await QueryService(store, session_factory=factory).execute(saved_connection.id, sql)
        factory.session.execute.assert_awaited_once_with(sql)

    @pytest.mark.asyncio
    async def test_driver_error_recorded_and_raised(self, store, saved_connection, fake_session):
        factory = fake_session(
            execute_error=DriverExecutionError("Invalid object name 'platoz'.", sqlstate="42S02")
        )
        service = QueryService(store, session_factory=factory)

        with pytest.raises(QueryExecutionFailed) as exc_info:
            await service.execute(saved_connection.id, "SELECT * FROM platoz")

        exc = exc_info.value
        assert exc.status_code == 400
        assert exc.message == "Query execution failed"
        assert exc.error == "Invalid object name 'platoz'."
        assert exc.kind == DriverErrorKind.SYNTAX
        factory.session.__aexit__.assert_awaited_once()

        history = store.list_queries()
        assert len(history) == 1
        assert history[0].status == QueryStatus.ERROR
        assert history[0].error == "Invalid object name 'platoz'."
        assert history[0].results is None
        assert history[0].execution_time is not None
        assert exc.details == {"queryId": history[0].id}

    @pytest.mark.asyncio
    async def test_connect_failure_is_execution_failure(self, store, saved_connection, fake_session):
        factory = fake_session(open_error=DriverConnectionError("Login failed for user 'sa'."))
        service = QueryService(store, session_factory=factory)

        with pytest.raises(QueryExecutionFailed) as exc_info:
            await service.execute(saved_connection.id, "SELECT 1")

        assert exc_info.value.kind == DriverErrorKind.CONNECTION
        factory.session.execute.assert_not_awaited()
        assert store.list_queries()[0].status == QueryStatus.ERROR

    @pytest.mark.asyncio
    async def test_malformed_driver_response(self, store, saved_connection, fake_session):
        """A missing recordset surfaces as an execution failure."""
        factory = fake_session()
        factory.session.execute.return_value = None
        service = QueryService(store, session_factory=factory)

        with pytest.raises(QueryExecutionFailed):
            await service.execute(saved_connection.id, "EXEC sp_who")
        assert len(store.list_queries()) == 1

    @pytest.mark.asyncio
    async def test_unknown_connection(self, store, fake_session):
        """NotFound is raised and the attempt is recorded under the requested id."""
        factory = fake_session()
        service = QueryService(store, session_factory=factory)

        with pytest.raises(NotFound):
            await service.execute(77, "SELECT 1")

        factory.assert_not_called()
        history = store.list_queries()
        assert len(history) == 1
        assert history[0].connection_id == 77
        assert history[0].status == QueryStatus.ERROR

    @pytest.mark.asyncio
    async def test_unexpected_error_recorded_and_propagated(self, store, saved_connection, fake_session):
        factory = fake_session(execute_error=RuntimeError("driver crashed"))
        service = QueryService(store, session_factory=factory)

        with pytest.raises(RuntimeError):
            await service.execute(saved_connection.id, "SELECT 1")
        assert store.list_queries()[0].error == "driver crashed"

    @pytest.mark.asyncio
    async def test_every_call_adds_one_record(self, store, saved_connection, fake_session):
        ok = QueryService(store, session_factory=fake_session(recordset=PLATOS))
        failing = QueryService(
            store, session_factory=fake_session(execute_error=DriverExecutionError("boom"))
        )

        await ok.execute(saved_connection.id, "SELECT 1")
        assert len(store.list_queries()) == 1
        with pytest.raises(QueryExecutionFailed):
            await failing.execute(saved_connection.id, "SELECT 2")
        assert len(store.list_queries()) == 2
        with pytest.raises(NotFound):
            await ok.execute(999, "SELECT 3")
        assert len(store.list_queries()) == 3

    @pytest.mark.asyncio
    async def test_history_write_failure_does_not_mask_success(self, store, saved_connection, fake_session):
        service = QueryService(store, session_factory=fake_session(recordset=PLATOS))
        with patch.object(store, "create_query", side_effect=RuntimeError("disk full")), \
                patch("restodb.services.query_service.metrics") as mock_metrics:
            result = await service.execute(saved_connection.id, "SELECT 1")
        assert result.row_count == 2
        mock_metrics.record_history_write_failure.assert_called_once()

    @pytest.mark.asyncio
    async def test_history_write_failure_does_not_mask_driver_error(self, store, saved_connection, fake_session):
        service = QueryService(
            store, session_factory=fake_session(execute_error=DriverExecutionError("Incorrect syntax near 'FORM'."))
        )
        with patch.object(store, "create_query", side_effect=RuntimeError("disk full")):
            with pytest.raises(QueryExecutionFailed) as exc_info:
                await service.execute(saved_connection.id, "SELECT * FORM platos")
        assert exc_info.value.error == "Incorrect syntax near 'FORM'."
        assert exc_info.value.details == {}


class TestConnectionChecks:
    """Tests for connection testing and catalog listing."""

    @pytest.mark.asyncio
    async def test_test_connection_success(self, store, sample_profile, fake_session):
        factory = fake_session()
        await QueryService(store, session_factory=factory).test_connection(sample_profile)
        factory.assert_called_once_with(sample_profile)
        assert store.list_connections() == []

    @pytest.mark.asyncio
    async def test_test_connection_failure_is_400(self, store, sample_profile, fake_session):
        factory = fake_session(open_error=DriverConnectionError("Login failed for user 'sa'."))
        with pytest.raises(DatabaseUnavailable) as exc_info:
            await QueryService(store, session_factory=factory).test_connection(sample_profile)
        assert exc_info.value.status_code == 400
        assert exc_info.value.error == "Login failed for user 'sa'."

    @pytest.mark.asyncio
    async def test_list_databases(self, store, saved_connection, fake_session):
        factory = fake_session(databases=["master", "restaurante"])
        databases = await QueryService(store, session_factory=factory).list_databases(saved_connection.id)
        assert databases == ["master", "restaurante"]

    @pytest.mark.asyncio
    async def test_list_tables_driver_failure_is_502(self, store, saved_connection, fake_session):
        factory = fake_session(catalog_error=DriverExecutionError("The SELECT permission was denied"))
        with pytest.raises(DatabaseUnavailable) as exc_info:
            await QueryService(store, session_factory=factory).list_tables(saved_connection.id)
        assert exc_info.value.status_code == 502
        assert exc_info.value.kind == DriverErrorKind.PERMISSION

    @pytest.mark.asyncio
    async def test_catalog_unknown_connection(self, store, fake_session):
        with pytest.raises(NotFound):
            await QueryService(store, session_factory=fake_session()).list_databases(5)
