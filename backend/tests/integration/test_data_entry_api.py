"""Integration tests for data-entry and CREATE TABLE endpoints."""

import pytest
import httpx

from restodb.core.database import Recordset
from restodb.core.errors import DriverExecutionError


class TestDataEntry:
    """Integration tests for /data-entry."""

    @pytest.mark.asyncio
    async def test_list_forms(self, async_client: httpx.AsyncClient):
        response = await async_client.get("/api/data-entry")
        assert response.status_code == 200
        forms = {f["entity"]: f for f in response.json()}
        assert forms["restaurante"] == {
            "entity": "restaurante",
            "table": "Restaurante",
            "fields": ["rut", "nombre"],
            "required": ["rut", "nombre"],
        }
        assert "pqrs" in forms

    @pytest.mark.asyncio
    async def test_insert(self, async_client: httpx.AsyncClient, use_driver, store, saved_connection):
        driver = use_driver(recordset=Recordset(rows=[], rows_affected=1))
        response = await async_client.post(
            "/api/data-entry/restaurante",
            json={"connectionId": saved_connection.id, "values": {"rut": "900123456-7", "nombre": "D'Leña"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Restaurante creado correctamente"
        assert data["query"] == (
            "INSERT INTO [Restaurante] ([RUT], [Nombre]) VALUES (N'900123456-7', N'D''Leña')"
        )
        assert data["result"]["rowCount"] == 1
        driver.session.execute.assert_awaited_once_with(data["query"])
        assert store.list_queries()[0].status.value == "success"

    @pytest.mark.asyncio
    async def test_invalid_values(self, async_client: httpx.AsyncClient, use_driver, store, saved_connection):
        driver = use_driver()
        response = await async_client.post(
            "/api/data-entry/cargo",
            json={"connectionId": saved_connection.id, "values": {"nombre": "Chef"}},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert "salario" in response.json()["message"]
        driver.assert_not_called()
        assert store.list_queries() == []

    @pytest.mark.asyncio
    async def test_unknown_form(self, async_client: httpx.AsyncClient, saved_connection):
        response = await async_client.post(
            "/api/data-entry/cliente",
            json={"connectionId": saved_connection.id, "values": {}},
        )
        assert response.status_code == 404
        assert response.json()["code"] == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_connection(self, async_client: httpx.AsyncClient):
        response = await async_client.post(
            "/api/data-entry/area",
            json={"connectionId": 404, "values": {"nombre": "Cocina"}},
        )
        assert response.status_code == 404
        assert response.json()["code"] == "CONNECTION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_database_error(self, async_client: httpx.AsyncClient, use_driver, saved_connection):
        use_driver(execute_error=DriverExecutionError("Invalid object name 'Area'.", sqlstate="42S02"))
        response = await async_client.post(
            "/api/data-entry/area",
            json={"connectionId": saved_connection.id, "values": {"nombre": "Cocina"}},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid object name 'Area'."


class TestCreateTable:
    """Integration tests for POST /query/create-table."""

    @pytest.mark.asyncio
    async def test_generate(self, async_client: httpx.AsyncClient, use_driver):
        driver = use_driver()
        response = await async_client.post(
            "/api/query/create-table",
            json={
                "tableName": "Espacio",
                "columns": [
                    {"name": "ID_Espacio", "type": "INT", "nullable": False},
                    {"name": "Capacidad_Maxima", "type": "INT", "defaultValue": "4"},
                ],
            },
        )
        assert response.status_code == 200
        assert response.json()["query"] == (
            "CREATE TABLE [Espacio] (\n"
            "  [ID_Espacio] INT NOT NULL,\n"
            "  [Capacidad_Maxima] INT NULL DEFAULT 4\n"
            ")"
        )
        driver.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_type(self, async_client: httpx.AsyncClient):
        response = await async_client.post(
            "/api/query/create-table",
            json={"tableName": "t", "columns": [{"name": "c", "type": "INT; DROP TABLE Plato"}]},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_no_columns(self, async_client: httpx.AsyncClient):
        response = await async_client.post("/api/query/create-table", json={"tableName": "t", "columns": []})
        assert response.status_code == 400
