"""Tests for data-entry forms and their INSERT statements."""

from decimal import Decimal

import pytest

from restodb.core.database import Recordset
from restodb.core.errors import (
    DriverExecutionError,
    ErrorCode,
    NotFound,
    QueryExecutionFailed,
    ValidationFailed,
)
from restodb.models.data_entry import EmpleadoForm, RestauranteForm
from restodb.services.data_entry import FORMS, build_insert, insert_record, list_entities, parse_form
from restodb.services.query_service import QueryService


class TestParseForm:
    """Tests for parse_form."""

    def test_camel_case_values(self):
        form = parse_form("empleado", {
            "cedula": "1020304050",
            "rutRestaurante": "900123456-7",
            "idCargo": "2",
            "idArea": 1,
            "nombres": "Juan Pérez",
        })
        assert isinstance(form, EmpleadoForm)
        assert form.id_cargo == 2
        assert form.id_sede == 1
        assert form.telefono == ""

    def test_unknown_entity(self):
        with pytest.raises(NotFound) as exc_info:
            parse_form("cliente", {})
        assert exc_info.value.code == ErrorCode.ENTITY_NOT_FOUND

    def test_missing_required_field(self):
        with pytest.raises(ValidationFailed) as exc_info:
            parse_form("restaurante", {"rut": "900123456-7"})
        assert "nombre" in exc_info.value.message

    def test_blank_required_field(self):
        with pytest.raises(ValidationFailed):
            parse_form("restaurante", {"rut": "   ", "nombre": "La Fonda"})

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationFailed):
            parse_form("area", {"nombre": "Cocina", "piso": 2})

    def test_malformed_values(self):
        with pytest.raises(ValidationFailed):
            parse_form("plato", {"nombre": "Ajiaco", "precio": "caro"})
        with pytest.raises(ValidationFailed):
            parse_form("cargo", {"nombre": "Chef", "salario": "-1"})
        with pytest.raises(ValidationFailed):
            parse_form("empleado", {
                "cedula": "1", "rutRestaurante": "9", "idCargo": 1, "idArea": 1,
                "nombres": "Ana", "email": "no-es-un-correo",
            })


class TestBuildInsert:
    """Tests for build_insert."""

    def test_restaurante(self):
        form = RestauranteForm(rut="900123456-7", nombre="La Fonda")
        assert build_insert(form, "mssql") == (
            "INSERT INTO [Restaurante] ([RUT], [Nombre]) VALUES (N'900123456-7', N'La Fonda')"
        )

    def test_quotes_in_values_are_escaped(self):
        form = RestauranteForm(rut="1", nombre="Don Pepe's'); DROP TABLE Restaurante; --")
        sql = build_insert(form, "mssql")
        assert sql.endswith("VALUES (N'1', N'Don Pepe''s''); DROP TABLE Restaurante; --')")

    def test_empleado_column_order(self):
        form = parse_form("empleado", {
            "cedula": "1020304050",
            "rutRestaurante": "900123456-7",
            "idCargo": 2,
            "idArea": 1,
            "nombres": "Juan Pérez",
            "email": "juan@lafonda.co",
        })
        assert build_insert(form, "mssql") == (
            "INSERT INTO [Empleado] ([Cedula], [RUT], [ID_Sede], [ID_Cargo], [ID_Area], [Nombres], "
            "[Numero_Contacto], [Correo_Corporativo]) VALUES (N'1020304050', N'900123456-7', 1, 2, 1, "
            "N'Juan Pérez', N'', N'juan@lafonda.co')"
        )

    def test_missing_expiry_date_is_null(self):
        form = parse_form("materia-prima", {
            "nombre": "Papa criolla", "cantidadStock": "25.5", "unidadMedida": "Kilogramos",
        })
        assert build_insert(form, "mssql").endswith("VALUES (1, N'Papa criolla', N'', NULL, 25.5, N'Kilogramos')")

    def test_dates_and_numbers(self):
        orden = parse_form("orden", {"idMesa": "3", "idEmpleado": "EMP001", "fechaHora": "2024-05-01T19:30:00"})
        assert build_insert(orden, "mssql").endswith("VALUES (3, N'EMP001', N'2024-05-01 19:30:00')")

        plato = parse_form("plato", {"nombre": "Ajiaco", "precio": "28500.00"})
        assert plato.precio == Decimal("28500.00")
        assert build_insert(plato, "mssql").endswith("VALUES (N'Ajiaco', N'', 28500.00)")

    def test_postgres(self):
        form = parse_form("pqrs", {
            "rutRestaurante": "9", "tipoSolicitud": "Queja", "descripcion": "Sopa fría", "fecha": "2024-05-01",
        })
        assert build_insert(form, "postgresql") == (
            'INSERT INTO "PQRS" ("RUT", "Tipo_Solicitud", "Descripcion", "Fecha") '
            "VALUES ('9', 'Queja', 'Sopa fría', '2024-05-01')"
        )


class TestListEntities:
    """Tests for list_entities."""

    def test_every_form_listed(self):
        entities = {e.entity: e for e in list_entities()}
        assert set(entities) == set(FORMS)
        assert entities["materia-prima"].table == "Materias_Primas"

    def test_fields_in_column_order_with_required(self):
        empleado = next(e for e in list_entities() if e.entity == "empleado")
        assert empleado.fields[:3] == ["cedula", "rutRestaurante", "idSede"]
        assert "idCargo" in empleado.required
        assert "idSede" not in empleado.required
        assert "email" not in empleado.required


class TestInsertRecord:
    """Tests for insert_record."""

    @pytest.mark.asyncio
    async def test_runs_through_query_service(self, store, saved_connection, fake_session):
        factory = fake_session(recordset=Recordset(rows=[], rows_affected=1))
        service = QueryService(store, session_factory=factory)

        response = await insert_record(service, saved_connection.id, "area", {"nombre": "Cocina"})

        assert response.message == "Área creada correctamente"
        assert response.result.row_count == 1
        factory.session.execute.assert_awaited_once_with(response.query)
        assert store.list_queries()[0].query == response.query

    @pytest.mark.asyncio
    async def test_invalid_values_never_reach_the_database(self, store, saved_connection, fake_session):
        factory = fake_session()
        service = QueryService(store, session_factory=factory)
        with pytest.raises(ValidationFailed):
            await insert_record(service, saved_connection.id, "mesa", {"idEspacio": "uno", "numeroMesa": 4})
        factory.assert_not_called()
        assert store.list_queries() == []

    @pytest.mark.asyncio
    async def test_database_error(self, store, saved_connection, fake_session):
        factory = fake_session(
            execute_error=DriverExecutionError("Violation of PRIMARY KEY constraint", sqlstate="23000")
        )
        service = QueryService(store, session_factory=factory)
        with pytest.raises(QueryExecutionFailed):
            await insert_record(service, saved_connection.id, "sede", {"nombre": "Norte", "direccion": "Cra 7"})
        assert store.list_queries()[0].status.value == "error"
