"""Row inserts for the restaurant schema's data-entry forms."""

import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError

from restodb.core.errors import ErrorCode, NotFound, ValidationFailed, format_validation_errors
from restodb.models.data_entry import (
    AreaForm,
    CargoForm,
    DataEntryResponse,
    EmpleadoForm,
    EntityInfo,
    MateriaPrimaForm,
    MesaForm,
    OrdenForm,
    PlatoForm,
    PqrsForm,
    RecordForm,
    RestauranteForm,
    SedeForm,
)
from restodb.services.query_service import QueryService
from restodb.services.query_templates import quote_identifier, sql_literal

logger = logging.getLogger(__name__)

FORMS: Dict[str, Type[RecordForm]] = {
    "restaurante": RestauranteForm,
    "empleado": EmpleadoForm,
    "materia-prima": MateriaPrimaForm,
    "plato": PlatoForm,
    "sede": SedeForm,
    "area": AreaForm,
    "cargo": CargoForm,
    "mesa": MesaForm,
    "orden": OrdenForm,
    "pqrs": PqrsForm,
}


def list_entities() -> List[EntityInfo]:
    """Describe every form: its table, its fields and which of them are required."""
    entities = []
    for entity, form in FORMS.items():
        fields = form.model_fields
        entities.append(
            EntityInfo(
                entity=entity,
                table=form.table,
                fields=[fields[name].alias or name for name in form.columns],
                required=[fields[name].alias or name for name in form.columns if fields[name].is_required()],
            )
        )
    return entities


def parse_form(entity: str, values: Dict[str, Any]) -> RecordForm:
    """
    Validate raw form values for an entity.

    Raises:
        NotFound: If no form is registered under ``entity``
        ValidationFailed: If a value is missing, malformed or unknown
    """
    form = FORMS.get(entity)
    if form is None:
        raise NotFound(f"Unknown data-entry form '{entity}'", code=ErrorCode.ENTITY_NOT_FOUND)
    try:
        return form.model_validate(values)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors())) from e


def build_insert(form: RecordForm, dialect: Optional[str] = None) -> str:
    """Render a validated form as a single-row INSERT statement."""
    columns = ", ".join(quote_identifier(column, dialect) for column in form.columns.values())
    values = ", ".join(sql_literal(getattr(form, name), dialect) for name in form.columns)
    return f"INSERT INTO {quote_identifier(form.table, dialect)} ({columns}) VALUES ({values})"


async def insert_record(
    service: QueryService,
    connection_id: int,
    entity: str,
    values: Dict[str, Any],
) -> DataEntryResponse:
    """
    Validate a form and run its INSERT on a saved connection.

    The statement goes through the query service, so it lands in the query
    history like any other execution and fails the same way.
    """
    form = parse_form(entity, values)
    sql = build_insert(form)
    result = await service.execute(connection_id, sql)
    logger.info(
        f"Inserted {entity} row on connection {connection_id}",
        extra={"event": "record_inserted", "entity": entity, "connection_id": connection_id},
    )
    return DataEntryResponse(entity=entity, query=sql, message=form.created_message, result=result)
