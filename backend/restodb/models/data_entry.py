"""Data-entry forms for the restaurant schema.

Each form names the table it writes to and maps its fields, in column
order, onto that table's columns. Field values are validated here and
rendered as SQL literals by the data-entry service, never pasted in as text.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import ConfigDict, Field

from restodb.models.common import ApiModel
from restodb.models.query import QueryResult

EMAIL_PATTERN = r"^$|^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RecordForm(ApiModel):
    """Base for a form that inserts one row."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    table: ClassVar[str]
    columns: ClassVar[Dict[str, str]]  # field name -> column name
    created_message: ClassVar[str]
    failed_message: ClassVar[str]


class RestauranteForm(RecordForm):
    table = "Restaurante"
    columns = {"rut": "RUT", "nombre": "Nombre"}
    created_message = "Restaurante creado correctamente"
    failed_message = "Error al crear el restaurante"

    rut: str = Field(..., min_length=1)
    nombre: str = Field(..., min_length=1)


class EmpleadoForm(RecordForm):
    table = "Empleado"
    columns = {
        "cedula": "Cedula",
        "rut_restaurante": "RUT",
        "id_sede": "ID_Sede",
        "id_cargo": "ID_Cargo",
        "id_area": "ID_Area",
        "nombres": "Nombres",
        "telefono": "Numero_Contacto",
        "email": "Correo_Corporativo",
    }
    created_message = "Empleado registrado correctamente"
    failed_message = "Error al registrar el empleado"

    cedula: str = Field(..., min_length=1)
    rut_restaurante: str = Field(..., min_length=1)
    id_sede: int = 1
    id_cargo: int
    id_area: int
    nombres: str = Field(..., min_length=1)
    telefono: str = ""
    email: str = Field("", pattern=EMAIL_PATTERN)


class MateriaPrimaForm(RecordForm):
    """An ingredient in stock."""

    table = "Materias_Primas"
    columns = {
        "id_inventario": "ID_Inventario_MP",
        "nombre": "Nombre_Ingrediente",
        "descripcion": "Descripcion",
        "fecha_caducidad": "Fecha_Caducidad",
        "cantidad_stock": "Cantidad_Stock",
        "unidad_medida": "Unidad_Medida",
    }
    created_message = "Ingrediente agregado correctamente"
    failed_message = "Error al agregar el ingrediente"

    id_inventario: int = 1
    nombre: str = Field(..., min_length=1)
    descripcion: str = ""
    fecha_caducidad: Optional[date] = None
    cantidad_stock: Decimal = Field(..., ge=0)
    unidad_medida: str = Field(..., min_length=1)


class PlatoForm(RecordForm):
    table = "Plato"
    columns = {"nombre": "Nombre_Plato", "descripcion": "Descripcion", "precio": "Precio"}
    created_message = "Plato agregado correctamente"
    failed_message = "Error al agregar el plato"

    nombre: str = Field(..., min_length=1)
    descripcion: str = ""
    precio: Decimal = Field(..., ge=0)


class SedeForm(RecordForm):
    table = "Sede"
    columns = {"nombre": "Nombre_Sede", "direccion": "Direccion"}
    created_message = "Sede creada correctamente"
    failed_message = "Error al crear la sede"

    nombre: str = Field(..., min_length=1)
    direccion: str = Field(..., min_length=1)


class AreaForm(RecordForm):
    table = "Area"
    columns = {"nombre": "Nombre_Area"}
    created_message = "Área creada correctamente"
    failed_message = "Error al crear el área"

    nombre: str = Field(..., min_length=1)


class CargoForm(RecordForm):
    table = "Cargo"
    columns = {"nombre": "Nombre_Cargo", "salario": "Salario_Base"}
    created_message = "Cargo creado correctamente"
    failed_message = "Error al crear el cargo"

    nombre: str = Field(..., min_length=1)
    salario: Decimal = Field(..., ge=0)


class MesaForm(RecordForm):
    table = "Mesa"
    columns = {"id_espacio": "ID_Espacio", "numero_mesa": "Numero_Mesa"}
    created_message = "Mesa creada correctamente"
    failed_message = "Error al crear la mesa"

    id_espacio: int
    numero_mesa: int


class OrdenForm(RecordForm):
    table = "Orden"
    columns = {"id_mesa": "ID_Mesa", "id_empleado": "ID_Empleado", "fecha_hora": "Fecha_Hora"}
    created_message = "Orden creada correctamente"
    failed_message = "Error al crear la orden"

    id_mesa: int
    id_empleado: str = Field(..., min_length=1)
    fecha_hora: datetime


class PqrsForm(RecordForm):
    """A petition, complaint, claim or suggestion (PQRS)."""

    table = "PQRS"
    columns = {
        "rut_restaurante": "RUT",
        "tipo_solicitud": "Tipo_Solicitud",
        "descripcion": "Descripcion",
        "fecha": "Fecha",
    }
    created_message = "PQRS registrada correctamente"
    failed_message = "Error al registrar la PQRS"

    rut_restaurante: str = Field(..., min_length=1)
    tipo_solicitud: str = Field(..., min_length=1)
    descripcion: str = Field(..., min_length=1)
    fecha: date


class DataEntryRequest(ApiModel):
    """Values for one new row, keyed by form field (camelCase)."""

    connection_id: int
    values: Dict[str, Any]


class DataEntryResponse(ApiModel):
    """Outcome of a data-entry insert."""

    entity: str
    query: str
    message: str
    result: QueryResult


class EntityInfo(ApiModel):
    """A data-entry form as advertised to clients."""

    entity: str
    table: str
    fields: List[str]
    required: List[str]
