"""Data-entry endpoints: one-row inserts into the restaurant schema."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from restodb.core.deps import get_query_service
from restodb.models.data_entry import DataEntryRequest, DataEntryResponse, EntityInfo
from restodb.services.data_entry import insert_record, list_entities
from restodb.services.query_service import QueryService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[EntityInfo])
async def list_forms() -> List[EntityInfo]:
    """List the data-entry forms with their tables and fields."""
    return list_entities()


@router.post("/{entity}", response_model=DataEntryResponse)
async def create_record(
    entity: str,
    request: DataEntryRequest,
    service: QueryService = Depends(get_query_service),
) -> DataEntryResponse:
    """
    Insert one row built from form values.

    Values are validated against the entity's form and written as quoted
    SQL literals. The INSERT runs like any other query: it is recorded in
    the history, and a database error answers 400 with the driver's text.
    """
    return await insert_record(service, request.connection_id, entity, request.values)
