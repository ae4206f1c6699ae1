"""
Master data API endpoints - shippers, consignees, product types and flower types.

The four classes share the same CRUD shape, so their routes are registered
from one table.
"""
import logging
from fastapi import APIRouter, Depends, Query, status
from typing import List, Type
from pydantic import BaseModel
from invoicer.api.deps import get_context, get_store, http_error
from invoicer.context import AppContext
from invoicer.exceptions import InvoicerError
from invoicer.schemas.master_data import (
    FlowerTypeCreate,
    FlowerTypeResponse,
    FlowerTypeUpdate,
    PartyCreate,
    PartyResponse,
    PartyUpdate,
    ProductTypeCreate,
    ProductTypeResponse,
    ProductTypeUpdate,
)
from invoicer.schemas.sync import SyncEntity
from invoicer.services.local_store import LocalStore
from invoicer.services.master_data import MasterDataService

logger = logging.getLogger(__name__)
router = APIRouter()

ROUTES = (
    ("shippers", SyncEntity.SHIPPERS, PartyCreate, PartyUpdate, PartyResponse),
    ("consignees", SyncEntity.CONSIGNEES, PartyCreate, PartyUpdate, PartyResponse),
    ("product-types", SyncEntity.PRODUCT_TYPES, ProductTypeCreate, ProductTypeUpdate, ProductTypeResponse),
    ("flower-types", SyncEntity.FLOWER_TYPES, FlowerTypeCreate, FlowerTypeUpdate, FlowerTypeResponse),
)


def get_master_data_service(
    store: LocalStore = Depends(get_store),
    context: AppContext = Depends(get_context),
) -> MasterDataService:
    return context.master_data(store)


@router.get("/product-types/{name}/approx-quantity")
async def approx_quantity(
    name: str,
    weight: float = Query(..., ge=0),
    service: MasterDataService = Depends(get_master_data_service)
):
    """Suggested piece count for a product line of this type and weight."""
    try:
        return {"approx_quantity": service.approx_quantity_for(name, weight)}
    except InvoicerError as e:
        raise http_error(e)


def _register(path: str, kind: SyncEntity, create_schema: Type[BaseModel],
              update_schema: Type[BaseModel], response_schema: Type[BaseModel]) -> None:

    async def list_records(service: MasterDataService = Depends(get_master_data_service)):
        try:
            return service.list(kind)
        except InvoicerError as e:
            raise http_error(e)

    async def get_record(record_id: str, service: MasterDataService = Depends(get_master_data_service)):
        try:
            return service.get(kind, record_id)
        except InvoicerError as e:
            raise http_error(e)

    async def create_record(data: create_schema, service: MasterDataService = Depends(get_master_data_service)):
        try:
            return service.create(kind, data)
        except InvoicerError as e:
            raise http_error(e)

    async def update_record(record_id: str, data: update_schema,
                            service: MasterDataService = Depends(get_master_data_service)):
        try:
            return service.update(kind, record_id, data)
        except InvoicerError as e:
            raise http_error(e)

    async def delete_record(record_id: str, service: MasterDataService = Depends(get_master_data_service)):
        try:
            service.delete(kind, record_id)
        except InvoicerError as e:
            raise http_error(e)

    tags = [path]
    router.add_api_route(f"/{path}", list_records, methods=["GET"],
                         response_model=List[response_schema], tags=tags,
                         summary=f"List {kind.value}")
    router.add_api_route(f"/{path}", create_record, methods=["POST"],
                         response_model=response_schema, status_code=status.HTTP_201_CREATED,
                         tags=tags, summary=f"Create {kind.value} entry")
    router.add_api_route(f"/{path}/{{record_id}}", get_record, methods=["GET"],
                         response_model=response_schema, tags=tags, summary=f"Get {kind.value} entry")
    router.add_api_route(f"/{path}/{{record_id}}", update_record, methods=["PATCH"],
                         response_model=response_schema, tags=tags, summary=f"Update {kind.value} entry")
    router.add_api_route(f"/{path}/{{record_id}}", delete_record, methods=["DELETE"],
                         status_code=status.HTTP_204_NO_CONTENT, tags=tags,
                         summary=f"Delete {kind.value} entry")


for _route in ROUTES:
    _register(*_route)
