# module vendgb.catalogue.views

"""Endpoints du catalogue.
- /api/products: vitrine publique (produits actifs, projection sans données internes).
- /api/admin/products: CRUD complet pour le back-office (require_admin).
"""
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from vendgb.catalogue import service as catalogue_service
from vendgb.catalogue.models import ProductIn, ProductUpdate, to_public_product
from vendgb.errors import ProductNotFound
from vendgb.utils.security import require_admin

router = APIRouter(prefix="/api/products", tags=["Catalogue API"])
admin_router = APIRouter(prefix="/api/admin/products", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("")
def list_products():
    return [to_public_product(p) for p in catalogue_service.list_active()]


@router.get("/{product_id}")
def get_product(product_id: str):
    product = catalogue_service.get(product_id)
    if not product.active:
        raise ProductNotFound(product_id)
    return to_public_product(product)


@admin_router.get("")
def admin_list_products():
    return [p.model_dump(by_alias=True, mode="json") for p in catalogue_service.list_all()]


@admin_router.post("", status_code=201)
def admin_create_product(payload: ProductIn):
    product = catalogue_service.create(payload)
    return JSONResponse(product.model_dump(by_alias=True, mode="json"), status_code=201)


@admin_router.put("/{product_id}")
def admin_update_product(product_id: str, payload: ProductUpdate):
    return catalogue_service.update(product_id, payload).model_dump(by_alias=True, mode="json")


@admin_router.delete("/{product_id}", status_code=204)
def admin_delete_product(product_id: str):
    catalogue_service.delete(product_id)
    return Response(status_code=204)
