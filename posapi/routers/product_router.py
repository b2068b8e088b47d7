"""
Catalog API

- GET/POST /products, GET/PATCH/DELETE /products/{id}
- GET/POST /categories, PATCH/DELETE /categories/{id}

Reads and writes need a session; deletes need an admin.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from posapi.core.session_context import SessionContext
from posapi.deps import get_product_service, get_session_context, require_admin
from posapi.schemas.product import (
    CategoryCreate,
    CategoryResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from posapi.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[ProductResponse])
def list_products(
    search: Optional[str] = Query(None, description="Name contains"),
    category_id: Optional[int] = Query(None),
    active_only: bool = Query(False),
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> List[ProductResponse]:
    return product_service.list_products(
        search=search, category_id=category_id, active_only=active_only
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    request: ProductCreate,
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return product_service.create_product(request)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return product_service.get_product(product_id)


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    request: ProductUpdate,
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return product_service.update_product(product_id, request)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    _: SessionContext = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service),
) -> Response:
    product_service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@category_router.get("", response_model=List[CategoryResponse])
def list_categories(
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> List[CategoryResponse]:
    return product_service.list_categories()


@category_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    request: CategoryCreate,
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> CategoryResponse:
    return product_service.create_category(request)


@category_router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    request: CategoryCreate,
    _: SessionContext = Depends(get_session_context),
    product_service: ProductService = Depends(get_product_service),
) -> CategoryResponse:
    return product_service.update_category(category_id, request)


@category_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    _: SessionContext = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service),
) -> Response:
    product_service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
