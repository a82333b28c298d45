from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from shoplocal.application.auth import Actor
from shoplocal.domain.enums import Role
from shoplocal.domain.schemas import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    ShopCreate,
    ShopOut,
    ShopUpdate,
)
from shoplocal.interfaces.dependencies import current_actor, get_catalog, optional_actor, require_role

router = APIRouter(prefix="/api", tags=["shops"])


def _shop(shop):
    return ShopOut.model_validate(shop).to_payload()


def _product(product):
    return ProductOut.model_validate(product).to_payload()


def _category(category):
    return CategoryOut.model_validate(category).to_payload()


# --- Categories ---

@router.get("/categories")
def list_categories(catalog=Depends(get_catalog)):
    return [_category(category) for category in catalog.list_categories()]


@router.post("/categories", status_code=201)
def create_category(body: CategoryCreate, actor: Actor = Depends(require_role(Role.ADMIN)),
                    catalog=Depends(get_catalog)):
    return _category(catalog.create_category(actor, body.model_dump()))


@router.put("/categories/{category_id}")
def update_category(category_id: int, body: CategoryUpdate, actor: Actor = Depends(require_role(Role.ADMIN)),
                    catalog=Depends(get_catalog)):
    return _category(catalog.update_category(actor, category_id, body.model_dump(exclude_unset=True)))


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, actor: Actor = Depends(require_role(Role.ADMIN)),
                    catalog=Depends(get_catalog)):
    catalog.delete_category(actor, category_id)
    return Response(status_code=204)


# --- Shops ---

@router.get("/shops")
def list_shops(lat: Optional[float] = Query(None, ge=-90, le=90), lng: Optional[float] = Query(None, ge=-180, le=180),
               radius: Optional[float] = Query(None, gt=0), category_id: Optional[int] = Query(None, alias="categoryId"),
               catalog=Depends(get_catalog)):
    shops = catalog.list_shops(lat=lat, lng=lng, radius_km=radius, category_id=category_id)
    return [_shop(shop) for shop in shops]


@router.get("/shops/{shop_id}")
def get_shop(shop_id: int, actor: Optional[Actor] = Depends(optional_actor), catalog=Depends(get_catalog)):
    return _shop(catalog.get_shop(shop_id, actor))


@router.post("/shops", status_code=201)
def create_shop(body: ShopCreate, actor: Actor = Depends(require_role(Role.VENDOR)), catalog=Depends(get_catalog)):
    return _shop(catalog.create_shop(actor, body.model_dump()))


@router.put("/shops/{shop_id}")
def update_shop(shop_id: int, body: ShopUpdate, actor: Actor = Depends(current_actor), catalog=Depends(get_catalog)):
    return _shop(catalog.update_shop(actor, shop_id, body.model_dump(exclude_unset=True)))


@router.put("/shops/{shop_id}/toggle")
def toggle_shop(shop_id: int, actor: Actor = Depends(current_actor), catalog=Depends(get_catalog)):
    return _shop(catalog.toggle_shop(actor, shop_id))


@router.delete("/shops/{shop_id}", status_code=204)
def delete_shop(shop_id: int, actor: Actor = Depends(current_actor), catalog=Depends(get_catalog)):
    catalog.delete_shop(actor, shop_id)
    return Response(status_code=204)


@router.get("/vendor/shops")
def vendor_shops(actor: Actor = Depends(require_role(Role.VENDOR)), catalog=Depends(get_catalog)):
    return [_shop(shop) for shop in catalog.vendor_shops(actor)]


@router.get("/admin/shops")
def admin_shops(actor: Actor = Depends(require_role(Role.ADMIN)), catalog=Depends(get_catalog)):
    return [_shop(shop) for shop in catalog.all_shops(actor)]


@router.post("/admin/shops/{shop_id}/approve")
def approve_shop(shop_id: int, actor: Actor = Depends(require_role(Role.ADMIN)), catalog=Depends(get_catalog)):
    return _shop(catalog.approve_shop(actor, shop_id))


# --- Products ---

@router.get("/shops/{shop_id}/products")
def list_products(shop_id: int, actor: Optional[Actor] = Depends(optional_actor), catalog=Depends(get_catalog)):
    return [_product(product) for product in catalog.list_products(shop_id, actor)]


@router.post("/shops/{shop_id}/products", status_code=201)
def create_product(shop_id: int, body: ProductCreate, actor: Actor = Depends(current_actor),
                   catalog=Depends(get_catalog)):
    return _product(catalog.create_product(actor, shop_id, body.model_dump()))


@router.put("/products/{product_id}")
def update_product(product_id: int, body: ProductUpdate, actor: Actor = Depends(current_actor),
                   catalog=Depends(get_catalog)):
    return _product(catalog.update_product(actor, product_id, body.model_dump(exclude_unset=True)))


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: int, actor: Actor = Depends(current_actor), catalog=Depends(get_catalog)):
    catalog.delete_product(actor, product_id)
    return Response(status_code=204)
