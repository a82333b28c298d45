import pytest

from shoplocal.application.catalog_service import CatalogService, distance_km
from shoplocal.core.errors import AuthorizationError, NotFoundError, ValidationError
from shoplocal.application.order_manager import OrderLine
from shoplocal.domain.enums import PaymentMethod, Role


@pytest.fixture()
def catalog(shop_repo, broker):
    return CatalogService(shop_repo, broker)


class TestDistance:
    def test_zero(self):
        assert distance_km(18.52, 73.85, 18.52, 73.85) == 0

    def test_pune_to_mumbai(self):
        assert distance_km(18.5204, 73.8567, 19.0760, 72.8777) == pytest.approx(120, abs=5)


class TestShops:
    def test_listing_hides_unapproved(self, catalog, make_shop, vendor):
        approved = make_shop(vendor)
        make_shop(vendor, approved=False, name="Pending Store")
        assert [s.id for s in catalog.list_shops()] == [approved.id]

    def test_nearby_sorted_by_distance(self, catalog, make_shop, vendor):
        far = make_shop(vendor, name="Far", latitude=18.60, longitude=73.85)
        near = make_shop(vendor, name="Near", latitude=18.521, longitude=73.851)
        make_shop(vendor, name="Mumbai", latitude=19.0760, longitude=72.8777)
        make_shop(vendor, name="Nowhere")

        shops = catalog.list_shops(lat=18.52, lng=73.85, radius_km=15)
        assert [s.id for s in shops] == [near.id, far.id]

    def test_unapproved_shop_visible_to_owner_and_admin_only(self, catalog, make_shop, make_user, vendor, admin,
                                                              customer, as_actor):
        pending = make_shop(vendor, approved=False)
        assert catalog.get_shop(pending.id, as_actor(vendor)).id == pending.id
        assert catalog.get_shop(pending.id, as_actor(admin)).id == pending.id
        with pytest.raises(AuthorizationError):
            catalog.get_shop(pending.id, as_actor(customer))
        with pytest.raises(AuthorizationError):
            catalog.get_shop(pending.id, None)

    def test_create_announces_to_customers(self, catalog, broker, transport, vendor, customer, as_actor):
        broker.connect("c1", as_actor(customer))
        shop = catalog.create_shop(as_actor(vendor), {
            "name": "Fresh Mart", "address": "1 Main", "city": "Pune", "state": "MH", "is_approved": True,
        })

        assert shop.vendor_id == vendor.id
        assert shop.is_approved is False
        event, payload = transport.to("c1")[0]
        assert event == "shop-added"
        assert payload["id"] == shop.id
        assert payload["vendorId"] == vendor.id

    def test_customer_cannot_create_shop(self, catalog, customer, as_actor):
        with pytest.raises(AuthorizationError):
            catalog.create_shop(as_actor(customer), {"name": "x", "address": "a", "city": "c", "state": "s"})

    def test_only_admin_approves(self, catalog, make_shop, vendor, admin, as_actor):
        pending = make_shop(vendor, approved=False)
        with pytest.raises(AuthorizationError):
            catalog.update_shop(as_actor(vendor), pending.id, {"is_approved": True})
        assert catalog.approve_shop(as_actor(admin), pending.id).is_approved is True

    def test_toggle_flips_open_flag(self, catalog, broker, transport, shop, vendor, customer, as_actor):
        broker.connect("c1", as_actor(customer))
        toggled = catalog.toggle_shop(as_actor(vendor), shop.id)
        assert toggled.is_open is False
        assert transport.to("c1") == [("shop-toggled", {"shopId": shop.id, "isOpen": False})]

    def test_foreign_vendor_cannot_edit(self, catalog, make_user, shop, as_actor):
        stranger = make_user(Role.VENDOR)
        with pytest.raises(AuthorizationError):
            catalog.update_shop(as_actor(stranger), shop.id, {"name": "Mine now"})

    def test_delete(self, catalog, broker, transport, shop, milk, vendor, customer, as_actor):
        broker.connect("c1", as_actor(customer))
        catalog.delete_shop(as_actor(vendor), shop.id)
        assert transport.to("c1") == [("shop-deleted", {"shopId": shop.id})]
        with pytest.raises(NotFoundError):
            catalog.get_shop(shop.id, as_actor(vendor))


class TestProducts:
    def test_create_announces_on_shop_channel(self, catalog, broker, transport, shop, vendor, customer, as_actor):
        broker.connect("c1", as_actor(customer))
        broker.subscribe("c1", f"shop-{shop.id}")

        product = catalog.create_product(as_actor(vendor), shop.id, {
            "name": "Eggs", "mrp": 80.0, "selling_price": 72.0, "stock": 30,
        })
        event, payload = transport.to("c1")[0]
        assert event == "product-added"
        assert payload["id"] == product.id
        assert payload["sellingPrice"] == 72.0

    def test_selling_price_above_mrp(self, catalog, shop, vendor, as_actor):
        with pytest.raises(ValidationError):
            catalog.create_product(as_actor(vendor), shop.id, {"name": "Eggs", "mrp": 50.0, "selling_price": 60.0})

    def test_update_and_delete(self, catalog, broker, transport, shop, milk, vendor, customer, as_actor):
        broker.connect("c1", as_actor(customer))
        broker.subscribe("c1", f"shop-{shop.id}")

        updated = catalog.update_product(as_actor(vendor), milk.id, {"selling_price": 55.0})
        assert updated.selling_price == 55.0
        catalog.delete_product(as_actor(vendor), milk.id)

        assert [event for event, _ in transport.to("c1")] == ["product-updated", "product-deleted"]
        assert transport.to("c1")[1][1] == {"productId": milk.id}

    def test_list_products_of_unapproved_shop(self, catalog, make_shop, make_product, vendor, customer, as_actor):
        pending = make_shop(vendor, approved=False)
        make_product(pending)
        with pytest.raises(AuthorizationError):
            catalog.list_products(pending.id, as_actor(customer))
        assert len(catalog.list_products(pending.id, as_actor(vendor))) == 1


class TestDeleteWithHistory:
    def test_shop_with_orders(self, catalog, order_manager, broker, transport, shop, milk, vendor, customer,
                              as_actor):
        order_manager.create_order(as_actor(customer), shop_id=shop.id, payment_method=PaymentMethod.CASH,
                                   items=[OrderLine(milk.id, 1)])
        broker.connect("c1", as_actor(customer))

        with pytest.raises(ValidationError):
            catalog.delete_shop(as_actor(vendor), shop.id)
        assert catalog.get_shop(shop.id).id == shop.id
        assert catalog.list_products(shop.id)[0].id == milk.id
        assert transport.events("shop-deleted") == []

    def test_ordered_product(self, catalog, order_manager, shop, milk, vendor, customer, as_actor):
        order_manager.create_order(as_actor(customer), shop_id=shop.id, payment_method=PaymentMethod.CASH,
                                   items=[OrderLine(milk.id, 2)])
        with pytest.raises(ValidationError):
            catalog.delete_product(as_actor(vendor), milk.id)


class TestCategories:
    def test_only_admin_writes(self, catalog, vendor, as_actor):
        with pytest.raises(AuthorizationError):
            catalog.create_category(as_actor(vendor), {"name": "Dairy", "name_hi": "डेयरी", "icon": "milk"})

    def test_shop_category_must_exist(self, catalog, shop, vendor, admin, as_actor):
        with pytest.raises(ValidationError):
            catalog.update_shop(as_actor(vendor), shop.id, {"category_id": 5})

        dairy = catalog.create_category(as_actor(admin), {"name": "Dairy", "name_hi": "डेयरी", "icon": "milk"})
        updated = catalog.update_shop(as_actor(vendor), shop.id, {"category_id": dairy.id})
        assert updated.category_id == dairy.id
        assert [s.id for s in catalog.list_shops(category_id=dairy.id)] == [shop.id]
        assert catalog.list_shops(category_id=dairy.id + 1) == []

    def test_category_in_use(self, catalog, make_shop, vendor, admin, as_actor):
        dairy = catalog.create_category(as_actor(admin), {"name": "Dairy", "name_hi": "डेयरी", "icon": "milk"})
        make_shop(vendor, category_id=dairy.id)
        with pytest.raises(ValidationError):
            catalog.delete_category(as_actor(admin), dairy.id)
        assert [c.id for c in catalog.list_categories()] == [dairy.id]
