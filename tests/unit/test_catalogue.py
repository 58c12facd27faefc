import pytest
from pydantic import ValidationError as PydanticValidationError

from vendgb.catalogue import service as catalogue_service
from vendgb.catalogue.models import Product, ProductIn, ProductUpdate, to_public_product
from vendgb.errors import ProductNotFound, ValidationError


def test_product_from_row_tolerates_nulls():
    p = Product.model_validate({"id": 7, "name": "Tea", "price": 2, "tags": None, "sale_price": None})
    assert p.id == "7"
    assert p.tags == []
    assert p.unit_price == 2

def test_unit_price_ignores_sale_price_not_lower():
    assert Product(id="a", name="A", price=5, sale_price=6).unit_price == 5
    assert Product(id="a", name="A", price=5, sale_price=4).unit_price == 4

def test_public_projection_hides_internal_fields():
    p = Product(id="a", name="A", price=10, sale_price=8, tax_rate=20, cost_price=3, stock_qty=9)
    public = to_public_product(p)
    assert public["priceWithTax"] == 12.0
    assert public["salePriceWithTax"] == 9.6
    for hidden in ("costPrice", "stockQty", "taxRate"):
        assert hidden not in public

def test_product_in_sale_price_must_be_lower():
    with pytest.raises(PydanticValidationError):
        ProductIn(name="A", price=5, sale_price=5)
    assert ProductIn.model_validate({"name": "A", "price": 5, "salePrice": 4}).sale_price == 4

def test_get_unknown_product(store):
    with pytest.raises(ProductNotFound):
        catalogue_service.get("nope")

def test_list_active_sorted(store):
    store.add_product(id="b", name="B", sort_order=2)
    store.add_product(id="a", name="A", sort_order=1)
    store.add_product(id="z", name="Z", sort_order=0, active=False)
    assert [p.id for p in catalogue_service.list_active()] == ["a", "b"]
    assert len(catalogue_service.list_all()) == 3

def test_update_checks_merged_sale_price(store):
    store.add_product(id="a", name="A", price=10, sale_price=8)
    with pytest.raises(ValidationError):
        catalogue_service.update("a", ProductUpdate(price=7))
    updated = catalogue_service.update("a", ProductUpdate.model_validate({"price": 12, "salePrice": None}))
    assert updated.price == 12 and updated.sale_price is None

def test_update_without_fields(store):
    store.add_product(id="a", name="A")
    with pytest.raises(ValidationError):
        catalogue_service.update("a", ProductUpdate())

def test_create_and_delete(store):
    created = catalogue_service.create(ProductIn(name="Lemonade", price=2.5))
    assert created.name == "Lemonade"
    catalogue_service.delete(created.id)
    with pytest.raises(ProductNotFound):
        catalogue_service.delete(created.id)
