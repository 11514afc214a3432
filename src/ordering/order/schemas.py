"""Pydantic request/response schemas for order placement.

These are the external contract of ``create_order``. Client-side prices and
totals are accepted so they can be compared with the server's figures, but
they never feed into the order's money.

String limits match the stored order snapshot, so an oversized field is
rejected with ``pydantic.ValidationError`` before placement starts rather
than surfacing later as a storage failure.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RequestedItem(BaseModel):
    product_id: str
    quantity: int | float  # whole-number check happens with the other order bounds
    price: float | None = None  # client-side price, logged only


class ShippingDetails(BaseModel):
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str = Field(max_length=255)
    city: str = Field(max_length=100)
    postal_code: str = Field(max_length=20)
    country: str = Field(max_length=100)
    accept_terms: bool = False


class AttributionData(BaseModel):
    utm_source: str | None = Field(default=None, max_length=255)
    utm_medium: str | None = Field(default=None, max_length=255)
    utm_campaign: str | None = Field(default=None, max_length=255)
    utm_term: str | None = Field(default=None, max_length=255)
    utm_content: str | None = Field(default=None, max_length=255)
    referrer: str | None = Field(default=None, max_length=1000)
    landing_page: str | None = Field(default=None, max_length=1000)


class OrderRequest(BaseModel):
    items: list[RequestedItem] = Field(min_length=1)
    shipping: ShippingDetails
    promo_code: str | None = Field(default=None, max_length=50)
    total: float | None = None  # client-side total, logged only
    attribution: AttributionData | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2, "price": 10.0}],
                    "shipping": {
                        "first_name": "Jane",
                        "last_name": "Doe",
                        "email": "jane@example.com",
                        "phone": "+33100000000",
                        "address": "1 Rue de la Paix",
                        "city": "Paris",
                        "postal_code": "75002",
                        "country": "FR",
                        "accept_terms": True,
                    },
                    "promo_code": "WELCOME10",
                }
            ]
        }
    }


class OrderSummary(BaseModel):
    id: str
    order_number: str
    status: str
    total: float
    created_at: datetime
