from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from boxoffice.platform.types import UtilsUUID7
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.value_object.price_breakdown import PriceBreakdown


class GuestContactRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    phone: Optional[str] = None


class CheckoutCreateRequest(BaseModel):
    inventory_unit_id: int
    quantity: int = Field(ge=1)
    promo_code: Optional[str] = None
    guest: Optional[GuestContactRequest] = None  # Ignored when a bearer token is present

    class Config:
        json_schema_extra = {
            'examples': [
                {'inventory_unit_id': 1, 'quantity': 2, 'promo_code': 'EARLYBIRD'},
                {
                    'inventory_unit_id': 1,
                    'quantity': 1,
                    'guest': {'email': 'juan@example.com', 'name': 'Juan Dela Cruz'},
                },
            ]
        }


class PriceBreakdownResponse(BaseModel):
    fee_model: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    platform_fee_percent: Decimal
    platform_fee: Decimal
    processing_fee: Decimal
    fixed_fee: Decimal
    total: Decimal
    seller_payout: Decimal

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown) -> 'PriceBreakdownResponse':
        return cls(
            fee_model=breakdown.fee_model.value,
            unit_price=breakdown.unit_price,
            quantity=breakdown.quantity,
            subtotal=breakdown.subtotal,
            discount=breakdown.discount,
            platform_fee_percent=breakdown.platform_fee_percent,
            platform_fee=breakdown.platform_fee,
            processing_fee=breakdown.processing_fee,
            fixed_fee=breakdown.fixed_fee,
            total=breakdown.total,
            seller_payout=breakdown.seller_payout,
        )


class CheckoutResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'intent_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'status': 'pending',
                'payment_url': 'https://checkout.xendit.co/web/ps-6789',
                'expires_at': '2025-01-10T10:45:00Z',
                'price_breakdown': {
                    'fee_model': 'absorbed',
                    'unit_price': '500.00',
                    'quantity': 2,
                    'subtotal': '1000.00',
                    'discount': '0.00',
                    'platform_fee_percent': '10',
                    'platform_fee': '100.00',
                    'processing_fee': '0.00',
                    'fixed_fee': '0.00',
                    'total': '1100.00',
                    'seller_payout': '900.00',
                },
            }
        },
    }

    intent_id: UtilsUUID7
    status: str
    payment_url: Optional[str] = None
    expires_at: datetime
    price_breakdown: PriceBreakdownResponse

    @classmethod
    def from_intent(cls, intent: PurchaseIntent) -> 'CheckoutResponse':
        return cls(
            intent_id=intent.id,
            status=intent.status.value,
            payment_url=intent.payment_url,
            expires_at=intent.expires_at,
            price_breakdown=PriceBreakdownResponse.from_breakdown(intent.breakdown),
        )


class PurchaseIntentResponse(CheckoutResponse):
    quantity: int
    inventory_unit_id: int
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    refunded_amount: Optional[Decimal] = None

    @classmethod
    def from_intent(cls, intent: PurchaseIntent) -> 'PurchaseIntentResponse':
        return cls(
            intent_id=intent.id,
            status=intent.status.value,
            payment_url=intent.payment_url,
            expires_at=intent.expires_at,
            price_breakdown=PriceBreakdownResponse.from_breakdown(intent.breakdown),
            quantity=intent.quantity,
            inventory_unit_id=intent.inventory_unit_id,
            payment_method=intent.payment_method,
            created_at=intent.created_at,
            paid_at=intent.paid_at,
            refunded_at=intent.refunded_at,
            refunded_amount=intent.refunded_amount,
        )


class RefundCreateRequest(BaseModel):
    intent_id: UtilsUUID7
    amount: Optional[Decimal] = Field(default=None, gt=0)
    reason: Optional[str] = None

    class Config:
        json_schema_extra = {
            'example': {
                'intent_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'amount': '1100.00',
                'reason': 'requested_by_customer',
            }
        }


class RefundResponse(BaseModel):
    intent_id: UtilsUUID7
    refund_id: str
    amount: Decimal
    reason: str
    refunded_at: datetime
