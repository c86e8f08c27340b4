"""Mi Store: app storefront backend with S3 artifacts and Stripe checkout."""

from mistore.catalog.service import CatalogService
from mistore.payments.ledger import PaymentLedger
from mistore.storefront.service import StorefrontService, Upload

__all__ = [
    "CatalogService",
    "PaymentLedger",
    "StorefrontService",
    "Upload",
]
__version__ = "0.1.0"
