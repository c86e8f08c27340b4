"""Dependency injection singletons for Mi Store."""

from mistore.accounts.service import AccountService
from mistore.catalog.service import CatalogService
from mistore.common.config import get_settings
from mistore.common.database import DatabaseManager
from mistore.payments.gateway import PaymentGateway, StripeGateway
from mistore.payments.ledger import PaymentLedger
from mistore.reviews.service import ReviewService
from mistore.storage.gateway import ObjectStore, S3ObjectStore
from mistore.storefront.service import StorefrontService

_db: DatabaseManager | None = None
_catalog: CatalogService | None = None
_ledger: PaymentLedger | None = None
_object_store: ObjectStore | None = None
_payment_gateway: PaymentGateway | None = None
_storefront: StorefrontService | None = None
_accounts: AccountService | None = None
_reviews: ReviewService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_catalog_service() -> CatalogService:
    global _catalog
    if _catalog is None:
        _catalog = CatalogService()
    return _catalog


def get_payment_ledger() -> PaymentLedger:
    global _ledger
    if _ledger is None:
        _ledger = PaymentLedger()
    return _ledger


def get_object_store() -> ObjectStore:
    global _object_store
    if _object_store is None:
        _object_store = S3ObjectStore(get_settings())
    return _object_store


def get_payment_gateway() -> PaymentGateway:
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = StripeGateway(get_settings())
    return _payment_gateway


def get_storefront_service() -> StorefrontService:
    global _storefront
    if _storefront is None:
        _storefront = StorefrontService(
            get_settings(),
            catalog=get_catalog_service(),
            ledger=get_payment_ledger(),
            object_store=get_object_store(),
            payment_gateway=get_payment_gateway(),
        )
    return _storefront


def get_account_service() -> AccountService:
    global _accounts
    if _accounts is None:
        _accounts = AccountService()
    return _accounts


def get_review_service() -> ReviewService:
    global _reviews
    if _reviews is None:
        _reviews = ReviewService(get_catalog_service())
    return _reviews


def override_gateways(
    object_store: ObjectStore | None = None,
    payment_gateway: PaymentGateway | None = None,
) -> None:
    """Swap in alternative gateways (tests, local development)."""
    global _object_store, _payment_gateway, _storefront
    if object_store is not None:
        _object_store = object_store
    if payment_gateway is not None:
        _payment_gateway = payment_gateway
    _storefront = None


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _catalog, _ledger, _object_store, _payment_gateway
    global _storefront, _accounts, _reviews
    _db = None
    _catalog = None
    _ledger = None
    _object_store = None
    _payment_gateway = None
    _storefront = None
    _accounts = None
    _reviews = None
