"""Shared FastAPI dependencies."""

from fastapi import Request

from carmart.features.entitlements.gateway import EntitlementGateway
from carmart.features.listings.service import SqlListingStore
from carmart.features.subscriptions.resolver import SubscriptionResolver
from carmart.features.subscriptions.service import SqlSubscriptionStore
from carmart.features.tiers.catalog import TierCatalog


def build_entitlement_gateway(catalog: TierCatalog) -> EntitlementGateway:
    return EntitlementGateway(
        resolver=SubscriptionResolver(catalog),
        subscription_store=SqlSubscriptionStore(),
        listing_store=SqlListingStore(),
    )


def get_tier_catalog(request: Request) -> TierCatalog:
    return request.app.state.tier_catalog


def get_entitlement_gateway(request: Request) -> EntitlementGateway:
    return request.app.state.entitlement_gateway
