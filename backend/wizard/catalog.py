# backend/wizard/catalog.py
# Platform catalog for the integration wizard

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel


class AuthType(str, Enum):
    OAUTH = "oauth"
    API_KEY = "api_key"


class PlatformField(BaseModel):
    id: str
    name: str


class Platform(BaseModel):
    id: str
    name: str
    auth_type: AuthType
    logo: str
    authorize_url: Optional[str] = None
    status_url: Optional[str] = None
    fields: List[PlatformField] = []


def _fields(*pairs) -> List[PlatformField]:
    return [PlatformField(id=i, name=n) for i, n in pairs]


PLATFORMS: Dict[str, Platform] = {
    "salesforce": Platform(
        id="salesforce",
        name="Salesforce",
        auth_type=AuthType.OAUTH,
        logo="/logos/salesforce.png",
        authorize_url="https://login.salesforce.com/services/oauth2/authorize",
        status_url="https://login.salesforce.com",
        fields=_fields(
            ("AccountId", "Account ID"),
            ("Name", "Account Name"),
            ("Email", "Email"),
            ("Amount", "Opportunity Amount"),
            ("CreatedDate", "Created Date"),
        ),
    ),
    "hubspot": Platform(
        id="hubspot",
        name="HubSpot",
        auth_type=AuthType.OAUTH,
        logo="/logos/hubspot.png",
        authorize_url="https://app.hubspot.com/oauth/authorize",
        status_url="https://api.hubapi.com",
        fields=_fields(
            ("hs_object_id", "Contact ID"),
            ("firstname", "First Name"),
            ("email", "Email"),
            ("amount", "Deal Amount"),
            ("createdate", "Create Date"),
        ),
    ),
    "shopify": Platform(
        id="shopify",
        name="Shopify",
        auth_type=AuthType.API_KEY,
        logo="/logos/shopify.png",
        status_url="https://www.shopify.com",
        fields=_fields(
            ("customerName", "Customer Name"),
            ("orderInfo", "Order Info"),
            ("email", "Email"),
            ("total_price", "Total Price"),
            ("created_at", "Created At"),
        ),
    ),
    "google_sheets": Platform(
        id="google_sheets",
        name="Google Sheets",
        auth_type=AuthType.OAUTH,
        logo="/logos/google-sheets.png",
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        status_url="https://sheets.googleapis.com",
        fields=_fields(
            ("column_a", "Column A"),
            ("column_b", "Column B"),
            ("column_c", "Column C"),
            ("column_d", "Column D"),
        ),
    ),
    "stripe": Platform(
        id="stripe",
        name="Stripe",
        auth_type=AuthType.API_KEY,
        logo="/logos/stripe.png",
        status_url="https://api.stripe.com",
        fields=_fields(
            ("customer", "Customer ID"),
            ("email", "Email"),
            ("amount", "Amount"),
            ("created", "Created"),
        ),
    ),
    "mailchimp": Platform(
        id="mailchimp",
        name="Mailchimp",
        auth_type=AuthType.API_KEY,
        logo="/logos/mailchimp.png",
        status_url="https://login.mailchimp.com",
        fields=_fields(
            ("email_address", "Email Address"),
            ("FNAME", "First Name"),
            ("LNAME", "Last Name"),
            ("status", "Subscription Status"),
        ),
    ),
    "airtable": Platform(
        id="airtable",
        name="Airtable",
        auth_type=AuthType.API_KEY,
        logo="/logos/airtable.png",
        status_url="https://api.airtable.com",
        fields=_fields(
            ("record_id", "Record ID"),
            ("name", "Name"),
            ("email", "Email"),
            ("notes", "Notes"),
        ),
    ),
    "zendesk": Platform(
        id="zendesk",
        name="Zendesk",
        auth_type=AuthType.OAUTH,
        logo="/logos/zendesk.png",
        authorize_url="https://www.zendesk.com/oauth/authorizations/new",
        status_url="https://www.zendesk.com",
        fields=_fields(
            ("requester_id", "Requester ID"),
            ("subject", "Subject"),
            ("email", "Requester Email"),
            ("status", "Ticket Status"),
        ),
    ),
}


class PlatformCatalog:
    """Catalog accessor"""

    PLATFORMS = PLATFORMS

    @classmethod
    def get_all(cls) -> Dict[str, Platform]:
        return cls.PLATFORMS

    @classmethod
    def get(cls, platform_id: Optional[str]) -> Optional[Platform]:
        return cls.PLATFORMS.get(platform_id) if platform_id else None

    @classmethod
    def by_auth_type(cls, auth_type: AuthType) -> Dict[str, Platform]:
        return {k: v for k, v in cls.PLATFORMS.items() if v.auth_type == auth_type}
