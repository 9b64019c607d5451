# tests/test_migration.py
# Every column the backend writes exists once the migration has run

import os
import re

import pytest

from billing.events import parse_event
from billing.plans import PlanCatalog, build_plans
from core.config import Settings
from webhooks.stripe_webhook import checkout_values, subscription_values

MIGRATION = os.path.join(
    os.path.dirname(__file__), "..", "supabase", "migrations", "001_integration_hub.sql"
)

# base tables provisioned with the Supabase project
BASE_COLUMNS = {
    "users": {"id", "email", "subscription_tier", "integration_limit", "stripe_customer_id", "avatar_url", "created_at"},
    "integrations": {"id", "user_id", "name", "platform", "status", "last_sync", "error_message", "created_at"},
}


@pytest.fixture(scope="module")
def sql():
    with open(MIGRATION) as f:
        return f.read()


def columns(sql, table):
    added = set()
    for block in re.findall(rf"alter table public\.{table}\s+(.*?);", sql, re.S):
        added |= set(re.findall(r"add column if not exists (\w+)", block))
    return BASE_COLUMNS[table] | added


class TestMigration:

    def test_create_integration_columns_exist(self, sql):
        insert = re.search(r"insert into public\.integrations \(([^)]*)\)", sql)
        written = {c.strip() for c in insert.group(1).split(",")}

        assert written <= columns(sql, "integrations")

    def test_wizard_row_columns_exist(self, sql):
        # keys of the row IntegrationWizard.finish sends through create_integration
        written = {"name", "platform", "source_platform", "field_mappings", "status"}

        assert written <= columns(sql, "integrations")

    def test_subscription_columns_exist(self, sql):
        catalog = PlanCatalog(build_plans(Settings()))
        completed = parse_event({
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "customer": "cus_1", "subscription": "sub_1"}},
        })
        deleted = parse_event({
            "id": "evt_2",
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1", "customer": "cus_1", "status": "canceled"}},
        })

        written = set(checkout_values(completed, catalog)) | set(subscription_values(deleted, catalog))

        assert written <= columns(sql, "users")
