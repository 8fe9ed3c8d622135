from io import StringIO

import pytest
from django.core.management import call_command

from modules.accounts.models import StoreProfile, User
from modules.logistics.models import Colony, SystemSettings
from modules.orders.models import Order

pytestmark = pytest.mark.integration


def test_seed_data_builds_a_working_marketplace():
    out = StringIO()

    call_command("seed_data", orders=4, stdout=out)

    assert "Seed completed" in out.getvalue()
    assert SystemSettings.objects.count() == 1
    assert Colony.objects.count() == 5
    assert StoreProfile.objects.filter(is_open=True).count() == 3
    assert User.objects.filter(username="admin", is_superuser=True).exists()
    assert Order.objects.count() == 4
    assert not Order.objects.filter(fee_reconciliation_required=True).exists()


def test_seed_data_is_idempotent_for_reference_data():
    call_command("seed_data", orders=0, stdout=StringIO())
    call_command("seed_data", orders=0, stdout=StringIO())

    assert Colony.objects.count() == 5
    assert StoreProfile.objects.count() == 3
