from unittest import mock

import pytest
from django.db import transaction
from django.utils import timezone

from apps.authentication.models import User
from apps.payments.exceptions import ProvisioningError
from apps.projects.models import Deliverable, Project
from apps.projects.services import (
    format_project_number,
    next_project_number,
    parse_deliverables,
    provision_project_for_payment,
    resolve_client,
)
from apps.proposals.models import Inquiry, Proposal

pytestmark = pytest.mark.django_db


def other_proposal(number="INQ-OTHER"):
    inquiry = Inquiry.objects.create(
        inquiry_number=number,
        contact_name="Other",
        contact_email=f"{number.lower()}@example.com",
    )
    return Proposal.objects.create(
        inquiry=inquiry,
        status="accepted",
        total_price=1000,
        advance_amount=500,
        balance_amount=500,
    )


def provision(payment):
    with transaction.atomic():
        return provision_project_for_payment(payment)


class TestProjectNumbers:
    def test_format_pads_sequence(self):
        assert format_project_number(2025, 7) == "PROJ-2025-007"
        assert format_project_number(2025, 1234) == "PROJ-2025-1234"

    def test_first_number_of_the_year(self):
        assert next_project_number(2025) == "PROJ-2025-001"

    def test_follows_highest_existing_number(self):
        first = other_proposal("INQ-A")
        second = other_proposal("INQ-B")
        Project.objects.create(project_number="PROJ-2025-003", proposal=first, inquiry=first.inquiry)
        Project.objects.create(project_number="PROJ-2024-041", proposal=second, inquiry=second.inquiry)

        assert next_project_number(2025) == "PROJ-2025-004"
        assert next_project_number(2024) == "PROJ-2024-042"
        assert next_project_number(2026) == "PROJ-2026-001"

    def test_ignores_numbers_with_non_numeric_suffix(self):
        first = other_proposal()
        Project.objects.create(project_number="PROJ-2025-legacy", proposal=first, inquiry=first.inquiry)

        assert next_project_number(2025) == "PROJ-2025-001"


class TestResolveClient:
    def test_reuses_existing_user_case_insensitively(self, inquiry):
        existing = User.objects.create_user(email="asha@example.com", full_name="Asha", role="client")

        assert resolve_client(inquiry) == existing
        assert User.objects.count() == 1

    def test_creates_client_account(self, inquiry):
        client = resolve_client(inquiry)

        assert client.role == "client"
        assert client.full_name == "Asha Rao"
        assert client.company_name == "Rao Textiles"
        assert not client.has_usable_password()

    def test_requires_contact_email(self, inquiry):
        inquiry.contact_email = ""

        with pytest.raises(ProvisioningError):
            resolve_client(inquiry)


class TestParseDeliverables:
    def test_accepts_json_string(self, proposal):
        proposal.deliverables = '[{"name": "Logo"}]'

        assert parse_deliverables(proposal) == [{"name": "Logo"}]

    def test_empty(self, proposal):
        proposal.deliverables = []

        assert parse_deliverables(proposal) == []

    @pytest.mark.parametrize(
        "raw",
        ["{not json", '{"name": "Logo"}', [{"description": "no name"}], ["Logo"]],
    )
    def test_rejects_malformed(self, proposal, raw):
        proposal.deliverables = raw

        with pytest.raises(ProvisioningError):
            parse_deliverables(proposal)


class TestProvisionProject:
    def test_creates_project_with_deliverables(self, advance_payment, proposal, inquiry):
        project = provision(advance_payment)

        assert project.proposal == proposal
        assert project.inquiry == inquiry
        assert project.project_number == f"PROJ-{timezone.now().year}-001"
        assert project.total_revisions_allowed == 2
        assert project.revisions_used == 0

        logo = Deliverable.objects.get(pk=proposal.deliverables[0]["id"])
        assert logo.project == project
        assert logo.name == "Logo"
        assert logo.description == "Primary mark and variants"
        assert logo.estimated_completion_week == 2
        assert project.deliverables.count() == 2

        advance_payment.refresh_from_db()
        assert advance_payment.project == project

    def test_deliverables_without_ids_get_fresh_ones(self, advance_payment, proposal):
        proposal.deliverables = [{"name": "Website"}]
        proposal.save()

        project = provision(advance_payment)

        assert project.deliverables.get().name == "Website"

    def test_links_to_existing_project_instead_of_duplicating(self, make_payment):
        first = make_payment()
        second = make_payment()
        project = provision(first)

        assert provision(second) == project
        assert Project.objects.count() == 1
        second.refresh_from_db()
        assert second.project == project

    def test_returns_linked_project(self, advance_payment):
        project = provision(advance_payment)

        assert provision(advance_payment) == project

    def test_rejects_balance_payments(self, make_payment):
        with pytest.raises(ProvisioningError):
            provision(make_payment(payment_type="balance"))

    def test_retries_on_project_number_collision(self, advance_payment):
        year = timezone.now().year
        taken = other_proposal()
        Project.objects.create(
            project_number=format_project_number(year, 1),
            proposal=taken,
            inquiry=taken.inquiry,
        )

        with mock.patch(
            "apps.projects.services.next_project_number",
            side_effect=[format_project_number(year, 1), format_project_number(year, 2)],
        ):
            project = provision(advance_payment)

        assert project.project_number == format_project_number(year, 2)

    def test_gives_up_after_repeated_collisions(self, advance_payment):
        year = timezone.now().year
        taken = other_proposal()
        Project.objects.create(
            project_number=format_project_number(year, 1),
            proposal=taken,
            inquiry=taken.inquiry,
        )

        with mock.patch(
            "apps.projects.services.next_project_number",
            return_value=format_project_number(year, 1),
        ):
            with pytest.raises(ProvisioningError, match="unique project number"):
                provision(advance_payment)

    def test_bad_deliverables_leave_nothing_behind(self, advance_payment, proposal, inquiry):
        proposal.deliverables = [{"description": "unnamed"}]
        proposal.save()

        with pytest.raises(ProvisioningError):
            provision(advance_payment)

        assert not Project.objects.exists()
        assert not User.objects.filter(email__iexact=inquiry.contact_email).exists()
        inquiry.refresh_from_db()
        assert inquiry.status == "accepted"
