from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.authentication.models import User
from apps.payments.exceptions import ProvisioningError
from apps.proposals.models import Inquiry, Proposal

from .models import Deliverable, Project

if TYPE_CHECKING:
    from apps.payments.models import Payment


logger = logging.getLogger(__name__)

PROJECT_NUMBER_PREFIX = "PROJ"
MAX_NUMBER_ATTEMPTS = 5


def format_project_number(year: int, sequence: int) -> str:
    return f"{PROJECT_NUMBER_PREFIX}-{year}-{sequence:03d}"


def next_project_number(year: int) -> str:
    prefix = f"{PROJECT_NUMBER_PREFIX}-{year}-"
    highest = 0
    for number in Project.objects.filter(project_number__startswith=prefix).values_list("project_number", flat=True):
        try:
            highest = max(highest, int(number.rsplit("-", 1)[1]))
        except (IndexError, ValueError):
            continue
    return format_project_number(year, highest + 1)


def resolve_client(inquiry: Inquiry) -> User:
    email = User.objects.normalize_email(inquiry.contact_email or "").strip()
    if not email:
        raise ProvisioningError(f"Inquiry {inquiry.inquiry_number} has no contact email")

    client = User.objects.filter(email__iexact=email).first()
    if client:
        return client

    try:
        with transaction.atomic():
            return User.objects.create_user(
                email=email,
                full_name=inquiry.contact_name or email,
                role="client",
                company_name=inquiry.company_name,
            )
    except IntegrityError:
        # Created concurrently by another request.
        return User.objects.get(email__iexact=email)


def parse_deliverables(proposal: Proposal) -> list[dict]:
    raw = proposal.deliverables or []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ProvisioningError(f"Proposal {proposal.id} has malformed deliverables") from exc

    if not isinstance(raw, list):
        raise ProvisioningError(f"Proposal {proposal.id} deliverables must be a list")

    entries = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ProvisioningError(f"Proposal {proposal.id} has a deliverable without a name")
        entries.append(entry)
    return entries


def _create_project(proposal: Proposal, inquiry: Inquiry, client: User) -> Project:
    year = timezone.now().year
    for _ in range(MAX_NUMBER_ATTEMPTS):
        project_number = next_project_number(year)
        try:
            with transaction.atomic():
                return Project.objects.create(
                    project_number=project_number,
                    proposal=proposal,
                    inquiry=inquiry,
                    client=client,
                    status="active",
                )
        except IntegrityError:
            if Project.objects.filter(proposal=proposal).exists():
                raise ProvisioningError(f"Project already exists for proposal {proposal.id}")
            logger.warning("Project number %s taken, retrying", project_number)
    raise ProvisioningError("Failed to allocate a unique project number")


def provision_project_for_payment(payment: Payment) -> Project:
    """
    Materialize the project for a freshly completed advance payment.

    Must run inside the transaction that completed the payment so that a
    failure here also rolls the payment back to its previous state. The
    proposal row is locked for the duration, which serializes concurrent
    provisioning for the same proposal.
    """
    if payment.payment_type != "advance":
        raise ProvisioningError(f"Payment {payment.id} is not an advance payment")
    if payment.project_id:
        return payment.project

    try:
        proposal = Proposal.objects.select_for_update().get(pk=payment.proposal_id)
    except Proposal.DoesNotExist as exc:
        raise ProvisioningError(f"Proposal {payment.proposal_id} not found") from exc
    inquiry = proposal.inquiry

    now = timezone.now()
    project = Project.objects.filter(proposal=proposal).first()
    if project:
        logger.warning(
            "Proposal %s already has project %s; linking payment %s to it",
            proposal.id,
            project.project_number,
            payment.id,
        )
    else:
        deliverables = parse_deliverables(proposal)
        client = resolve_client(inquiry)
        project = _create_project(proposal, inquiry, client)

        rows: list[Deliverable] = []
        for entry in deliverables:
            fields = {
                "project": project,
                "name": entry["name"],
                "description": entry.get("description") or "",
                "estimated_completion_week": entry.get("estimatedCompletionWeek"),
                "status": "pending",
            }
            if entry.get("id"):
                fields["id"] = entry["id"]
            rows.append(Deliverable(**fields))
        Deliverable.objects.bulk_create(rows)

        inquiry.status = "converted"
        inquiry.converted_project = project
        inquiry.converted_at = now
        inquiry.save(update_fields=["status", "converted_project", "converted_at", "updated_at"])

        logger.info(
            "Provisioned project %s with %d deliverable(s) for proposal %s",
            project.project_number,
            len(deliverables),
            proposal.id,
        )

    type(payment).objects.filter(pk=payment.pk, project__isnull=True).update(project=project, updated_at=now)
    payment.project = project
    return project
