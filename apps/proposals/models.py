import uuid

from django.db import models


class Inquiry(models.Model):
    STATUS_CHOICES = [
        ("new", "New"),
        ("reviewing", "Reviewing"),
        ("proposal_sent", "Proposal Sent"),
        ("negotiating", "Negotiating"),
        ("accepted", "Accepted"),
        ("converted", "Converted"),
        ("rejected", "Rejected"),
        ("archived", "Archived"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    inquiry_number = models.CharField(max_length=20, unique=True)
    contact_name = models.CharField(max_length=255)
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=20, blank=True, null=True)
    company_name = models.CharField(max_length=255, blank=True, null=True)
    project_notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="new")
    converted_project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="converted_inquiries",
    )
    converted_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "inquiries"

    def __str__(self) -> str:
        return self.inquiry_number


class Proposal(models.Model):
    """
    Priced offer sent to an inquiry contact.

    Amounts are stored in the minor currency unit (paise, cents) so that
    they can be handed to the payment processor unchanged. ``deliverables``
    is the list the client accepted; each entry carries an ``id``,
    ``name``, ``description`` and ``estimatedCompletionWeek``.
    """

    STATUS_CHOICES = [
        ("draft", "Draft"),
        ("sent", "Sent"),
        ("accepted", "Accepted"),
        ("rejected", "Rejected"),
        ("changes_requested", "Changes Requested"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    inquiry = models.ForeignKey(
        Inquiry,
        on_delete=models.CASCADE,
        related_name="proposals",
    )
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="draft")
    currency = models.CharField(max_length=3, default="INR")
    total_price = models.PositiveBigIntegerField()
    advance_percentage = models.PositiveSmallIntegerField(default=50)
    advance_amount = models.PositiveBigIntegerField()
    balance_amount = models.PositiveBigIntegerField()
    deliverables = models.JSONField(default=list, blank=True)
    accepted_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Proposal {self.id} for {self.inquiry.inquiry_number}"

    def amount_for(self, payment_type: str) -> int:
        if payment_type == "advance":
            return self.advance_amount
        if payment_type == "balance":
            return self.balance_amount
        raise ValueError(f"Unknown payment type: {payment_type}")
