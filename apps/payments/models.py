import uuid

from django.db import models


class Payment(models.Model):
    PAYMENT_TYPE_CHOICES = [
        ("advance", "Advance"),
        ("balance", "Balance"),
    ]

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("completed", "Completed"),
        ("failed", "Failed"),
        ("refunded", "Refunded"),
    ]

    SOURCE_CHOICES = [
        ("webhook", "Webhook"),
        ("verify", "Client verify"),
        ("manual", "Manual"),
    ]

    IMMUTABLE_FIELDS = ("amount", "currency")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    proposal = models.ForeignKey(
        "proposals.Proposal",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payments",
    )
    payment_type = models.CharField(max_length=10, choices=PAYMENT_TYPE_CHOICES)
    amount = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=3)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    razorpay_order_id = models.CharField(max_length=100, unique=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True, null=True)
    razorpay_signature = models.CharField(max_length=255, blank=True, null=True)
    payment_method = models.CharField(max_length=50, blank=True, null=True)
    failure_reason = models.TextField(blank=True, null=True)
    confirmed_via = models.CharField(max_length=10, choices=SOURCE_CHOICES, blank=True, null=True)
    paid_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.payment_type} {self.razorpay_order_id} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            stored = type(self).objects.filter(pk=self.pk).values(*self.IMMUTABLE_FIELDS).first()
            if stored:
                for field in self.IMMUTABLE_FIELDS:
                    if stored[field] != getattr(self, field):
                        raise ValueError(f"Payment.{field} cannot change after creation")
        super().save(*args, **kwargs)


class PaymentWebhookLog(models.Model):
    """
    Append-only record of every inbound Razorpay webhook call.

    Doubles as the idempotency table: a signature-verified entry with a
    terminal status for an event id means that event has been handled.
    """

    STATUS_CHOICES = [
        ("RECEIVED", "Received"),
        ("PROCESSED", "Processed"),
        ("FAILED", "Failed"),
    ]

    TERMINAL_STATUSES = ("PROCESSED", "FAILED")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.CharField(max_length=100, blank=True)
    razorpay_event_id = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    razorpay_order_id = models.CharField(max_length=100, blank=True, db_index=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True, null=True)
    payload = models.JSONField(blank=True, null=True)
    raw_body = models.TextField(blank=True)
    signature = models.CharField(max_length=255, blank=True)
    signature_verified = models.BooleanField(default=False)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="RECEIVED")
    error = models.TextField(blank=True, null=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    payment = models.ForeignKey(
        Payment,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="webhook_logs",
    )
    processed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.event} {self.razorpay_event_id or '-'} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Webhook log entries are append-only")
        super().save(*args, **kwargs)
