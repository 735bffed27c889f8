from django.db import models


class Notification(models.Model):
    TYPE_CHOICES = [
        ("payment_received", "Payment Received"),
        ("payment_failed", "Payment Failed"),
        ("webhook_failed", "Webhook Failed"),
    ]

    user = models.ForeignKey(
        "authentication.User",
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    body = models.TextField()
    action_url = models.CharField(max_length=255, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
