import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("proposals", "0001_initial"),
        ("projects", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "payment_type",
                    models.CharField(choices=[("advance", "Advance"), ("balance", "Balance")], max_length=10),
                ),
                ("amount", models.PositiveBigIntegerField()),
                ("currency", models.CharField(max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("razorpay_order_id", models.CharField(max_length=100, unique=True)),
                ("razorpay_payment_id", models.CharField(blank=True, max_length=100, null=True)),
                ("razorpay_signature", models.CharField(blank=True, max_length=255, null=True)),
                ("payment_method", models.CharField(blank=True, max_length=50, null=True)),
                ("failure_reason", models.TextField(blank=True, null=True)),
                (
                    "confirmed_via",
                    models.CharField(
                        blank=True,
                        choices=[("webhook", "Webhook"), ("verify", "Client verify"), ("manual", "Manual")],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "project",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments",
                        to="projects.project",
                    ),
                ),
                (
                    "proposal",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="proposals.proposal",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PaymentWebhookLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("event", models.CharField(blank=True, max_length=100)),
                ("razorpay_event_id", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ("razorpay_order_id", models.CharField(blank=True, db_index=True, max_length=100)),
                ("razorpay_payment_id", models.CharField(blank=True, max_length=100, null=True)),
                ("payload", models.JSONField(blank=True, null=True)),
                ("raw_body", models.TextField(blank=True)),
                ("signature", models.CharField(blank=True, max_length=255)),
                ("signature_verified", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("RECEIVED", "Received"), ("PROCESSED", "Processed"), ("FAILED", "Failed")],
                        default="RECEIVED",
                        max_length=10,
                    ),
                ),
                ("error", models.TextField(blank=True, null=True)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="webhook_logs",
                        to="payments.payment",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
