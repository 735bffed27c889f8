from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.payments.exceptions import ProcessingError
from apps.payments.models import PaymentWebhookLog
from apps.payments.webhooks import process_delivery


class Command(BaseCommand):
    help = "Re-run a FAILED Razorpay webhook delivery from the webhook ledger."

    def add_arguments(self, parser):
        parser.add_argument("log_id", help="PaymentWebhookLog id to replay")
        parser.add_argument(
            "--force",
            action="store_true",
            help="Replay even if the entry did not fail",
        )

    def handle(self, *args, **options):
        try:
            entry = PaymentWebhookLog.objects.get(pk=options["log_id"])
        except (PaymentWebhookLog.DoesNotExist, ValidationError) as exc:
            raise CommandError(f"Webhook log {options['log_id']} not found") from exc

        if not entry.signature_verified:
            raise CommandError("Refusing to replay a delivery whose signature never verified")
        if entry.status != "FAILED" and not options["force"]:
            raise CommandError(f"Webhook log {entry.id} is {entry.status}; use --force to replay anyway")
        if not isinstance(entry.payload, dict):
            raise CommandError(f"Webhook log {entry.id} has no stored payload")

        try:
            result = process_delivery(
                payload=entry.payload,
                raw_body=entry.raw_body,
                signature=entry.signature,
                event_id=entry.razorpay_event_id,
                ip_address=None,
            )
        except ProcessingError as exc:
            raise CommandError(f"Replay failed: {exc}") from exc

        if not result.success:
            raise CommandError(f"Replay recorded as FAILED: {result.error}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Replayed {entry.event} for order {entry.razorpay_order_id or '-'} "
                f"(payment={result.payment_id or '-'}, changed={result.changed})"
            )
        )
