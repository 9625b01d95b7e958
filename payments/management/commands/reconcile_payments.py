from django.core.management.base import BaseCommand, CommandError

from payments.models import Payment
from payments.settlement import apply_capacity, apply_membership, normalize_class_ids, pending_steps


class Command(BaseCommand):
    help = 'Re-run the enrollment and class count steps of partially settled payments.'

    def add_arguments(self, parser):
        parser.add_argument('--payment', type=int, help='Only reconcile this payment id')
        parser.add_argument('--dry-run', action='store_true', help='Report pending steps without writing')

    def handle(self, *args, **options):
        payments = Payment.objects.order_by('created')
        if options['payment']:
            payments = payments.filter(pk=options['payment'])
            if not payments.exists():
                raise CommandError(f"Payment {options['payment']} does not exist.")

        pending = failed = 0
        for payment in payments.iterator():
            membership_missing, missing_capacity = pending_steps(payment)
            if not membership_missing and not missing_capacity:
                continue

            pending += 1
            self.stdout.write(
                f"Payment {payment.pk} ({payment.email}): membership "
                f"{'pending' if membership_missing else 'done'}, "
                f"class counts pending for {sorted(missing_capacity) or 'none'}"
            )
            if options['dry_run']:
                continue

            outcomes = []
            if membership_missing:
                outcomes.append(apply_membership(payment.email, normalize_class_ids(payment.class_ids)))
            if missing_capacity:
                outcomes.append(apply_capacity(payment, sorted(missing_capacity)))
            for outcome in outcomes:
                if not outcome.succeeded:
                    failed += 1
                    self.stderr.write(self.style.ERROR(f"Payment {payment.pk}: {outcome.error}"))

        if not pending:
            self.stdout.write(self.style.SUCCESS("All payments are fully settled."))
        elif options['dry_run']:
            self.stdout.write(self.style.WARNING(f"{pending} payment(s) need reconciliation."))
        elif failed:
            raise CommandError(f"{failed} step(s) still failing across {pending} payment(s).")
        else:
            self.stdout.write(self.style.SUCCESS(f"Reconciled {pending} payment(s)."))
