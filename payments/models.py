from django.db import models


class Payment(models.Model):
    """A completed charge. Append-only: rows are never updated or deleted."""
    email = models.EmailField(db_index=True, help_text="Payer email")
    amount = models.PositiveIntegerField(help_text="Settled amount in currency subunits (cents)")
    currency = models.CharField(max_length=3, default='usd')
    class_ids = models.JSONField(default=list, help_text="Sorted, distinct ids of the classes settled")
    transaction_id = models.CharField(max_length=255, blank=True, help_text="Gateway reference reported by the client")
    idempotency_key = models.CharField(max_length=255, unique=True, null=True, blank=True)
    created = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created']

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Payment records are append-only and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Payment records are append-only and cannot be deleted.")

    @property
    def amount_display(self):
        return self.amount / 100

    def __str__(self):
        return f"Payment {self.pk} - {self.email} - {self.amount_display:.2f} {self.currency.upper()}"


class CapacityIncrement(models.Model):
    """Marks that ``enrolled_class`` was counted once for ``payment``."""
    payment = models.ForeignKey(
        Payment,
        on_delete=models.PROTECT,
        related_name='capacity_increments'
    )
    enrolled_class = models.ForeignKey(
        'classes.Class',
        on_delete=models.PROTECT,
        related_name='capacity_increments'
    )
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['payment', 'enrolled_class'],
                name='unique_capacity_increment_per_payment',
            ),
        ]

    def __str__(self):
        return f"Payment {self.payment_id} -> class {self.enrolled_class_id}"
