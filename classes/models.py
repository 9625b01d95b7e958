from django.db import models


class Class(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_DENIED = 'denied'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_DENIED, 'Denied'),
    )

    name = models.CharField(max_length=200)
    image = models.URLField(blank=True)
    instructor_name = models.CharField(max_length=255, blank=True)
    instructor_email = models.EmailField(db_index=True)
    capacity = models.PositiveIntegerField(default=1, help_text='Advertised seats')
    price = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    feedback = models.TextField(blank=True)
    # Only ever incremented, by payment settlement.
    enrolled_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-enrolled_count', '-created_at']

    def __str__(self):
        return self.name
