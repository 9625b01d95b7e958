from django.contrib import admin
from .models import Payment, CapacityIncrement


class CapacityIncrementInline(admin.TabularInline):
    model = CapacityIncrement
    extra = 0
    can_delete = False
    readonly_fields = ['enrolled_class', 'applied_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'email', 'amount', 'currency', 'transaction_id', 'created']
    list_filter = ['currency', 'created']
    search_fields = ['email', 'transaction_id', 'idempotency_key']
    readonly_fields = ['email', 'amount', 'currency', 'class_ids', 'transaction_id', 'idempotency_key', 'created']
    inlines = [CapacityIncrementInline]

    # The ledger is append-only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
