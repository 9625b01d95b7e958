from rest_framework import serializers
from .charges import to_major_units
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    total_price = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = ['id', 'email', 'amount', 'total_price', 'currency', 'class_ids', 'transaction_id', 'created']
        read_only_fields = fields

    def get_total_price(self, obj):
        return str(to_major_units(obj.amount))


class QuoteRequestSerializer(serializers.Serializer):
    # Prices are checked by the charge calculator so an empty cart reaches it too.
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)


class SettlementRequestSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1, help_text="Charged amount in cents")
    class_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    transaction_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class StepOutcomeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['succeeded', 'failed'])
    error = serializers.CharField(required=False)
    code = serializers.CharField(required=False)
    failed_class_ids = serializers.ListField(child=serializers.IntegerField(), required=False)


class SettlementOutcomeSerializer(serializers.Serializer):
    """Response schema for a settlement: one entry per step after the ledger write."""
    payment_id = serializers.IntegerField()
    replayed = serializers.BooleanField()
    settled = serializers.BooleanField()
    class_ids = serializers.ListField(child=serializers.IntegerField())
    membership = StepOutcomeSerializer()
    capacity = StepOutcomeSerializer()


class QuoteResponseSerializer(serializers.Serializer):
    clientSecret = serializers.CharField()
    totalPrice = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount = serializers.IntegerField()
