from rest_framework import serializers
from .models import Loan, Payment


class RegisterSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=255)
    last_name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=0)
    phone_number = serializers.CharField(max_length=20)
    monthly_salary = serializers.IntegerField(min_value=0)


class LoanRequestSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    loan_amount = serializers.FloatField(min_value=0)
    interest_rate = serializers.FloatField(min_value=0)
    tenure = serializers.IntegerField(min_value=1)


class PaymentRequestSerializer(serializers.Serializer):
    amountPaid = serializers.FloatField(min_value=0)


class LoanSerializer(serializers.ModelSerializer):
    customer_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Loan
        fields = ['loan_id', 'customer_id', 'loan_amount', 'interest_rate', 'tenure', 'monthly_payment',
                  'start_date', 'end_date', 'emis_paid_on_time']


class PaymentSerializer(serializers.ModelSerializer):
    customer_id = serializers.IntegerField(read_only=True)
    loan_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'customer_id', 'loan_id', 'amount_paid', 'paid_date']
