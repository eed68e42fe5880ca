from django.db import models


class Customer(models.Model):
    customer_id = models.AutoField(primary_key=True)
    first_name = models.CharField(max_length=255)
    last_name = models.CharField(max_length=255)
    age = models.IntegerField()
    phone_number = models.CharField(max_length=20)
    monthly_salary = models.IntegerField()
    approved_limit = models.IntegerField()

    class Meta:
        db_table = 'customer'
        indexes = [
            models.Index(fields=['first_name', 'last_name', 'phone_number'], name='idx_customer_identity'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name} ({self.customer_id})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class Loan(models.Model):
    loan_id = models.IntegerField(primary_key=True)
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='loans')
    loan_amount = models.FloatField()
    tenure = models.IntegerField()  # months
    interest_rate = models.FloatField()
    monthly_payment = models.FloatField()
    emis_paid_on_time = models.IntegerField(default=1)
    start_date = models.DateField()
    end_date = models.DateField()

    class Meta:
        db_table = 'loan'

    def __str__(self):
        return f"Loan {self.loan_id} for customer {self.customer_id}"


class Payment(models.Model):
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='payments')
    loan = models.ForeignKey(Loan, on_delete=models.CASCADE, related_name='payments')
    amount_paid = models.FloatField()
    paid_date = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payments'
        ordering = ['paid_date', 'id']
