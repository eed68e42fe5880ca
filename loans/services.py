"""
Loan lifecycle service layer.

Views validate input and map outcomes to HTTP; the lookups, scoring and writes live here.
Missing rows surface as the models' DoesNotExist exceptions.
"""

import logging
import random
from datetime import date

from django.conf import settings
from django.db import transaction
from django.db.models import Sum

from .exceptions import LoanIdUnavailableError
from .models import Customer, Loan, Payment
from .utils import (
    calculate_approved_limit,
    calculate_credit_score,
    calculate_emi,
    calculate_end_date,
    determine_loan_approval,
)

logger = logging.getLogger(__name__)

LOAN_ID_MIN = 1000
LOAN_ID_MAX = 9999


class CustomerService:
    """Customer registration and lookup."""

    @staticmethod
    def register(first_name, last_name, age, phone_number, monthly_salary):
        """
        Create a customer, or refresh the salary-derived fields of an existing one.

        A customer is identified by (first_name, last_name, phone_number). An existing
        row is only written when its salary or age differ from the request.

        Returns:
            (customer, created) tuple.
        """
        approved_limit = calculate_approved_limit(monthly_salary)
        customer = Customer.objects.filter(
            first_name=first_name, last_name=last_name, phone_number=phone_number
        ).first()

        if customer is None:
            customer = Customer.objects.create(
                first_name=first_name,
                last_name=last_name,
                age=age,
                phone_number=phone_number,
                monthly_salary=monthly_salary,
                approved_limit=approved_limit,
            )
            logger.info(f"Registered new customer {customer.customer_id} with approved_limit={approved_limit}")
            return customer, True

        if customer.monthly_salary != monthly_salary or customer.age != age:
            customer.monthly_salary = monthly_salary
            customer.age = age
            customer.approved_limit = approved_limit
            customer.save(update_fields=['monthly_salary', 'age', 'approved_limit'])
            logger.info(f"Updated customer {customer.customer_id}: approved_limit={approved_limit}")
        return customer, False

    @staticmethod
    def get_customer(customer_id):
        return Customer.objects.get(customer_id=customer_id)


class LoanService:
    """Eligibility, loan creation, payments and statements."""

    @staticmethod
    def check_eligibility(customer, loan_amount, interest_rate, tenure, today=None):
        """Score the customer for a prospective loan. Nothing is persisted."""
        loans = Loan.objects.filter(customer=customer)
        if not loans.exists():
            logger.debug(f"No loan history for customer {customer.customer_id}")

        credit_score = calculate_credit_score(loans, loan_amount, customer.approved_limit, today=today)
        approval, corrected_interest_rate = determine_loan_approval(credit_score, interest_rate)
        monthly_installment = calculate_emi(loan_amount, corrected_interest_rate, tenure)

        logger.info(
            f"Eligibility for customer {customer.customer_id}: credit_score={credit_score}, "
            f"approval={approval}, corrected_interest_rate={corrected_interest_rate}"
        )
        return {
            'customer_id': customer.customer_id,
            'approval': approval,
            'credit_score': credit_score,
            'interest_rate': interest_rate,
            'corrected_interest_rate': corrected_interest_rate,
            'tenure': tenure,
            'monthly_installment': monthly_installment,
        }

    @staticmethod
    def generate_loan_id(max_attempts=None):
        """Draw a random unused 4-digit loan id, giving up after max_attempts draws."""
        max_attempts = max_attempts or settings.LOAN_ID_MAX_ATTEMPTS
        for _ in range(max_attempts):
            loan_id = random.randint(LOAN_ID_MIN, LOAN_ID_MAX)
            if not Loan.objects.filter(loan_id=loan_id).exists():
                return loan_id
        raise LoanIdUnavailableError(f"No unused loan id found after {max_attempts} attempts")

    @staticmethod
    def create_loan(customer, loan_amount, interest_rate, tenure):
        """
        Run the eligibility check and persist the loan when approved.

        Returns:
            (loan, decision) tuple; loan is None when the application is rejected.
        """
        decision = LoanService.check_eligibility(customer, loan_amount, interest_rate, tenure)
        if not decision['approval']:
            return None, decision

        start_date = date.today()
        loan = Loan.objects.create(
            loan_id=LoanService.generate_loan_id(),
            customer=customer,
            loan_amount=loan_amount,
            tenure=tenure,
            interest_rate=decision['corrected_interest_rate'],
            monthly_payment=decision['monthly_installment'],
            emis_paid_on_time=1,
            start_date=start_date,
            end_date=calculate_end_date(start_date, tenure),
        )
        logger.info(f"Loan {loan.loan_id} created for customer {customer.customer_id}")
        return loan, decision

    @staticmethod
    def get_loan(loan_id):
        return Loan.objects.select_related('customer').get(loan_id=loan_id)

    @staticmethod
    def make_payment(customer_id, loan_id, amount_paid):
        """
        Record a payment against a customer's loan and refresh its EMIs-on-time count.

        The loan row is locked for the duration so payments on one loan apply one at a time.
        """
        with transaction.atomic():
            loan = Loan.objects.select_for_update().get(loan_id=loan_id, customer_id=customer_id)
            current_emi = loan.monthly_payment
            pending_emi_balance = round(max(0, current_emi - amount_paid), 2)

            Payment.objects.create(customer_id=customer_id, loan=loan, amount_paid=amount_paid)

            total_paid = Payment.objects.filter(customer_id=customer_id, loan=loan).aggregate(
                total=Sum('amount_paid')
            )['total'] or 0
            emis_on_time = int(total_paid // current_emi) if current_emi else 0
            if emis_on_time:
                loan.emis_paid_on_time = emis_on_time
                loan.save(update_fields=['emis_paid_on_time'])

        logger.info(
            f"Payment of {amount_paid} on loan {loan_id} by customer {customer_id}: "
            f"pending={pending_emi_balance}, emis_paid_on_time={loan.emis_paid_on_time}"
        )
        return {
            'loan': loan,
            'pending_emi_balance': pending_emi_balance,
            'total_paid': total_paid,
        }

    @staticmethod
    def get_statement(customer_id, loan_id):
        """Return (loan, payments) for a loan owned by the customer."""
        loan = Loan.objects.get(loan_id=loan_id, customer_id=customer_id)
        payments = Payment.objects.filter(loan_id=loan_id)
        return loan, list(payments)
