from datetime import date
from io import StringIO
from types import SimpleNamespace
from unittest import mock

import pandas as pd
from dateutil.relativedelta import relativedelta
from django.core.management import call_command
from django.db import DatabaseError, connection
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status

from .exceptions import LoanIdUnavailableError
from .models import Customer, Loan, Payment
from .services import CustomerService, LoanService
from .tasks import ingest_customer_data, ingest_loan_data
from .utils import (
    calculate_approved_limit,
    calculate_credit_score,
    calculate_emi,
    calculate_end_date,
    determine_loan_approval,
    months_elapsed,
)


def history_loan(start_date, emis_paid_on_time=100, monthly_payment=1000):
    return SimpleNamespace(start_date=start_date, emis_paid_on_time=emis_paid_on_time, monthly_payment=monthly_payment)


class ApprovedLimitTest(SimpleTestCase):
    def test_rounds_to_nearest_lakh(self):
        self.assertEqual(calculate_approved_limit(50000), 1800000)
        self.assertEqual(calculate_approved_limit(60000), 2200000)
        self.assertEqual(calculate_approved_limit(0), 0)

    def test_half_lakh_rounds_up(self):
        # 36 * 12500 = 450000
        self.assertEqual(calculate_approved_limit(12500), 500000)


class CreditScoreTest(SimpleTestCase):
    today = date(2025, 6, 15)

    def test_empty_history_scores_full(self):
        self.assertEqual(calculate_credit_score([], 200000, 1000000, today=self.today), 100)

    def test_large_loan_penalty(self):
        self.assertEqual(calculate_credit_score([], 1500000, 3600000, today=self.today), 95)

    def test_amount_over_approved_limit_zeroes_score(self):
        self.assertEqual(calculate_credit_score([], 500001, 500000, today=self.today), 0)

    def test_each_overdue_loan_is_penalised(self):
        loans = [
            history_loan(date(2024, 1, 10), emis_paid_on_time=5),
            history_loan(date(2023, 3, 1), emis_paid_on_time=2),
            history_loan(date(2024, 1, 10), emis_paid_on_time=17),
        ]
        self.assertEqual(calculate_credit_score(loans, 100000, 3600000, today=self.today), 60)

    def test_many_loans_penalty_applies_once(self):
        loans = [history_loan(date(2023, 1, 1)) for _ in range(6)]
        self.assertEqual(calculate_credit_score(loans, 100000, 3600000, today=self.today), 90)

    def test_loans_started_this_year_are_penalised(self):
        loans = [history_loan(date(2025, 2, 1)), history_loan(date(2025, 5, 1)), history_loan(date(2024, 12, 1))]
        self.assertEqual(calculate_credit_score(loans, 100000, 3600000, today=self.today), 94)

    def test_pending_payments_over_half_limit_zero_score(self):
        loans = [history_loan(date(2023, 1, 1), monthly_payment=300000), history_loan(date(2023, 1, 1), monthly_payment=300000)]
        self.assertEqual(calculate_credit_score(loans, 100000, 1000000, today=self.today), 0)

    def test_score_never_negative(self):
        loans = [history_loan(date(2020, 1, 1), emis_paid_on_time=0) for _ in range(7)]
        self.assertEqual(calculate_credit_score(loans, 100000, 3600000, today=self.today), 0)

    def test_months_elapsed_uses_calendar_months(self):
        self.assertEqual(months_elapsed(date(2024, 12, 31), date(2025, 1, 1)), 1)
        self.assertEqual(months_elapsed(date(2025, 6, 1), date(2025, 6, 30)), 0)


class LoanApprovalTest(SimpleTestCase):
    def test_approval_tiers(self):
        self.assertEqual(determine_loan_approval(51, 10), (True, 10))
        self.assertEqual(determine_loan_approval(51, 11), (True, 11))
        self.assertEqual(determine_loan_approval(51, 15), (True, 10))
        self.assertEqual(determine_loan_approval(50, 8), (True, 12))
        self.assertEqual(determine_loan_approval(35, 8), (True, 12))
        self.assertEqual(determine_loan_approval(15, 20), (True, 16))
        self.assertEqual(determine_loan_approval(10, 20), (False, 0))
        self.assertEqual(determine_loan_approval(5, 10), (False, 0))


class EmiTest(SimpleTestCase):
    def test_simple_interest_installment(self):
        self.assertEqual(calculate_emi(100000, 10, 12), 9166.67)

    def test_zero_rate(self):
        self.assertEqual(calculate_emi(120000, 0, 12), 10000)

    def test_end_date_adds_calendar_months(self):
        self.assertEqual(calculate_end_date(date(2025, 1, 31), 1), date(2025, 2, 28))
        self.assertEqual(calculate_end_date(date(2025, 11, 5), 12), date(2026, 11, 5))


class CustomerServiceTest(TestCase):
    def test_register_is_idempotent(self):
        customer, created = CustomerService.register('Asha', 'Rao', 30, '9999999999', 50000)
        self.assertTrue(created)
        again, created = CustomerService.register('Asha', 'Rao', 30, '9999999999', 50000)
        self.assertFalse(created)
        self.assertEqual(again.customer_id, customer.customer_id)
        self.assertEqual(Customer.objects.count(), 1)

    def test_register_updates_salary_and_limit(self):
        customer, _ = CustomerService.register('Asha', 'Rao', 30, '9999999999', 50000)
        CustomerService.register('Asha', 'Rao', 31, '9999999999', 100000)
        customer.refresh_from_db()
        self.assertEqual(customer.age, 31)
        self.assertEqual(customer.monthly_salary, 100000)
        self.assertEqual(customer.approved_limit, 3600000)


class LoanServiceTest(TestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="Svc", last_name="Test", age=30, phone_number="1111111111",
            monthly_salary=100000, approved_limit=3600000
        )

    def test_loan_id_generation_is_bounded(self):
        Loan.objects.create(
            loan_id=1234, customer=self.customer, loan_amount=100000, tenure=12, interest_rate=10,
            monthly_payment=9166.67, emis_paid_on_time=1, start_date=date.today(), end_date=date.today()
        )
        with mock.patch('loans.services.random.randint', return_value=1234) as randint:
            with self.assertRaises(LoanIdUnavailableError):
                LoanService.generate_loan_id(max_attempts=3)
        self.assertEqual(randint.call_count, 3)

    def test_loan_id_in_four_digit_range(self):
        loan_id = LoanService.generate_loan_id()
        self.assertTrue(1000 <= loan_id <= 9999)

    def test_partial_payments_accumulate_emis_on_time(self):
        loan = Loan.objects.create(
            loan_id=4321, customer=self.customer, loan_amount=100000, tenure=12, interest_rate=10,
            monthly_payment=9166.67, emis_paid_on_time=0, start_date=date.today(), end_date=date.today()
        )
        LoanService.make_payment(self.customer.customer_id, loan.loan_id, 5000)
        loan.refresh_from_db()
        self.assertEqual(loan.emis_paid_on_time, 0)
        result = LoanService.make_payment(self.customer.customer_id, loan.loan_id, 5000)
        loan.refresh_from_db()
        self.assertEqual(loan.emis_paid_on_time, 1)
        self.assertEqual(result['total_paid'], 10000)
        self.assertEqual(Payment.objects.filter(loan=loan).count(), 2)


class RegisterAPITest(APITestCase):
    data = {
        "first_name": "Unit",
        "last_name": "Test",
        "age": 28,
        "monthly_salary": 60000,
        "phone_number": "8888888888"
    }

    def test_register_customer(self):
        response = self.client.post(reverse('register'), self.data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('customer_id', response.data)
        self.assertEqual(response.data['name'], 'Unit Test')
        self.assertEqual(response.data['age'], 28)
        self.assertEqual(response.data['monthly_salary'], 60000)
        self.assertEqual(response.data['phone_number'], '8888888888')
        self.assertEqual(response.data['approved_limit'], 2200000)

    def test_reregister_updates_existing_customer(self):
        first = self.client.post(reverse('register'), self.data, format='json')
        same = self.client.post(reverse('register'), self.data, format='json')
        self.assertEqual(same.status_code, status.HTTP_200_OK)
        self.assertEqual(same.data['customer_id'], first.data['customer_id'])

        changed = dict(self.data, monthly_salary=100000)
        response = self.client.post(reverse('register'), changed, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['approved_limit'], 3600000)
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(Customer.objects.get().approved_limit, 3600000)

    def test_register_rejects_bad_types(self):
        response = self.client.post(reverse('register'), dict(self.data, age='old'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)


class CheckEligibilityAPITest(APITestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="Elig",
            last_name="Test",
            age=35,
            monthly_salary=100000,
            phone_number="7777777777",
            approved_limit=3600000
        )

    def test_check_eligibility(self):
        data = {
            "customer_id": self.customer.customer_id,
            "loan_amount": 200000,
            "interest_rate": 14,
            "tenure": 12
        }
        response = self.client.post(reverse('check-eligibility'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_id'], self.customer.customer_id)
        self.assertTrue(response.data['approval'])
        self.assertEqual(response.data['interest_rate'], 14)
        self.assertEqual(response.data['corrected_interest_rate'], 10)
        self.assertEqual(response.data['tenure'], 12)
        self.assertEqual(response.data['monthly_installment'], 18333.33)
        self.assertEqual(Loan.objects.count(), 0)

    def test_unknown_customer(self):
        data = {"customer_id": 999, "loan_amount": 200000, "interest_rate": 14, "tenure": 12}
        response = self.client.post(reverse('check-eligibility'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Customer not found')

    def test_zero_tenure_rejected(self):
        data = {"customer_id": self.customer.customer_id, "loan_amount": 200000, "interest_rate": 14, "tenure": 0}
        response = self.client.post(reverse('check-eligibility'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CreateLoanAPITest(APITestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="Loan",
            last_name="Test",
            age=40,
            monthly_salary=120000,
            phone_number="6666666666",
            approved_limit=4300000
        )

    def request(self, **overrides):
        data = {
            "customer_id": self.customer.customer_id,
            "loan_amount": 200000,
            "interest_rate": 14,
            "tenure": 12
        }
        data.update(overrides)
        return self.client.post(reverse('create-loan'), data, format='json')

    def test_create_loan(self):
        response = self.request()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['loan_approved'])
        self.assertTrue(1000 <= response.data['loan_id'] <= 9999)
        self.assertEqual(response.data['monthly_installment'], 18333.33)

        loan = Loan.objects.get(loan_id=response.data['loan_id'])
        self.assertEqual(loan.customer_id, self.customer.customer_id)
        self.assertEqual(loan.interest_rate, 10)
        self.assertEqual(loan.emis_paid_on_time, 1)
        self.assertEqual(loan.end_date, loan.start_date + relativedelta(months=12))

    def test_loan_over_limit_rejected(self):
        response = self.request(loan_amount=5000000)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['loan_approved'])
        self.assertIsNone(response.data['loan_id'])
        self.assertEqual(Loan.objects.count(), 0)

    def test_overdue_history_corrects_rate(self):
        started = date.today() - relativedelta(years=2)
        for loan_id in (2001, 2002, 2003):
            Loan.objects.create(
                loan_id=loan_id, customer=self.customer, loan_amount=50000, tenure=36, interest_rate=12,
                monthly_payment=1500, emis_paid_on_time=0, start_date=started,
                end_date=started + relativedelta(months=36)
            )
        response = self.request(interest_rate=8)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['corrected_interest_rate'], 12)
        self.assertEqual(Loan.objects.get(loan_id=response.data['loan_id']).interest_rate, 12)

    def test_loan_id_exhaustion_reports_failure(self):
        with mock.patch('loans.views.LoanService.generate_loan_id', side_effect=LoanIdUnavailableError('full')):
            response = self.request()
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Loan creation failed')


class ViewLoanAPITest(APITestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="View",
            last_name="Loan",
            age=50,
            monthly_salary=90000,
            phone_number="5555555555",
            approved_limit=3200000
        )
        self.loan = Loan.objects.create(
            loan_id=5150,
            customer=self.customer,
            loan_amount=500000,
            tenure=24,
            interest_rate=10.5,
            monthly_payment=23000,
            emis_paid_on_time=12,
            start_date=date.today(),
            end_date=date.today() + relativedelta(months=24)
        )

    def test_view_loan(self):
        response = self.client.get(reverse('view-loan', args=[self.loan.loan_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['loan_id'], self.loan.loan_id)
        self.assertEqual(response.data['customer']['id'], self.customer.customer_id)
        self.assertEqual(response.data['customer']['first_name'], self.customer.first_name)
        self.assertEqual(response.data['customer']['last_name'], self.customer.last_name)
        self.assertEqual(response.data['customer']['phone_number'], self.customer.phone_number)
        self.assertEqual(response.data['customer']['age'], self.customer.age)
        self.assertEqual(response.data['loan_amount'], self.loan.loan_amount)
        self.assertEqual(response.data['interest_rate'], self.loan.interest_rate)
        self.assertEqual(response.data['monthly_installment'], self.loan.monthly_payment)
        self.assertEqual(response.data['tenure'], self.loan.tenure)

    def test_missing_loan(self):
        response = self.client.get(reverse('view-loan', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Loan not found')

    def test_invalid_loan_id(self):
        for loan_id in ('abc', '0', '-3'):
            response = self.client.get(reverse('view-loan', args=[loan_id]))
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'Invalid loan_id provided')


class MakePaymentAPITest(APITestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="Pay",
            last_name="Test",
            age=33,
            monthly_salary=100000,
            phone_number="3333333333",
            approved_limit=3600000
        )
        self.loan = Loan.objects.create(
            loan_id=7007,
            customer=self.customer,
            loan_amount=100000,
            tenure=12,
            interest_rate=10,
            monthly_payment=9166.67,
            emis_paid_on_time=1,
            start_date=date.today(),
            end_date=date.today() + relativedelta(months=12)
        )
        self.url = reverse('make-payment', args=[self.customer.customer_id, self.loan.loan_id])

    def test_full_installment_clears_balance(self):
        response = self.client.post(self.url, {"amountPaid": 9166.67}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pending_emi_balance'], 0)
        self.assertEqual(response.data['emis_paid_on_time'], 1)
        self.assertEqual(Payment.objects.filter(loan=self.loan).count(), 1)

    def test_partial_installment_leaves_balance(self):
        response = self.client.post(self.url, {"amountPaid": 5000}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pending_emi_balance'], 4166.67)

    def test_get_with_json_body(self):
        response = self.client.generic('GET', self.url, '{"amountPaid": 18333.34}', content_type='application/json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pending_emi_balance'], 0)
        self.loan.refresh_from_db()
        self.assertEqual(self.loan.emis_paid_on_time, 2)

    def test_get_with_query_string(self):
        response = self.client.get(self.url, {"amountPaid": 5000})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pending_emi_balance'], 4166.67)

    def test_missing_amount(self):
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Payment.objects.count(), 0)

    def test_loan_of_another_customer(self):
        url = reverse('make-payment', args=[self.customer.customer_id + 1, self.loan.loan_id])
        response = self.client.post(url, {"amountPaid": 5000}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Payment.objects.count(), 0)


class ViewStatementAPITest(APITestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="Stmt",
            last_name="Test",
            age=45,
            monthly_salary=80000,
            phone_number="4444444444",
            approved_limit=2900000
        )
        self.loan = Loan.objects.create(
            loan_id=8118,
            customer=self.customer,
            loan_amount=300000,
            tenure=12,
            interest_rate=11.0,
            monthly_payment=27750,
            emis_paid_on_time=1,
            start_date=date.today(),
            end_date=date.today() + relativedelta(months=12)
        )
        Payment.objects.create(customer=self.customer, loan=self.loan, amount_paid=27750)
        Payment.objects.create(customer=self.customer, loan=self.loan, amount_paid=10000)

    def test_view_statement(self):
        url = reverse('view-statement', args=[self.customer.customer_id, self.loan.loan_id])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['loan_details']['loan_id'], self.loan.loan_id)
        self.assertEqual(response.data['loan_details']['customer_id'], self.customer.customer_id)
        self.assertEqual(len(response.data['payment_history']), 2)
        self.assertEqual(
            [p['amount_paid'] for p in response.data['payment_history']],
            [27750, 10000]
        )

    def test_unknown_pair(self):
        url = reverse('view-statement', args=[self.customer.customer_id + 1, self.loan.loan_id])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertNotIn('payment_history', response.data)


class ReadyAPITest(APITestCase):
    def test_ready(self):
        response = self.client.get(reverse('ready'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'data': 'Server is Ready'})


CUSTOMER_ROWS = pd.DataFrame([
    {'Customer ID': 1, 'First Name': 'Aaron', 'Last Name': 'Garcia', 'Age': 63,
     'Phone Number': 9629317944, 'Monthly Salary': 50000, 'Approved Limit': 1},
    {'Customer ID': 2, 'First Name': 'Adrian', 'Last Name': 'Lee', 'Age': 36,
     'Phone Number': 9570166036, 'Monthly Salary': 12500, 'Approved Limit': 1},
])

LOAN_ROWS = pd.DataFrame([
    {'Customer ID': 1, 'Loan ID': 8638, 'Loan Amount': 900000, 'Tenure': 138, 'Interest Rate': 16.32,
     'Monthly payment': 8707, 'EMIs paid on Time': 57,
     'Date of Approval': '2018-02-23', 'End Date': '2029-07-23'},
    {'Customer ID': 42, 'Loan ID': 1000, 'Loan Amount': 100000, 'Tenure': 12, 'Interest Rate': 10,
     'Monthly payment': 9167, 'EMIs paid on Time': 3,
     'Date of Approval': '2024-01-01', 'End Date': '2025-01-01'},
])


class IngestionTest(TestCase):
    def read_excel(self, file_path):
        return CUSTOMER_ROWS if 'customer' in file_path else LOAN_ROWS

    def test_customers_get_recomputed_limits(self):
        with mock.patch('loans.tasks.pd.read_excel', side_effect=self.read_excel):
            ingest_customer_data('customer_data.xlsx')
            ingest_customer_data('customer_data.xlsx')
        self.assertEqual(Customer.objects.count(), 2)
        self.assertEqual(Customer.objects.get(customer_id=1).approved_limit, 1800000)
        self.assertEqual(Customer.objects.get(customer_id=2).approved_limit, 500000)
        self.assertEqual(Customer.objects.get(customer_id=2).phone_number, '9570166036')

    def test_loans_for_unknown_customers_are_skipped(self):
        with mock.patch('loans.tasks.pd.read_excel', side_effect=self.read_excel):
            ingest_customer_data('customer_data.xlsx')
            ingested = ingest_loan_data('loan_data.xlsx')
        self.assertEqual(ingested, 1)
        loan = Loan.objects.get(loan_id=8638)
        self.assertEqual(loan.customer_id, 1)
        self.assertEqual(loan.emis_paid_on_time, 57)
        self.assertEqual(loan.start_date, date(2018, 2, 23))
        self.assertFalse(Loan.objects.filter(loan_id=1000).exists())

    def test_ingest_command(self):
        with mock.patch('loans.tasks.pd.read_excel', side_effect=self.read_excel):
            call_command('ingest_data', customers='customer_data.xlsx', loans='loan_data.xlsx', stdout=StringIO())
        self.assertEqual(Customer.objects.count(), 2)
        self.assertEqual(Loan.objects.count(), 1)

    def test_customer_sequence_reset_after_ingestion(self):
        with mock.patch('loans.tasks.pd.read_excel', side_effect=self.read_excel), \
                mock.patch.object(connection.ops, 'sequence_reset_sql', return_value=[]) as sequence_reset_sql:
            ingest_customer_data('customer_data.xlsx')
        self.assertEqual(sequence_reset_sql.call_args[0][1], (Customer,))

        customer, created = CustomerService.register('New', 'Person', 30, '1212121212', 50000)
        self.assertTrue(created)
        self.assertGreater(customer.customer_id, 2)


class CustomerLoanFixture:
    def setUp(self):
        self.customer = Customer.objects.create(
            first_name="Err",
            last_name="Test",
            age=29,
            monthly_salary=100000,
            phone_number="2222222222",
            approved_limit=3600000
        )
        self.loan = Loan.objects.create(
            loan_id=6006,
            customer=self.customer,
            loan_amount=100000,
            tenure=12,
            interest_rate=10,
            monthly_payment=9166.67,
            emis_paid_on_time=1,
            start_date=date.today(),
            end_date=date.today() + relativedelta(months=12)
        )


class ErrorResponseAPITest(CustomerLoanFixture, APITestCase):
    def test_malformed_json(self):
        response = self.client.post(reverse('register'), '{bad', content_type='application/json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertNotIn('detail', response.data)

    def test_method_not_allowed(self):
        response = self.client.get(reverse('register'))
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.data, {'error': 'Method "GET" not allowed.'})

    def test_unknown_path(self):
        response = self.client.get('/no-such-endpoint')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {'error': 'Not found'})

    def test_non_numeric_payment_customer_id(self):
        response = self.client.get(reverse('make-payment', args=['abc', self.loan.loan_id]), {"amountPaid": 5000})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid customer_id provided')
        self.assertEqual(Payment.objects.count(), 0)

    def test_non_numeric_statement_loan_id(self):
        response = self.client.get(reverse('view-statement', args=[self.customer.customer_id, 'abc']))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid loan_id provided')

    def test_unexpected_error_is_generic_500(self):
        with mock.patch('loans.views.LoanService.get_statement', side_effect=RuntimeError('boom')):
            response = self.client.get(reverse('view-statement', args=[self.customer.customer_id, self.loan.loan_id]))
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'An unexpected error occurred'})


class StoreFailureAPITest(CustomerLoanFixture, APITestCase):
    loan_request = {"loan_amount": 200000, "interest_rate": 14, "tenure": 12}

    def assertStoreFailure(self, target, message, call):
        with mock.patch(target, side_effect=DatabaseError('connection lost')):
            response = call()
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': message})

    def test_register(self):
        data = {"first_name": "A", "last_name": "B", "age": 30, "monthly_salary": 50000, "phone_number": "1"}
        self.assertStoreFailure(
            'loans.views.CustomerService.register', 'Registration failed',
            lambda: self.client.post(reverse('register'), data, format='json')
        )

    def test_check_eligibility(self):
        data = dict(self.loan_request, customer_id=self.customer.customer_id)
        self.assertStoreFailure(
            'loans.views.LoanService.check_eligibility', 'Application failed',
            lambda: self.client.post(reverse('check-eligibility'), data, format='json')
        )

    def test_create_loan(self):
        data = dict(self.loan_request, customer_id=self.customer.customer_id)
        self.assertStoreFailure(
            'loans.views.LoanService.create_loan', 'Loan creation failed',
            lambda: self.client.post(reverse('create-loan'), data, format='json')
        )

    def test_view_loan(self):
        self.assertStoreFailure(
            'loans.views.LoanService.get_loan', 'An unexpected error occurred',
            lambda: self.client.get(reverse('view-loan', args=[self.loan.loan_id]))
        )

    def test_make_payment(self):
        url = reverse('make-payment', args=[self.customer.customer_id, self.loan.loan_id])
        self.assertStoreFailure(
            'loans.views.LoanService.make_payment', 'An unexpected error occurred',
            lambda: self.client.post(url, {"amountPaid": 5000}, format='json')
        )

    def test_view_statement(self):
        url = reverse('view-statement', args=[self.customer.customer_id, self.loan.loan_id])
        self.assertStoreFailure(
            'loans.views.LoanService.get_statement', 'An unexpected error occurred',
            lambda: self.client.get(url)
        )
