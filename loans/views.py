import logging
from django.db import DatabaseError
from django.http import JsonResponse
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from .exceptions import LoanServiceError
from .models import Customer, Loan
from .serializers import (
    LoanRequestSerializer,
    LoanSerializer,
    PaymentRequestSerializer,
    PaymentSerializer,
    RegisterSerializer,
)
from .services import CustomerService, LoanService

logger = logging.getLogger(__name__)


def parse_positive_id(value):
    """Return value as a positive int, or None when it is not one."""
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def invalid_ids_response(**ids):
    bad = [name for name, parsed in ids.items() if parsed is None]
    return Response({'error': f"Invalid {' and '.join(bad)} provided"}, status=status.HTTP_400_BAD_REQUEST)


def not_found(request, exception=None):
    """JSON body for paths that match no route."""
    return JsonResponse({'error': 'Not found'}, status=status.HTTP_404_NOT_FOUND)


def customer_snapshot(customer):
    return {
        'id': customer.customer_id,
        'first_name': customer.first_name,
        'last_name': customer.last_name,
        'phone_number': customer.phone_number,
        'age': customer.age,
    }


class ReadyView(APIView):
    """Readiness probe."""
    def get(self, request):
        return Response({'data': 'Server is Ready'}, status=status.HTTP_200_OK)


class RegisterView(APIView):
    """API endpoint to register a customer, or refresh an existing one's salary and age."""
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Registration failed: {serializer.errors}")
            return Response({'error': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            customer, created = CustomerService.register(**serializer.validated_data)
        except DatabaseError:
            logger.exception("User registration error")
            return Response({'error': 'Registration failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        response_data = {
            'message': f"User {customer.full_name} {'created' if created else 'updated'} successfully",
            'customer_id': customer.customer_id,
            'name': customer.full_name,
            'age': customer.age,
            'phone_number': customer.phone_number,
            'monthly_salary': customer.monthly_salary,
            'approved_limit': customer.approved_limit,
        }
        return Response(response_data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class LoanRequestMixin:
    """Shared parsing for endpoints taking customer_id, loan_amount, interest_rate and tenure."""

    def load_loan_request(self, request):
        serializer = LoanRequestSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Invalid loan request: {serializer.errors}")
            return None, None, Response({'error': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            customer = CustomerService.get_customer(data['customer_id'])
        except Customer.DoesNotExist:
            logger.error(f"Customer {data['customer_id']} not found.")
            return None, None, Response({'error': 'Customer not found'}, status=status.HTTP_404_NOT_FOUND)
        return customer, data, None


class CheckEligibilityView(LoanRequestMixin, APIView):
    """API endpoint to check loan eligibility for a customer. Nothing is persisted."""
    def post(self, request):
        try:
            customer, data, error_response = self.load_loan_request(request)
            if error_response:
                return error_response
            decision = LoanService.check_eligibility(
                customer, data['loan_amount'], data['interest_rate'], data['tenure']
            )
        except DatabaseError:
            logger.exception("Application submission error")
            return Response({'error': 'Application failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        response = {
            'customer_id': decision['customer_id'],
            'approval': decision['approval'],
            'interest_rate': decision['interest_rate'],
            'corrected_interest_rate': decision['corrected_interest_rate'],
            'tenure': decision['tenure'],
            'monthly_installment': decision['monthly_installment'],
        }
        return Response(response, status=status.HTTP_201_CREATED)


class CreateLoanView(LoanRequestMixin, APIView):
    """API endpoint to create a new loan for a customer if eligible."""
    def post(self, request):
        try:
            customer, data, error_response = self.load_loan_request(request)
            if error_response:
                return error_response
            loan, decision = LoanService.create_loan(
                customer, data['loan_amount'], data['interest_rate'], data['tenure']
            )
        except (DatabaseError, LoanServiceError):
            logger.exception("Loan creation error")
            return Response({'error': 'Loan creation failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        if loan is None:
            logger.info(f"Loan not approved for customer {customer.customer_id}.")
            return Response({
                'loan_id': None,
                'customer_id': customer.customer_id,
                'loan_approved': False,
                'message': 'Loan not approved due to low credit score',
                'monthly_installment': decision['monthly_installment'],
            }, status=status.HTTP_200_OK)

        return Response({
            'loan_id': loan.loan_id,
            'customer_id': customer.customer_id,
            'loan_approved': True,
            'message': 'Loan approved and created successfully',
            'corrected_interest_rate': loan.interest_rate,
            'monthly_installment': loan.monthly_payment,
        }, status=status.HTTP_201_CREATED)


class ViewLoanView(APIView):
    """API endpoint to view details of a specific loan and its customer."""
    def get(self, request, loan_id):
        loan_id = parse_positive_id(loan_id)
        if loan_id is None:
            logger.warning(f"View loan failed: invalid loan_id {self.kwargs['loan_id']!r}.")
            return invalid_ids_response(loan_id=loan_id)

        try:
            loan = LoanService.get_loan(loan_id)
        except Loan.DoesNotExist:
            logger.error(f"View loan failed: Loan {loan_id} not found.")
            return Response({'error': 'Loan not found'}, status=status.HTTP_404_NOT_FOUND)
        except DatabaseError:
            logger.exception("Error in viewLoan")
            return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        response_data = {
            'loan_id': loan.loan_id,
            'customer': customer_snapshot(loan.customer),
            'loan_amount': loan.loan_amount,
            'interest_rate': loan.interest_rate,
            'monthly_installment': loan.monthly_payment,
            'tenure': loan.tenure,
        }
        logger.info(f"Viewed loan {loan.loan_id} for customer {loan.customer_id}.")
        return Response(response_data, status=status.HTTP_200_OK)


class MakePaymentView(APIView):
    """
    API endpoint to pay towards a loan.

    amountPaid is read from the JSON body, or from the query string when a GET carries no body.
    """
    def get(self, request, customer_id, loan_id):
        customer_id, loan_id = parse_positive_id(customer_id), parse_positive_id(loan_id)
        if customer_id is None or loan_id is None:
            logger.warning(f"Payment rejected: invalid ids {self.kwargs}.")
            return invalid_ids_response(customer_id=customer_id, loan_id=loan_id)

        data = request.data if 'amountPaid' in request.data else request.query_params
        serializer = PaymentRequestSerializer(data=data)
        if not serializer.is_valid():
            logger.warning(f"Payment rejected for loan {loan_id}: {serializer.errors}")
            return Response({'error': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = LoanService.make_payment(customer_id, loan_id, serializer.validated_data['amountPaid'])
        except Loan.DoesNotExist:
            logger.error(f"Payment failed: Loan {loan_id} not found for customer {customer_id}.")
            return Response({'error': 'Loan not found for the customer'}, status=status.HTTP_404_NOT_FOUND)
        except DatabaseError:
            logger.exception("Error in making payment")
            return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({
            'message': 'Payment successful',
            'pending_emi_balance': result['pending_emi_balance'],
            'emis_paid_on_time': result['loan'].emis_paid_on_time,
        }, status=status.HTTP_200_OK)

    def post(self, request, customer_id, loan_id):
        return self.get(request, customer_id, loan_id)


class ViewStatementView(APIView):
    """API endpoint to view a loan with its payment history."""
    def get(self, request, customer_id, loan_id):
        customer_id, loan_id = parse_positive_id(customer_id), parse_positive_id(loan_id)
        if customer_id is None or loan_id is None:
            logger.warning(f"View statement failed: invalid ids {self.kwargs}.")
            return invalid_ids_response(customer_id=customer_id, loan_id=loan_id)

        try:
            loan, payments = LoanService.get_statement(customer_id, loan_id)
        except Loan.DoesNotExist:
            logger.error(f"View statement failed: Loan {loan_id} not found for customer {customer_id}.")
            return Response({'error': 'Loan not found for the customer'}, status=status.HTTP_404_NOT_FOUND)
        except DatabaseError:
            logger.exception("Error in viewing statement")
            return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        logger.info(f"Viewed statement for loan {loan_id}: {len(payments)} payments.")
        return Response({
            'loan_details': LoanSerializer(loan).data,
            'payment_history': PaymentSerializer(payments, many=True).data,
        }, status=status.HTTP_200_OK)
