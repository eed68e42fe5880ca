import logging
from celery import shared_task
from django.core.management.color import no_style
from django.db import connection
import pandas as pd
from .models import Customer, Loan
from .utils import calculate_approved_limit

logger = logging.getLogger(__name__)


def reset_sequences(*models):
    """Move serial sequences past explicitly inserted primary keys. A no-op on SQLite and MySQL."""
    statements = connection.ops.sequence_reset_sql(no_style(), models)
    with connection.cursor() as cursor:
        for sql in statements:
            cursor.execute(sql)


@shared_task
def ingest_customer_data(file_path):
    """Upsert customers from the provided Excel file. Approved limits are recomputed from salary."""
    df = pd.read_excel(file_path)
    for _, row in df.iterrows():
        monthly_salary = int(row['Monthly Salary'])
        Customer.objects.update_or_create(
            customer_id=int(row['Customer ID']),
            defaults={
                'first_name': row['First Name'],
                'last_name': row['Last Name'],
                'age': int(row['Age']),
                'phone_number': str(row['Phone Number']),
                'monthly_salary': monthly_salary,
                'approved_limit': calculate_approved_limit(monthly_salary),
            },
        )
    reset_sequences(Customer)
    logger.info(f"Ingested {len(df)} customers from {file_path}.")
    return len(df)


@shared_task
def ingest_loan_data(file_path):
    """Upsert loans from the provided Excel file, skipping rows whose customer is unknown."""
    df = pd.read_excel(file_path)
    missing_customers = 0
    for _, row in df.iterrows():
        try:
            customer = Customer.objects.get(customer_id=int(row['Customer ID']))
        except Customer.DoesNotExist:
            logger.warning(f"Customer with ID {row['Customer ID']} not found for loan ingestion.")
            missing_customers += 1
            continue
        Loan.objects.update_or_create(
            loan_id=int(row['Loan ID']),
            defaults={
                'customer': customer,
                'loan_amount': float(row['Loan Amount']),
                'tenure': int(row['Tenure']),
                'interest_rate': float(row['Interest Rate']),
                'monthly_payment': float(row['Monthly payment']),
                'emis_paid_on_time': int(row['EMIs paid on Time']),
                'start_date': pd.to_datetime(row['Date of Approval']).date(),
                'end_date': pd.to_datetime(row['End Date']).date(),
            },
        )
    ingested = len(df) - missing_customers
    logger.info(f"Ingested {ingested} loans from {file_path}. {missing_customers} loans skipped due to missing customers.")
    return ingested
