from django.core.management.base import BaseCommand
from loans.tasks import ingest_customer_data, ingest_loan_data


class Command(BaseCommand):
    help = 'Ingest customers and loans from Excel files'

    def add_arguments(self, parser):
        parser.add_argument('--customers', default='customer_data.xlsx')
        parser.add_argument('--loans', default='loan_data.xlsx')
        parser.add_argument('--async', action='store_true', dest='run_async',
                            help='Queue the ingestion on Celery instead of running it here.')

    def handle(self, *args, **options):
        if options['run_async']:
            # Loans reference customers, so they must load second.
            (ingest_customer_data.si(options['customers']) | ingest_loan_data.si(options['loans'])).delay()
            self.stdout.write(self.style.SUCCESS('Data ingestion queued.'))
            return

        customers = ingest_customer_data(options['customers'])
        loans = ingest_loan_data(options['loans'])
        self.stdout.write(self.style.SUCCESS(f'Data ingestion completed: {customers} customers, {loans} loans.'))
