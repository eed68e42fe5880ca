from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from dateutil.relativedelta import relativedelta

LAKH = 100000
MAX_SCORE = 100
LARGE_LOAN_AMOUNT = 1000000


def round_to_nearest_lakh(amount):
    """Round the given amount to the nearest lakh (100,000), halves rounding up."""
    lakhs = (Decimal(str(amount)) / LAKH).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return int(lakhs) * LAKH


def calculate_approved_limit(monthly_salary):
    return round_to_nearest_lakh(36 * monthly_salary)


def months_elapsed(start_date, today):
    """Calendar months between two dates, ignoring the day of month."""
    return (today.year - start_date.year) * 12 + (today.month - start_date.month)


def calculate_credit_score(loans, loan_amount, approved_limit, today=None):
    """
    Calculate the credit score for a prospective loan from the customer's loan history.

    Starting from 100, the following are applied independently:
    - -20 for every existing loan whose EMIs paid on time lag the months elapsed since it started
    - -10 once if the customer already has more than 5 loans
    - -3 for every existing loan started in the current calendar year
    - -5 if the requested amount is above 1,000,000
    - score = 0 if the requested amount is above the approved limit (hard rule)
    - score = 0 if the monthly payments of existing loans exceed half the approved limit (hard rule)
    Score is clamped between 0 and 100. An empty history incurs no history deductions.
    """
    today = today or date.today()
    loans = list(loans)
    score = MAX_SCORE

    if loans:
        for loan in loans:
            if loan.emis_paid_on_time < months_elapsed(loan.start_date, today):
                score -= 20

        if len(loans) > 5:
            score -= 10

        score -= 3 * sum(1 for loan in loans if loan.start_date.year == today.year)

    if loan_amount > LARGE_LOAN_AMOUNT:
        score -= 5

    if loan_amount > approved_limit:
        score = 0

    total_pending_amount = sum(loan.monthly_payment for loan in loans)
    if total_pending_amount > approved_limit * 0.5:
        score = 0

    return max(0, min(MAX_SCORE, score))


def determine_loan_approval(credit_score, interest_rate):
    """Map a credit score and the requested rate to (approved, corrected_interest_rate)."""
    if credit_score > 50:
        return True, interest_rate if interest_rate <= 11 else 10
    if credit_score > 30:
        return True, 12
    if credit_score > 10:
        return True, 16
    return False, 0


# Simple interest over the whole tenure, spread evenly across the months.
# P = principal, R = annual rate (percent), T = tenure (months)
def calculate_emi(principal, annual_rate, tenure):
    """
    Calculate the monthly installment:
    EMI = (P * R / 100 + P) / T
    Rounded to 2 decimals once, at the end.
    """
    return round((principal * annual_rate / 100 + principal) / tenure, 2)


def calculate_end_date(start_date, tenure):
    return start_date + relativedelta(months=tenure)
