"""
Double-entry rules: line validation, journal numbering, posting, fiscal
period locks, general ledger and trial balance.
"""
import calendar
import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from .models import ChartOfAccount, FiscalPeriod, JournalEntry, JournalEntryLine

logger = logging.getLogger('backend.accounting')

ZERO = Decimal('0.00')


class LedgerError(Exception):
    """Business-rule violation on a journal entry or fiscal period"""


def period_key(day):
    return f"{day.year:04d}-{day.month:02d}"


def is_period_closed(day):
    return FiscalPeriod.objects.filter(period_year=day.year, period_month=day.month, is_closed=True).exists()


def validate_lines(lines):
    """
    lines: dicts with account, debit_amount, credit_amount.
    Returns a list of error messages; empty when the entry balances.
    """
    errors = []
    if len(lines) < 2:
        errors.append('A journal entry needs at least two lines')

    total_debit, total_credit = ZERO, ZERO
    for number, line in enumerate(lines, start=1):
        debit = Decimal(str(line.get('debit_amount') or 0))
        credit = Decimal(str(line.get('credit_amount') or 0))
        if debit < 0 or credit < 0:
            errors.append(f"Line {number}: amounts cannot be negative")
        elif (debit > 0) == (credit > 0):
            errors.append(f"Line {number}: enter either a debit or a credit amount")
        account = line.get('account')
        if account is not None and not account.is_active:
            errors.append(f"Line {number}: account {account.account_code} is inactive")
        total_debit += debit
        total_credit += credit

    if total_debit != total_credit:
        errors.append(f"Entry is not balanced: debits {total_debit}, credits {total_credit}")
    elif total_debit <= 0:
        errors.append('Entry total must be greater than zero')
    return errors


def next_journal_number(year):
    prefix = f"JE-{year}-"
    last = (
        JournalEntry.objects.select_for_update()
        .filter(journal_number__startswith=prefix)
        .order_by('-journal_number')
        .values_list('journal_number', flat=True)
        .first()
    )
    sequence = int(last[len(prefix):]) + 1 if last else 1
    return f"{prefix}{sequence:06d}"


def _write_lines(entry, lines):
    entry.lines.all().delete()
    JournalEntryLine.objects.bulk_create([
        JournalEntryLine(
            journal_entry=entry,
            line_number=number,
            account=line['account'],
            description=line.get('description', ''),
            debit_amount=Decimal(str(line.get('debit_amount') or 0)),
            credit_amount=Decimal(str(line.get('credit_amount') or 0)),
        )
        for number, line in enumerate(lines, start=1)
    ])
    entry.total_debit = sum((Decimal(str(line.get('debit_amount') or 0)) for line in lines), ZERO)
    entry.total_credit = sum((Decimal(str(line.get('credit_amount') or 0)) for line in lines), ZERO)


@transaction.atomic
def save_journal_entry(lines, user=None, entry=None, **fields):
    """Create (entry=None) or replace a draft entry and its lines"""
    if entry is not None and entry.status != 'draft':
        raise LedgerError(f"Only draft entries can be edited (status: {entry.status})")

    errors = validate_lines(lines)
    if errors:
        raise LedgerError('; '.join(errors))

    entry_date = fields.get('entry_date') or (entry.entry_date if entry else timezone.localdate())
    if is_period_closed(entry_date):
        raise LedgerError(f"Fiscal period {period_key(entry_date)} is closed")

    if entry is None:
        entry = JournalEntry(
            journal_number=next_journal_number(entry_date.year),
            created_by=user if user is not None and user.is_authenticated else None,
        )
    for name, value in fields.items():
        setattr(entry, name, value)
    entry.entry_date = entry_date
    entry.fiscal_period = period_key(entry_date)
    entry.save()
    _write_lines(entry, lines)
    entry.save(update_fields=['total_debit', 'total_credit', 'updated_at'])
    return entry


@transaction.atomic
def post_entry(entry, user=None):
    entry = JournalEntry.objects.select_for_update().get(pk=entry.pk)
    if entry.status != 'draft':
        raise LedgerError(f"Only draft entries can be posted (status: {entry.status})")
    if is_period_closed(entry.entry_date):
        raise LedgerError(f"Fiscal period {entry.fiscal_period} is closed")
    lines = [
        {'account': line.account, 'debit_amount': line.debit_amount, 'credit_amount': line.credit_amount}
        for line in entry.lines.select_related('account')
    ]
    errors = validate_lines(lines)
    if errors:
        raise LedgerError('; '.join(errors))

    entry.status = 'posted'
    entry.posted_at = timezone.now()
    entry.posted_by = user if user is not None and user.is_authenticated else None
    entry.save(update_fields=['status', 'posted_at', 'posted_by', 'updated_at'])
    logger.info(f"Journal entry {entry.journal_number} posted")
    return entry


@transaction.atomic
def void_entry(entry, reason=''):
    entry = JournalEntry.objects.select_for_update().get(pk=entry.pk)
    if entry.status == 'void':
        raise LedgerError('Entry is already void')
    if is_period_closed(entry.entry_date):
        raise LedgerError(f"Fiscal period {entry.fiscal_period} is closed")
    entry.status = 'void'
    if reason:
        entry.notes = f"{entry.notes}\nVoided: {reason}".strip()
    entry.save(update_fields=['status', 'notes', 'updated_at'])
    logger.info(f"Journal entry {entry.journal_number} voided")
    return entry


def _posted_lines(date_from=None, date_to=None, store=None):
    lines = JournalEntryLine.objects.filter(journal_entry__status='posted')
    if date_from:
        lines = lines.filter(journal_entry__entry_date__gte=date_from)
    if date_to:
        lines = lines.filter(journal_entry__entry_date__lte=date_to)
    if store is not None:
        lines = lines.filter(journal_entry__store=store)
    return lines


def signed_balance(account, debit, credit):
    return debit - credit if account.is_debit_normal else credit - debit


def general_ledger(account, date_from=None, date_to=None, store=None):
    """Posted lines for an account in date order, with a running balance in the account's normal direction"""
    opening = ZERO
    if date_from:
        before = _posted_lines(store=store).filter(
            account=account, journal_entry__entry_date__lt=date_from,
        ).aggregate(debit=Sum('debit_amount'), credit=Sum('credit_amount'))
        opening = signed_balance(account, before['debit'] or ZERO, before['credit'] or ZERO)

    lines = _posted_lines(date_from, date_to, store).filter(account=account).select_related('journal_entry').order_by(
        'journal_entry__entry_date', 'journal_entry__id', 'line_number'
    )
    balance = opening
    rows = []
    for line in lines:
        balance += signed_balance(account, line.debit_amount, line.credit_amount)
        rows.append({
            'entry_id': line.journal_entry_id,
            'journal_number': line.journal_entry.journal_number,
            'entry_date': line.journal_entry.entry_date.isoformat(),
            'description': line.description or line.journal_entry.description,
            'debit_amount': str(line.debit_amount),
            'credit_amount': str(line.credit_amount),
            'running_balance': str(balance),
        })
    return {
        'account': {'id': account.id, 'account_code': account.account_code, 'account_name': account.account_name,
                    'account_type': account.account_type},
        'opening_balance': str(opening),
        'entries': rows,
        'closing_balance': str(balance),
    }


def trial_balance(date_from=None, date_to=None, store=None):
    """Per-account debit/credit totals over posted entries; balanced when the columns agree"""
    totals = (
        _posted_lines(date_from, date_to, store)
        .values('account_id')
        .annotate(debit=Sum('debit_amount'), credit=Sum('credit_amount'))
    )
    by_account = {row['account_id']: row for row in totals}
    accounts = ChartOfAccount.objects.filter(Q(pk__in=by_account.keys()) | Q(is_active=True))

    rows, total_debit, total_credit = [], ZERO, ZERO
    for account in accounts:
        row = by_account.get(account.pk, {})
        debit, credit = row.get('debit') or ZERO, row.get('credit') or ZERO
        if not debit and not credit:
            continue
        net = debit - credit
        debit_balance = net if net > 0 else ZERO
        credit_balance = -net if net < 0 else ZERO
        total_debit += debit_balance
        total_credit += credit_balance
        rows.append({
            'account_id': account.pk,
            'account_code': account.account_code,
            'account_name': account.account_name,
            'account_type': account.account_type,
            'total_debit': str(debit),
            'total_credit': str(credit),
            'debit_balance': str(debit_balance),
            'credit_balance': str(credit_balance),
        })
    return {
        'accounts': rows,
        'total_debit': str(total_debit),
        'total_credit': str(total_credit),
        'is_balanced': total_debit == total_credit,
    }


def create_period(year, month):
    if not 1 <= month <= 12:
        raise LedgerError('Month must be between 1 and 12')
    if FiscalPeriod.objects.filter(period_year=year, period_month=month).exists():
        raise LedgerError(f"Fiscal period {year:04d}-{month:02d} already exists")
    return FiscalPeriod.objects.create(
        period_year=year,
        period_month=month,
        period_name=f"{calendar.month_name[month]} {year}",
        start_date=date(year, month, 1),
        end_date=date(year, month, calendar.monthrange(year, month)[1]),
    )


@transaction.atomic
def close_period(period, user=None):
    period = FiscalPeriod.objects.select_for_update().get(pk=period.pk)
    if period.is_closed:
        raise LedgerError(f"{period.period_name} is already closed")
    drafts = JournalEntry.objects.filter(fiscal_period=period.period_key, status='draft').count()
    if drafts:
        raise LedgerError(f"{period.period_name} has {drafts} draft entries; post or delete them first")
    period.is_closed = True
    period.closed_at = timezone.now()
    period.closed_by = user if user is not None and user.is_authenticated else None
    period.save(update_fields=['is_closed', 'closed_at', 'closed_by'])
    logger.info(f"Fiscal period {period.period_key} closed")
    return period


@transaction.atomic
def reopen_period(period):
    period = FiscalPeriod.objects.select_for_update().get(pk=period.pk)
    if not period.is_closed:
        raise LedgerError(f"{period.period_name} is not closed")
    period.is_closed = False
    period.closed_at = None
    period.closed_by = None
    period.save(update_fields=['is_closed', 'closed_at', 'closed_by'])
    logger.info(f"Fiscal period {period.period_key} reopened")
    return period
