from decimal import Decimal
from django.conf import settings
from django.db import models
from backend.locations.models import Store

MONEY = dict(max_digits=14, decimal_places=2)


class ChartOfAccount(models.Model):
    ACCOUNT_TYPE_CHOICES = [
        ('asset', 'Asset'),
        ('liability', 'Liability'),
        ('equity', 'Equity'),
        ('revenue', 'Revenue'),
        ('expense', 'Expense'),
    ]
    # balances of these types grow with debits
    DEBIT_NORMAL_TYPES = ('asset', 'expense')

    account_code = models.CharField(max_length=20, unique=True)
    account_name = models.CharField(max_length=200)
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPE_CHOICES)
    account_subtype = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.account_code} {self.account_name}"

    @property
    def is_debit_normal(self):
        return self.account_type in self.DEBIT_NORMAL_TYPES

    class Meta:
        db_table = 'chart_of_accounts'
        ordering = ['account_code']


class FiscalPeriod(models.Model):
    period_year = models.PositiveIntegerField()
    period_month = models.PositiveSmallIntegerField()
    period_name = models.CharField(max_length=50)
    start_date = models.DateField()
    end_date = models.DateField()
    is_closed = models.BooleanField(default=False)
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='closed_periods')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.period_name

    @property
    def period_key(self):
        """YYYY-MM, as stored on journal entries"""
        return f"{self.period_year:04d}-{self.period_month:02d}"

    class Meta:
        db_table = 'fiscal_periods'
        ordering = ['-period_year', '-period_month']
        constraints = [
            models.UniqueConstraint(fields=['period_year', 'period_month'], name='unique_fiscal_period_year_month'),
        ]


class JournalEntry(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('posted', 'Posted'),
        ('void', 'Void'),
    ]

    journal_number = models.CharField(max_length=30, unique=True)
    entry_date = models.DateField()
    reference_number = models.CharField(max_length=100, blank=True)
    description = models.TextField()
    total_debit = models.DecimalField(default=Decimal('0.00'), **MONEY)
    total_credit = models.DecimalField(default=Decimal('0.00'), **MONEY)
    store = models.ForeignKey(Store, on_delete=models.SET_NULL, null=True, blank=True, related_name='journal_entries')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='draft')
    notes = models.TextField(blank=True)
    is_adjusting_entry = models.BooleanField(default=False)
    fiscal_period = models.CharField(max_length=7, db_index=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='journal_entries')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='posted_journal_entries')

    def __str__(self):
        return self.journal_number

    class Meta:
        db_table = 'journal_entries'
        ordering = ['-entry_date', '-id']
        verbose_name_plural = 'journal entries'


class JournalEntryLine(models.Model):
    journal_entry = models.ForeignKey(JournalEntry, on_delete=models.CASCADE, related_name='lines')
    line_number = models.PositiveIntegerField()
    account = models.ForeignKey(ChartOfAccount, on_delete=models.PROTECT, related_name='journal_lines')
    description = models.CharField(max_length=255, blank=True)
    debit_amount = models.DecimalField(default=Decimal('0.00'), **MONEY)
    credit_amount = models.DecimalField(default=Decimal('0.00'), **MONEY)

    def __str__(self):
        return f"{self.journal_entry.journal_number} #{self.line_number}"

    class Meta:
        db_table = 'journal_entry_lines'
        ordering = ['line_number']
        indexes = [
            models.Index(fields=['account', 'journal_entry'], name='idx_je_line_account_entry'),
        ]
