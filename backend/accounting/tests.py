"""
Test suite for Accounting module
Tests: line validation, journal numbering, posting and voiding, fiscal period locks,
general ledger running balance, trial balance and the accounting endpoints
"""
from datetime import date
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.accounting import ledger
from backend.accounting.models import ChartOfAccount, JournalEntry


class LedgerTests(TestCase):
    """Test double-entry rules in the ledger service"""

    def setUp(self):
        self.user = TestDataFactory.create_user(groups=['Admin'])
        self.cash = TestDataFactory.create_account('1000', 'asset', 'Cash on Hand')
        self.sales = TestDataFactory.create_account('4000', 'revenue', 'Food Sales')
        self.rent = TestDataFactory.create_account('6100', 'expense', 'Rent')

    def _entry(self, amount, debit=None, credit=None, entry_date=date(2025, 3, 10), post=True):
        lines = [
            {'account': debit or self.cash, 'debit_amount': amount},
            {'account': credit or self.sales, 'credit_amount': amount},
        ]
        entry = ledger.save_journal_entry(lines, user=self.user, entry_date=entry_date,
                                          description='Daily sales')
        if post:
            entry = ledger.post_entry(entry, user=self.user)
        return entry

    def test_validate_lines(self):
        self.assertEqual(ledger.validate_lines([
            {'account': self.cash, 'debit_amount': '10'}, {'account': self.sales, 'credit_amount': '10'},
        ]), [])
        errors = ledger.validate_lines([{'account': self.cash, 'debit_amount': '10'}])
        self.assertIn('A journal entry needs at least two lines', errors)
        errors = ledger.validate_lines([
            {'account': self.cash, 'debit_amount': '10'}, {'account': self.sales, 'credit_amount': '9'},
        ])
        self.assertIn('not balanced', errors[0])
        errors = ledger.validate_lines([
            {'account': self.cash, 'debit_amount': '10', 'credit_amount': '10'},
            {'account': self.sales},
        ])
        self.assertTrue(any('either a debit or a credit' in e for e in errors))

    def test_inactive_account_rejected(self):
        self.sales.is_active = False
        self.sales.save()
        with self.assertRaises(ledger.LedgerError):
            self._entry('50.00')

    def test_journal_numbers_are_sequential_per_year(self):
        first = self._entry('10.00', post=False)
        second = self._entry('20.00', post=False)
        other_year = self._entry('30.00', entry_date=date(2026, 1, 5), post=False)
        self.assertEqual(first.journal_number, 'JE-2025-000001')
        self.assertEqual(second.journal_number, 'JE-2025-000002')
        self.assertEqual(other_year.journal_number, 'JE-2026-000001')
        self.assertEqual(first.fiscal_period, '2025-03')

    def test_post_and_void(self):
        entry = self._entry('100.00')
        self.assertEqual(entry.status, 'posted')
        self.assertEqual(entry.posted_by, self.user)
        with self.assertRaises(ledger.LedgerError):
            ledger.post_entry(entry)
        with self.assertRaises(ledger.LedgerError):
            ledger.save_journal_entry([], entry=entry)
        entry = ledger.void_entry(entry, reason='Duplicate')
        self.assertEqual(entry.status, 'void')
        self.assertIn('Voided: Duplicate', entry.notes)

    def test_closed_period_blocks_changes(self):
        entry = self._entry('100.00')
        period = ledger.create_period(2025, 3)
        self.assertEqual(period.period_name, 'March 2025')
        self.assertEqual(period.end_date, date(2025, 3, 31))
        ledger.close_period(period, user=self.user)
        with self.assertRaises(ledger.LedgerError):
            self._entry('10.00')
        with self.assertRaises(ledger.LedgerError):
            ledger.void_entry(entry)
        ledger.reopen_period(period)
        self._entry('10.00')

    def test_period_with_drafts_cannot_close(self):
        self._entry('10.00', post=False)
        period = ledger.create_period(2025, 3)
        with self.assertRaises(ledger.LedgerError):
            ledger.close_period(period)
        with self.assertRaises(ledger.LedgerError):
            ledger.create_period(2025, 3)
        with self.assertRaises(ledger.LedgerError):
            ledger.create_period(2025, 13)

    def test_general_ledger_running_balance(self):
        self._entry('100.00', entry_date=date(2025, 2, 28))
        self._entry('50.00', entry_date=date(2025, 3, 1))
        self._entry('30.00', debit=self.rent, credit=self.cash, entry_date=date(2025, 3, 2))
        self._entry('999.00', entry_date=date(2025, 3, 3), post=False)

        result = ledger.general_ledger(self.cash, date_from=date(2025, 3, 1))
        self.assertEqual(result['opening_balance'], '100.00')
        self.assertEqual([row['running_balance'] for row in result['entries']], ['150.00', '120.00'])
        self.assertEqual(result['closing_balance'], '120.00')

        revenue = ledger.general_ledger(self.sales)
        self.assertEqual(revenue['closing_balance'], '150.00')

    def test_trial_balance(self):
        self._entry('100.00')
        self._entry('40.00', debit=self.rent, credit=self.cash)
        voided = self._entry('500.00')
        ledger.void_entry(voided)

        result = ledger.trial_balance()
        self.assertTrue(result['is_balanced'])
        self.assertEqual(result['total_debit'], '100.00')
        rows = {row['account_code']: row for row in result['accounts']}
        self.assertEqual(rows['1000']['debit_balance'], '60.00')
        self.assertEqual(rows['4000']['credit_balance'], '100.00')
        self.assertEqual(rows['6100']['debit_balance'], '40.00')


class AccountingAPITests(TestCase):
    """Test accounting endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(groups=['Owner'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.cash = TestDataFactory.create_account('1000', 'asset', 'Cash on Hand')
        self.sales = TestDataFactory.create_account('4000', 'revenue', 'Food Sales')

    def _entry_payload(self, amount='250.00', **extra):
        data = {
            'entry_date': '2025-05-15',
            'description': 'Cash sales',
            'lines': [
                {'account': self.cash.id, 'debit_amount': amount},
                {'account': self.sales.id, 'credit_amount': amount},
            ],
        }
        data.update(extra)
        return data

    def test_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user(groups=['Manager']))
        response = self.client.get('/api/v1/accounting/accounts/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_account(self):
        response = self.client.post('/api/v1/accounting/accounts/', {
            'account_code': ' 5000 ', 'account_name': 'Cost of Sales', 'account_type': 'expense',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['account_code'], '5000')
        response = self.client.post('/api/v1/accounting/accounts/', {
            'account_code': '5000', 'account_name': 'Duplicate', 'account_type': 'expense',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_and_post_entry(self):
        response = self.client.post('/api/v1/accounting/journal-entries/', self._entry_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['total_debit'], '250.00')
        entry_id = response.data['id']

        response = self.client.post(f'/api/v1/accounting/journal-entries/{entry_id}/post/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'posted')
        self.assertTrue(AuditLog.objects.filter(action='journal_post', object_id=str(entry_id)).exists())

        response = self.client.patch(f'/api/v1/accounting/journal-entries/{entry_id}/',
                                     {'description': 'Edited'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unbalanced_entry_rejected(self):
        payload = self._entry_payload()
        payload['lines'][1]['credit_amount'] = '200.00'
        response = self.client.post('/api/v1/accounting/journal-entries/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('not balanced', response.data['error'])
        self.assertFalse(JournalEntry.objects.exists())

    def test_draft_can_be_edited_and_deleted(self):
        response = self.client.post('/api/v1/accounting/journal-entries/', self._entry_payload(), format='json')
        entry_id = response.data['id']
        response = self.client.patch(f'/api/v1/accounting/journal-entries/{entry_id}/',
                                     {'description': 'Corrected'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Corrected')
        self.assertEqual(len(response.data['lines']), 2)
        response = self.client.delete(f'/api/v1/accounting/journal-entries/{entry_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_used_account_is_deactivated_not_deleted(self):
        self.client.post('/api/v1/accounting/journal-entries/', self._entry_payload(post=True), format='json')
        response = self.client.delete(f'/api/v1/accounting/accounts/{self.cash.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'deactivated')
        self.assertFalse(ChartOfAccount.objects.get(pk=self.cash.id).is_active)

        unused = TestDataFactory.create_account('9999', 'equity')
        response = self.client.delete(f'/api/v1/accounting/accounts/{unused.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_ledger_and_trial_balance_endpoints(self):
        self.client.post('/api/v1/accounting/journal-entries/', self._entry_payload(post=True), format='json')
        response = self.client.get(f'/api/v1/accounting/accounts/{self.cash.id}/ledger/?date_from=2025-05-01')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['closing_balance'], '250.00')
        response = self.client.get('/api/v1/accounting/trial-balance/')
        self.assertTrue(response.data['is_balanced'])
        response = self.client.get('/api/v1/accounting/trial-balance/?date_from=May')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_period_close_and_reopen(self):
        response = self.client.post('/api/v1/accounting/periods/', {'period_year': 2025, 'period_month': 5},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        period_id = response.data['id']
        response = self.client.post(f'/api/v1/accounting/periods/{period_id}/close/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_closed'])

        response = self.client.post('/api/v1/accounting/journal-entries/', self._entry_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('closed', response.data['error'])

        response = self.client.post(f'/api/v1/accounting/periods/{period_id}/reopen/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_closed'])
