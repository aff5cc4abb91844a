import uuid
from decimal import Decimal
from django.conf import settings
from django.db import models
from backend.locations.models import Store

MONEY = dict(max_digits=12, decimal_places=2)


class Transaction(models.Model):
    """A counter sale"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('voided', 'Voided'),
    ]
    DISCOUNT_TYPE_CHOICES = [
        ('none', 'None'),
        ('senior', 'Senior Citizen'),
        ('pwd', 'PWD'),
        ('promo', 'Promo'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('e-wallet', 'E-Wallet'),
    ]

    # Reference written on inventory movements for this sale
    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name='transactions')
    sequence_number = models.PositiveIntegerField()
    receipt_number = models.CharField(max_length=50, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    subtotal = models.DecimalField(default=Decimal('0.00'), **MONEY)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, default='none')
    discount_id_number = models.CharField(max_length=100, blank=True)
    discount_amount = models.DecimalField(default=Decimal('0.00'), **MONEY)
    vatable_sales = models.DecimalField(default=Decimal('0.00'), **MONEY)
    vat_amount = models.DecimalField(default=Decimal('0.00'), **MONEY)
    vat_exempt_sales = models.DecimalField(default=Decimal('0.00'), **MONEY)
    total = models.DecimalField(default=Decimal('0.00'), **MONEY)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    amount_tendered = models.DecimalField(default=Decimal('0.00'), **MONEY)
    change_amount = models.DecimalField(default=Decimal('0.00'), **MONEY)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='pos_transactions')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='voided_pos_transactions')
    void_reason = models.TextField(blank=True)

    def __str__(self):
        return self.receipt_number

    @property
    def inventory_items(self):
        """Sold lines in the shape the inventory services expect"""
        return [
            {'product_id': item.product_id, 'product_name': item.product_name, 'quantity': item.quantity,
             'add_ons': item.add_ons}
            for item in self.items.all()
        ]

    class Meta:
        db_table = 'pos_transactions'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['store', 'sequence_number'], name='unique_pos_txn_store_sequence'),
        ]
        indexes = [
            models.Index(fields=['store', 'status', 'created_at'], name='idx_pos_txn_store_status'),
        ]


class TransactionItem(models.Model):
    transaction = models.ForeignKey(Transaction, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.ProductCatalog', on_delete=models.SET_NULL, null=True, blank=True, related_name='transaction_items')
    product_name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_price = models.DecimalField(**MONEY)
    total_price = models.DecimalField(**MONEY)
    # Selected mix-and-match add-on ingredient names
    add_ons = models.JSONField(default=list, blank=True)

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"

    class Meta:
        db_table = 'pos_transaction_items'
        ordering = ['id']
