"""
BIR compliance configuration, store compliance status, VAT and discount rules.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from .models import StoreComplianceSettings

logger = logging.getLogger('backend.compliance')

MONEY = Decimal('0.01')

DEFAULT_BIR_CONFIG = {
    # Store identity requirements
    'require_tin': True,
    'require_business_name': True,
    'require_address': True,
    'require_machine_accreditation': True,
    'require_machine_serial': True,
    'require_permit_number': True,
    # Receipt content
    'vat_rate': 12.0,
    'require_vat_breakdown': True,
    'require_senior_pwd_breakdown': True,
    'require_sequence_number': True,
    'require_terminal_id': True,
    'require_receipt_footer': True,
    'custom_receipt_footer': 'This serves as your official receipt. Thank you for your business!',
    # Transaction rules
    'enforce_vat_calculation': True,
    'enforce_discount_validation': True,
    'require_customer_type': False,
    'max_discount_percentage': 20,
    # Audit & reporting
    'enable_audit_logs': True,
    'enable_e_journal': True,
    'enable_z_reading': True,
    'enable_x_reading': True,
    'auto_backup_frequency': 'daily',
    'require_digital_signature': False,
    # Printing
    'enable_thermal_printing': True,
    'receipt_copies': 1,
    'font_size_multiplier': 1.0,
}

BACKUP_FREQUENCIES = ('hourly', 'daily', 'weekly')

# (config flag, store attribute, label)
REQUIRED_STORE_FIELDS = [
    ('require_tin', 'tin', 'TIN'),
    ('require_business_name', 'business_name', 'Business Name'),
    ('require_machine_accreditation', 'machine_accreditation_number', 'Machine Accreditation'),
    ('require_machine_serial', 'machine_serial_number', 'Machine Serial'),
    ('require_permit_number', 'permit_number', 'Permit Number'),
    ('require_address', 'address', 'Address'),
]


def merge_with_defaults(stored):
    config = dict(DEFAULT_BIR_CONFIG)
    config.update(stored or {})
    return config


def get_compliance_config(store):
    """Effective config for a store: stored values over the defaults"""
    row = StoreComplianceSettings.objects.filter(store=store).first()
    return merge_with_defaults(row.bir_compliance_config if row else None)


def validate_config(values):
    """Return a dict of field -> error for unknown keys or bad values"""
    errors = {}
    for key, value in values.items():
        if key not in DEFAULT_BIR_CONFIG:
            errors[key] = 'Unknown compliance setting'
            continue
        default = DEFAULT_BIR_CONFIG[key]
        if isinstance(default, bool):
            if not isinstance(value, bool):
                errors[key] = 'Must be true or false'
        elif isinstance(default, (int, float)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors[key] = 'Must be a number'
            elif value < 0:
                errors[key] = 'Must not be negative'
        elif not isinstance(value, str):
            errors[key] = 'Must be text'

    if 'max_discount_percentage' in values and 'max_discount_percentage' not in errors:
        if values['max_discount_percentage'] > 100:
            errors['max_discount_percentage'] = 'Must be between 0 and 100'
    if 'vat_rate' in values and 'vat_rate' not in errors and values['vat_rate'] > 100:
        errors['vat_rate'] = 'Must be between 0 and 100'
    if values.get('auto_backup_frequency') not in (None,) + BACKUP_FREQUENCIES:
        errors['auto_backup_frequency'] = f"Must be one of: {', '.join(BACKUP_FREQUENCIES)}"
    if 'receipt_copies' in values and 'receipt_copies' not in errors and values['receipt_copies'] < 1:
        errors['receipt_copies'] = 'At least one copy is required'
    return errors


def save_compliance_config(store, values, user=None):
    """Merge values into the stored config; returns the effective config"""
    row, _ = StoreComplianceSettings.objects.get_or_create(store=store)
    stored = dict(row.bir_compliance_config or {})
    stored.update(values)
    row.bir_compliance_config = stored
    row.updated_by = user.username if user is not None and user.is_authenticated else 'system'
    row.save()
    logger.info(f"Compliance settings for store {store.id} updated: {sorted(values)}")
    return merge_with_defaults(stored)


def get_compliance_status(store, config=None):
    """
    Count required-but-missing store fields.
    0 missing -> compliant, up to 2 -> warning, otherwise error.
    """
    config = config or get_compliance_config(store)
    missing = [
        label for flag, attr, label in REQUIRED_STORE_FIELDS
        if config.get(flag) and not (getattr(store, attr) or '').strip()
    ]
    if not missing:
        status = 'compliant'
    elif len(missing) <= 2:
        status = 'warning'
    else:
        status = 'error'
    return {'status': status, 'missing_fields': missing, 'missing_count': len(missing)}


def vat_breakdown(amount, vat_rate=DEFAULT_BIR_CONFIG['vat_rate']):
    """Split a VAT-inclusive amount: vat = amount * rate / (100 + rate)"""
    amount = Decimal(str(amount))
    rate = Decimal(str(vat_rate))
    if amount <= 0 or rate <= 0:
        return {'vatable_sales': amount.quantize(MONEY, ROUND_HALF_UP), 'vat_amount': Decimal('0.00')}
    vat = (amount * rate / (Decimal('100') + rate)).quantize(MONEY, ROUND_HALF_UP)
    return {'vatable_sales': (amount - vat).quantize(MONEY, ROUND_HALF_UP), 'vat_amount': vat}


def validate_discount(subtotal, discount_amount, config=None):
    """Returns an error message when the discount breaks the configured cap, else None"""
    config = config or DEFAULT_BIR_CONFIG
    subtotal = Decimal(str(subtotal))
    discount_amount = Decimal(str(discount_amount))
    if discount_amount < 0:
        return 'Discount cannot be negative'
    if discount_amount > subtotal:
        return 'Discount cannot exceed the subtotal'
    if not config.get('enforce_discount_validation') or subtotal <= 0:
        return None
    max_pct = Decimal(str(config.get('max_discount_percentage', 20)))
    pct = discount_amount / subtotal * Decimal('100')
    # compare in cents so a rounded 20% discount is not rejected
    allowed = (subtotal * max_pct / Decimal('100')).quantize(MONEY, ROUND_HALF_UP)
    if discount_amount > allowed:
        return f"Discount of {pct.quantize(MONEY)}% exceeds the maximum of {max_pct}%"
    return None
