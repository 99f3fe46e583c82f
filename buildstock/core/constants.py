PAYMENT_STATUS_CHOICES = [
    ('unpaid', 'Unpaid'),
    ('partial', 'Partial'),
    ('paid', 'Paid'),
]

PAYMENT_TYPE_CHOICES = [
    ('Cash', 'Cash'),
    ('Cheque', 'Cheque'),
    ('PDC', 'Post-dated Cheque'),
    ('Bank Transfer', 'Bank Transfer'),
    ('Online', 'Online'),
]

QUANTITY_FIELD = {'max_digits': 12, 'decimal_places': 2}
MONEY_FIELD = {'max_digits': 14, 'decimal_places': 2}
