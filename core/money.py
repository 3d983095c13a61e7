"""Decimal money helpers.

Amounts are stored with two decimal places; arithmetic and comparisons are
done on integer minor units so fee sums never drift.
"""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
# Largest acceptable gap between the recorded net and the computed net
TOLERANCE_MINOR_UNITS = 1


def quantize(amount):
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor(amount):
    return int(quantize(amount) * 100)


def from_minor(units):
    return (Decimal(units) / 100).quantize(CENT)


def net_of(gross, platform_fee, processing_fee, tax):
    return from_minor(to_minor(gross) - to_minor(platform_fee) - to_minor(processing_fee) - to_minor(tax))


def breakdown_matches(gross, platform_fee, processing_fee, tax, net):
    expected = to_minor(gross) - to_minor(platform_fee) - to_minor(processing_fee) - to_minor(tax)
    return abs(expected - to_minor(net)) <= TOLERANCE_MINOR_UNITS


def percent_of(amount, percent):
    return quantize(quantize(amount) * Decimal(str(percent)) / 100)
