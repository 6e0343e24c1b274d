"""
Module for formatting currency and date values using Babel.

"""
import datetime
import logging
from typing import List

from babel import Locale, UnknownLocaleError, numbers
from babel.dates import format_date

CURRENCY_MAP: dict[str, str] = {
    'US': 'USD',
    'GB': 'GBP',
    'DE': 'EUR',
    'FR': 'EUR',
    'IT': 'EUR',
    'ES': 'EUR',
    'NL': 'EUR',
    'JP': 'JPY',
    'CA': 'CAD',
    'AU': 'AUD',
    'IN': 'INR',
    'AE': 'AED',
    'SG': 'SGD',
    'ZA': 'ZAR',
}

LOCALE_MAP: List[str] = [
    'en_IN',
    'hi_IN',
    'en_GB',
    'en_US',
    'en_AU',
    'en_CA',
    'en_SG',
    'en_ZA',
    'de_DE',
    'fr_FR',
]

# Month labels written to the data sheet are always English
MONTH_LABEL_LOCALE: str = 'en_US'


def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the default currency code based on the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'en_IN'.

    Returns:
        str: Currency code such as 'INR'. Defaults to 'INR' if the territory is unknown.
    """
    parts = locale.split('_')
    if len(parts) < 2:
        return 'INR'
    return CURRENCY_MAP.get(parts[1], 'INR')


def format_currency_value(value: float, locale: str, whole: bool = True) -> str:
    """
    Format a float as a currency string based on the locale's default currency.

    Args:
        value (float): The numeric value to be formatted.
        locale (str): Locale string, e.g. 'en_IN'.
        whole (bool): Round to whole currency units, as the dashboard tiles show them.

    Returns:
        str: The formatted currency string.
    """
    try:
        currency_code = get_currency_from_locale(locale)
        locale_obj = Locale.parse(locale)
        if whole:
            return numbers.format_currency(
                round(value), currency=currency_code, locale=locale_obj,
                currency_digits=False, format=locale_obj.currency_formats['standard'].pattern.replace('.00', '')
            )
        return numbers.format_currency(value, currency=currency_code, locale=locale_obj)
    except (UnknownLocaleError, ValueError) as ex:
        logging.warning(f'Error formatting currency for locale "{locale}": {ex}')
        return str(value)


def format_month_label(value: datetime.date) -> str:
    """
    Returns the long month label for a date, e.g. 'October 2026'.
    """
    return format_date(value, format='MMMM yyyy', locale=MONTH_LABEL_LOCALE)


def format_timestamp(value: datetime.datetime) -> str:
    """
    Returns the submission timestamp written to the data sheet, e.g. '19/10/2026 14:05:09'.
    """
    return value.strftime('%d/%m/%Y %H:%M:%S')
