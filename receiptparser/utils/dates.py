"""
Calendar date parsing for OCR'd receipt text.

A candidate string is tried against an ordered list of strptime templates.
Templates with a month name are tried once per configured locale variant, so
"4 mars 2024" and "Mar 4, 2024" both resolve. When no template fits, each
locale's own reading through dateutil is the last resort.

Ambiguous numeric dates are settled by template order alone: 03/04/2024 is
read month-first because "%m/%d/%Y" precedes "%d/%m/%Y".
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple
import locale
import logging
import re

from dateutil import parser as dateutil_parser

from ..config import settings

logger = logging.getLogger(__name__)


DATE_FORMATS = [
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d',
    '%Y/%m/%d',
    '%m/%d/%Y',
    '%d/%m/%Y',
    '%d-%m-%Y',
    '%m-%d-%Y',
    '%b %d %Y',
    '%d %b %Y',
    '%b %d, %Y',
    '%d %b, %Y',
    '%Y.%m.%d',
    '%d.%m.%Y',
    '%m/%d/%y',
    '%d/%m/%y',
    '%m-%d-%y',
    '%d-%m-%y',
    '%d.%m.%y',
]


class FrenchParserInfo(dateutil_parser.parserinfo):
    MONTHS = [
        ('janv', 'janvier'),
        ('févr', 'fevr', 'février', 'fevrier'),
        ('mars',),
        ('avr', 'avril'),
        ('mai',),
        ('juin',),
        ('juil', 'juillet'),
        ('août', 'aout'),
        ('sept', 'septembre'),
        ('oct', 'octobre'),
        ('nov', 'novembre'),
        ('déc', 'dec', 'décembre', 'decembre'),
    ]


class GermanParserInfo(dateutil_parser.parserinfo):
    MONTHS = [
        ('jan', 'januar', 'jän', 'jänner'),
        ('feb', 'februar'),
        ('mär', 'mrz', 'märz', 'maerz'),
        ('apr', 'april'),
        ('mai',),
        ('jun', 'juni'),
        ('jul', 'juli'),
        ('aug', 'august'),
        ('sep', 'sept', 'september'),
        ('okt', 'oktober'),
        ('nov', 'november'),
        ('dez', 'dezember'),
    ]


class SpanishParserInfo(dateutil_parser.parserinfo):
    MONTHS = [
        ('ene', 'enero'),
        ('feb', 'febrero'),
        ('mar', 'marzo'),
        ('abr', 'abril'),
        ('may', 'mayo'),
        ('jun', 'junio'),
        ('jul', 'julio'),
        ('ago', 'agosto'),
        ('sep', 'sept', 'septiembre', 'set', 'setiembre'),
        ('oct', 'octubre'),
        ('nov', 'noviembre'),
        ('dic', 'diciembre'),
    ]


_ENGLISH = dateutil_parser.parserinfo()

# Locale variants: month vocabulary plus the day/month preference of the
# short-date fallback.
LOCALE_VARIANTS: Dict[str, dateutil_parser.parserinfo] = {
    'en_US_POSIX': _ENGLISH,
    'en_US': _ENGLISH,
    'en_GB': dateutil_parser.parserinfo(dayfirst=True),
    'fr_FR': FrenchParserInfo(dayfirst=True),
    'de_DE': GermanParserInfo(dayfirst=True),
    'es_ES': SpanishParserInfo(dayfirst=True),
}

# Language prefix of the process locale → variant used for "current"
_LANGUAGE_DEFAULTS = {'en': 'en_US', 'fr': 'fr_FR', 'de': 'de_DE', 'es': 'es_ES'}

_WORD = re.compile(r'[^\W\d_]+\.?')
_DIGIT_GROUP = re.compile(r'\d+')


def current_locale_name() -> Optional[str]:
    """Name of the locale variant matching the process LC_TIME locale, if any."""
    try:
        language, _ = locale.getlocale(locale.LC_TIME)
    except ValueError:
        return None
    if not language:
        return None
    if language in LOCALE_VARIANTS:
        return language
    return _LANGUAGE_DEFAULTS.get(language.split('_')[0].lower())


@lru_cache(maxsize=32)
def _resolve(keys: Tuple[Optional[str], ...]) -> Tuple[Tuple[str, dateutil_parser.parserinfo], ...]:
    # "current" is already replaced here; None marks an unmatched process locale
    resolved = []
    seen = set()
    for key in keys:
        if key is None:
            continue
        info = LOCALE_VARIANTS.get(key)
        if info is None:
            logger.warning("Unknown date locale ignored", extra={'locale': key})
            continue
        if id(info) in seen:
            continue
        seen.add(id(info))
        resolved.append((key, info))
    return tuple(resolved)


def resolve_locales(names: Optional[Sequence[str]] = None) -> List[Tuple[str, dateutil_parser.parserinfo]]:
    """
    Resolve locale names to (name, parserinfo) pairs in order.

    Unknown names are dropped with a warning; variants sharing a vocabulary are
    only kept once. "current" is looked up on every call, so a later
    ``locale.setlocale(LC_TIME, ...)`` is honoured. Defaults to
    ``settings.DATE_LOCALES``.
    """
    if names is None:
        names = settings.DATE_LOCALES
    keys = tuple(current_locale_name() if name == 'current' else name for name in names)
    return list(_resolve(keys))


def _numeric_months(date_str: str, info: dateutil_parser.parserinfo) -> Optional[str]:
    """
    Replace month names with "M<number>" using one locale's vocabulary.

    The marker keeps the month in place, so "4 Mar 2024" only fits "%d M%m %Y".
    """
    replaced = False
    parts = []
    position = 0
    for word in _WORD.finditer(date_str):
        month = info.month(word.group().rstrip('.'))
        if month is None:
            return None
        parts.append(date_str[position:word.start()])
        parts.append(f'M{month}')
        position = word.end()
        replaced = True
    if not replaced:
        return None
    parts.append(date_str[position:])
    return ''.join(parts)


def _strptime(date_str: str, fmt: str) -> Optional[date]:
    try:
        return datetime.strptime(date_str, fmt).date()
    except ValueError:
        return None


def parse_date(date_str: str, locales: Optional[Sequence[str]] = None) -> Optional[date]:
    """
    Parse a date string into a calendar date.

    Args:
        date_str: Candidate such as "2024-03-04", "03/04/2024" or "Mar 4, 2024"
        locales: Locale variant names to try, defaults to settings.DATE_LOCALES

    Returns:
        The date, or None if nothing matches

    Examples:
        >>> parse_date("03/04/2024")
        datetime.date(2024, 3, 4)
        >>> parse_date("Mar 4, 2024,")
        datetime.date(2024, 3, 4)
    """
    if not date_str or not isinstance(date_str, str):
        return None

    cleaned = date_str.strip().rstrip(',').strip()
    if not cleaned:
        return None

    variants = resolve_locales(locales)

    for fmt in DATE_FORMATS:
        if '%b' not in fmt:
            parsed = _strptime(cleaned, fmt)
            if parsed:
                return parsed
            continue

        numeric_fmt = fmt.replace('%b', 'M%m')
        for _, info in variants:
            translated = _numeric_months(cleaned, info)
            if translated is None:
                continue
            parsed = _strptime(translated, numeric_fmt)
            if parsed:
                return parsed

    # Short-date reading per locale; needs at least day and year digits
    if len(_DIGIT_GROUP.findall(cleaned)) < 2:
        return None

    for name, info in variants:
        try:
            return dateutil_parser.parse(cleaned, parserinfo=info).date()
        except (ValueError, OverflowError):
            logger.debug("Short-date fallback failed", extra={'locale': name, 'candidate': cleaned})
            continue

    return None
