"""
French spelling of receipt amounts.

Amounts are rounded to the nearest euro before spelling; cents are never
written out. Values of one million and above are returned as plain digits.

Compound tens are joined with a hyphen only, so 21 reads "vingt-un" rather
than "vingt-et-un". Receipts already issued use this spelling.
"""

UNITS = ['', 'un', 'deux', 'trois', 'quatre', 'cinq', 'six', 'sept', 'huit', 'neuf']
TENS = ['', '', 'vingt', 'trente', 'quarante', 'cinquante', 'soixante',
        'soixante-dix', 'quatre-vingt', 'quatre-vingt-dix']
TEENS = ['dix', 'onze', 'douze', 'treize', 'quatorze', 'quinze', 'seize',
         'dix-sept', 'dix-huit', 'dix-neuf']

MAX_SPELLED = 999999


def _round_half_up(amount) -> int:
    # round() would send 0.5 to 0 and 2.5 to 2
    return int(float(amount) + 0.5) if amount >= 0 else -int(-float(amount) + 0.5)


def wordify(amount) -> str:
    """
    Spell a monetary amount in French words.

    Args:
        amount: int, float or Decimal; rounded to the nearest integer first

    Returns:
        French cardinal words, or the digits for values above 999999

    Examples:
        >>> wordify(550)
        'cinq cent cinquante'
        >>> wordify(71)
        'soixante-onze'
    """
    number = _round_half_up(amount)
    if number < 0:
        return str(number)
    return _spell(number)


def _spell(number: int) -> str:
    if number == 0:
        return 'zéro'
    if number < 10:
        return UNITS[number]
    if number < 20:
        return TEENS[number - 10]
    if number < 100:
        ten, one = divmod(number, 10)
        if ten == 7 and one > 0:
            return 'soixante-' + TEENS[one]
        if ten == 9 and one > 0:
            return 'quatre-vingt-' + TEENS[one]
        return TENS[ten] + ('-' + UNITS[one] if one else '')
    if number < 1000:
        hundred, remainder = divmod(number, 100)
        result = 'cent' if hundred == 1 else UNITS[hundred] + ' cent'
        if hundred > 1 and remainder == 0:
            result += 's'
        if remainder:
            result += ' ' + _spell(remainder)
        return result
    if number <= MAX_SPELLED:
        thousand, remainder = divmod(number, 1000)
        result = 'mille' if thousand == 1 else _spell(thousand) + ' mille'
        if remainder:
            result += ' ' + _spell(remainder)
        return result
    return str(number)
