def format_percent(value):
    """``12.5`` -> ``"12.5%"``, ``10.0`` -> ``"10%"``."""
    text = f"{float(value or 0):.2f}".rstrip('0').rstrip('.')
    if text in ('-0', ''):
        text = '0'
    return f"{text}%"


def percent_change(current, previous):
    if not previous:
        return 100.0 if current else 0.0
    return (current - previous) / previous * 100


def round2(value):
    return round(float(value or 0), 2)


def parse_int(value, default, minimum=None, maximum=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = default
    if minimum is not None:
        number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number


def parse_bool(value):
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')
