"""
Custom template filters for the CV templates.
"""
from django import template

register = template.Library()


@register.filter(name='date_range')
def date_range(entry):
    """
    Format the period of a CV entry.
    Example: {'startDate': '2020-01', 'current': True} -> 2020-01 – Present
    """
    if not isinstance(entry, dict):
        return ''
    start = entry.get('startDate') or ''
    end = entry.get('endDate') or ('Present' if entry.get('current') else '')
    if start and end:
        return f"{start} – {end}"
    return start or end


@register.filter(name='comma_join')
def comma_join(value):
    if not isinstance(value, (list, tuple)):
        return value or ''
    return ', '.join(str(item) for item in value if item not in (None, ''))


@register.filter(name='language_label')
def language_label(entry):
    """English + Native -> English (Native)"""
    if not isinstance(entry, dict):
        return entry or ''
    language = entry.get('language') or entry.get('name') or ''
    proficiency = entry.get('proficiency')
    return f"{language} ({proficiency})" if proficiency else language
