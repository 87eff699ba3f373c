"""
Utility functions for academics module, especially the assessment names
used as natural keys in the marks store.

Formative components are named ``FA1-Tool1`` .. ``FA4-Tool4`` and summative
components ``SA1-Paper1`` .. ``SA2-Paper2``.
"""
import re

FORMATIVE_PERIODS = ('FA1', 'FA2', 'FA3', 'FA4')
FORMATIVE_TOOLS = ('tool1', 'tool2', 'tool3', 'tool4')
SUMMATIVE_PERIODS = ('SA1', 'SA2')
SUMMATIVE_PAPER_COUNT = 2

_ASSESSMENT_NAME_RE = re.compile(r'^(?P<period>FA[1-4]|SA[12])-(?P<kind>Tool|Paper)(?P<number>\d)$')


def format_assessment_name(period, number):
    """
    Build the marks-store key for an assessment component.

    Args:
        period: 'FA1'..'FA4' or 'SA1'/'SA2'
        number: tool number (1-4) for formative periods, paper number (1-2)
            for summative periods

    Returns:
        str: e.g. 'FA2-Tool4' or 'SA1-Paper2'
    """
    if period in FORMATIVE_PERIODS:
        if not 1 <= number <= len(FORMATIVE_TOOLS):
            raise ValueError(f'Tool number must be between 1 and {len(FORMATIVE_TOOLS)}, got {number}')
        return f'{period}-Tool{number}'
    if period in SUMMATIVE_PERIODS:
        if not 1 <= number <= SUMMATIVE_PAPER_COUNT:
            raise ValueError(f'Paper number must be between 1 and {SUMMATIVE_PAPER_COUNT}, got {number}')
        return f'{period}-Paper{number}'
    raise ValueError(f'Unknown assessment period: {period!r}')


def parse_assessment_name(name):
    """
    Split a marks-store key into its parts.

    Returns:
        tuple: (period, kind, number), kind being 'tool' or 'paper'

    Raises:
        ValueError: if the name is not a known assessment component
    """
    match = _ASSESSMENT_NAME_RE.match(name or '')
    if not match:
        raise ValueError(f'Invalid assessment name: {name!r}')

    period = match.group('period')
    kind = match.group('kind').lower()
    number = int(match.group('number'))

    # Re-validate the number range for the period kind
    if period.startswith('FA') and kind != 'tool':
        raise ValueError(f'Formative assessments are recorded per tool: {name!r}')
    if period.startswith('SA') and kind != 'paper':
        raise ValueError(f'Summative assessments are recorded per paper: {name!r}')
    format_assessment_name(period, number)

    return period, kind, number
