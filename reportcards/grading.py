"""
Grade scale tables for the CBSE State report card.

Each scale is a tuple of ``(minimum, grade)`` bands in descending order. A
score gets the grade of the first band whose minimum it meets or exceeds.
The cut points are the published board values and are not configurable.
"""
from decimal import Decimal

# Formative period, out of 50 marks
FA_PERIOD_SCALE = (
    (46, 'A1'), (41, 'A2'), (36, 'B1'), (31, 'B2'),
    (26, 'C1'), (21, 'C2'), (18, 'D1'), (0, 'D2'),
)
FA_PERIOD_SECOND_LANGUAGE_SCALE = (
    (45, 'A1'), (40, 'A2'), (34, 'B1'), (29, 'B2'),
    (23, 'C1'), (18, 'C2'), (10, 'D1'), (0, 'D2'),
)

# Formative overall subject total, out of 200 marks
OVERALL_SUBJECT_SCALE = (
    (180, 'A+'), (160, 'A1'), (140, 'A2'), (120, 'B1'), (100, 'B2'),
    (80, 'C1'), (60, 'C2'), (40, 'D1'), (0, 'D2'),
)

# Summative paper, percentage of the paper's maximum
SUMMATIVE_SCALE = (
    (91, 'A1'), (81, 'A2'), (71, 'B1'), (61, 'B2'),
    (51, 'C1'), (41, 'C2'), (35, 'D1'), (0, 'D2'),
)
# Second-language cut points hold for papers out of both 80 and 100 marks
SUMMATIVE_SECOND_LANGUAGE_SCALE = (
    (90, 'A1'), (Decimal('78.75'), 'A2'), (Decimal('67.5'), 'B1'), (57, 'B2'),
    (46, 'C1'), (35, 'C2'), (20, 'D1'), (0, 'D2'),
)

# Final subject-paper total, out of 100 marks
FINAL_SCALE = (
    (91, 'A1'), (81, 'A2'), (71, 'B1'), (61, 'B2'),
    (51, 'C1'), (41, 'C2'), (35, 'D1'), (0, 'D2'),
)
FINAL_SECOND_LANGUAGE_SCALE = (
    (90, 'A1'), (79, 'A2'), (68, 'B1'), (57, 'B2'),
    (46, 'C1'), (35, 'C2'), (20, 'D1'), (0, 'D2'),
)

# Co-curricular, percentage across the three sub-assessments
CO_CURRICULAR_SCALE = (
    (85, 'A+'), (71, 'A'), (56, 'B'), (41, 'C'), (0, 'D'),
)

FA_PERIOD = 'fa_period'
OVERALL_SUBJECT = 'overall_subject'
SUMMATIVE = 'summative'
FINAL = 'final'
CO_CURRICULAR = 'co_curricular'

_SCALES = {
    FA_PERIOD: (FA_PERIOD_SCALE, FA_PERIOD_SECOND_LANGUAGE_SCALE),
    OVERALL_SUBJECT: (OVERALL_SUBJECT_SCALE, OVERALL_SUBJECT_SCALE),
    SUMMATIVE: (SUMMATIVE_SCALE, SUMMATIVE_SECOND_LANGUAGE_SCALE),
    FINAL: (FINAL_SCALE, FINAL_SECOND_LANGUAGE_SCALE),
    CO_CURRICULAR: (CO_CURRICULAR_SCALE, CO_CURRICULAR_SCALE),
}


def get_scale(kind, second_language=False):
    """
    Return the band table for an assessment kind.

    Args:
        kind: one of FA_PERIOD, OVERALL_SUBJECT, SUMMATIVE, FINAL, CO_CURRICULAR
        second_language: select the second-language variant where one exists

    Raises:
        KeyError: for an unknown kind
    """
    standard, second = _SCALES[kind]
    return second if second_language else standard


def lookup_grade(score, scale):
    """
    Look up the grade for a score in a band table.

    Returns None when the score is None. Scores below the lowest band
    minimum fall into the lowest band.
    """
    if score is None:
        return None
    score = Decimal(str(score))
    for minimum, grade in scale:
        if score >= minimum:
            return grade
    return scale[-1][1]


def grade_for(kind, score, second_language=False):
    """Look up a score on the scale for ``kind``."""
    return lookup_grade(score, get_scale(kind, second_language))


def scale_ranges(scale, maximum):
    """
    Expand a band table into printable ranges.

    Returns a list of dicts ``{'grade', 'min', 'max'}``, the top band running
    to ``maximum`` and every other band up to one below the next band's
    minimum, as printed in the report card legend.
    """
    ranges = []
    upper = maximum
    for minimum, grade in scale:
        ranges.append({'grade': grade, 'min': minimum, 'max': upper})
        upper = minimum - 1
    return ranges
