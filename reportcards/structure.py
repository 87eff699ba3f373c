"""
Fixed layout of the CBSE State report card: assessment periods, tool maxima,
subject papers, co-curricular subjects and attendance months.
"""
from academics.utils import FORMATIVE_PERIODS, FORMATIVE_TOOLS, SUMMATIVE_PERIODS

TOOL_MAX_MARKS = {
    'tool1': 10,
    'tool2': 10,
    'tool3': 10,
    'tool4': 20,
}
PERIOD_MAX_MARKS = sum(TOOL_MAX_MARKS.values())
FORMATIVE_TOTAL_MAX_MARKS = PERIOD_MAX_MARKS * len(FORMATIVE_PERIODS)

# Science is reported as one subject with two differently named papers,
# taught (and assigned) separately.
SCIENCE = 'Science'
SCIENCE_PAPERS = ('Physics', 'Biology')

# Papers per subject on the summative side. Subjects not listed have a
# single paper named "I".
SUBJECT_PAPERS = {
    'Telugu': ('I', 'II'),
    'Hindi': ('I',),
    'English': ('I', 'II'),
    'Maths': ('I', 'II'),
    SCIENCE: SCIENCE_PAPERS,
    'Social': ('I', 'II'),
}
DEFAULT_PAPERS = ('I',)

SECOND_LANGUAGES = ('Hindi', 'Telugu')

CO_CURRICULAR_SUBJECTS = ('Value Edn.', 'Work Edn.', 'Phy. Edn.', 'Art. Edn.')
CO_CURRICULAR_ASSESSMENTS = ('sa1', 'sa2', 'sa3')

ATTENDANCE_MONTHS = (
    'June', 'July', 'August', 'September', 'October', 'November',
    'December', 'January', 'February', 'March', 'April',
)


def papers_for_subject(subject_name):
    """Return the paper names reported for a subject."""
    return SUBJECT_PAPERS.get(subject_name, DEFAULT_PAPERS)


def report_subject(subject_name):
    """Report card subject a class subject is reported under."""
    return SCIENCE if subject_name in SCIENCE_PAPERS else subject_name


def report_subjects(class_subject_names):
    """
    Map a class's subject list onto report card subjects.

    Physics and Biology collapse into a single Science subject, placed where
    the first of them appears. Order is otherwise preserved and duplicates
    are dropped.
    """
    subjects = []
    for name in map(report_subject, class_subject_names):
        if name not in subjects:
            subjects.append(name)
    return subjects


def paper_edit_subject(subject_name, paper):
    """
    Subject whose teacher owns the marks of one summative paper.

    Science papers belong to the Physics/Biology teachers; every other paper
    belongs to the subject itself.
    """
    if subject_name == SCIENCE and paper in SCIENCE_PAPERS:
        return paper
    return subject_name
