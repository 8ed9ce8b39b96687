from django.utils import timezone

BOARD_CHOICES = [
    ('CBSE', 'CBSE'),
    ('ICSE', 'ICSE'),
    ('State Board', 'State Board'),
    ('IB', 'IB'),
    ('Cambridge', 'Cambridge'),
    ('NIOS', 'NIOS'),
    ('Other', 'Other'),
]

# academic grades used by Grade and the onboarding profile
GRADE_NAME_CHOICES = [
    ('1st', '1st'), ('2nd', '2nd'), ('3rd', '3rd'), ('4th', '4th'),
    ('5th', '5th'), ('6th', '6th'), ('7th', '7th'), ('8th', '8th'),
    ('9th', '9th'), ('10th', '10th'), ('11th', '11th'), ('12th', '12th'),
]

# course standards additionally cover higher education
STANDARD_CHOICES = [(str(n), f'Class {n}') for n in range(1, 13)] + [
    ('UG', 'Undergraduate'),
    ('PG', 'Postgraduate'),
]

MEDIUM_CHOICES = [
    ('English', 'English'),
    ('Hindi', 'Hindi'),
    ('Regional', 'Regional Language'),
    ('Bilingual', 'Bilingual (English + Hindi)'),
]

SUBJECT_CHOICES = [(s, s) for s in (
    'Mathematics', 'Science', 'English', 'Hindi', 'Social Studies', 'Environmental Studies',
    'Physics', 'Chemistry', 'Biology', 'Computer Science', 'History', 'Geography', 'Civics',
    'Economics', 'Accountancy', 'Business Studies', 'Sanskrit', 'French', 'German',
    'General Knowledge', 'Reasoning', 'Physical Education', 'Arts', 'Music', 'Other',
)]

BATCH_CHOICES = [(b, b) for b in ('A', 'B', 'C', 'D', 'E', 'Morning', 'Evening', 'Weekend')]

CLASS_TYPE_CHOICES = [(t, t) for t in ('Regular', 'Crash Course', 'Revision', 'Test Series', 'Doubt Clearing')]

CATEGORY_CHOICES = [(c, c) for c in ('Programming', 'Mathematics', 'Science', 'Language', 'Business', 'Arts', 'Other')]

LEVEL_CHOICES = [
    ('Beginner', 'Beginner'),
    ('Intermediate', 'Intermediate'),
    ('Advanced', 'Advanced'),
]

CURRENCY_CHOICES = [('INR', 'INR'), ('USD', 'USD'), ('EUR', 'EUR')]

MATERIAL_CATEGORIES = {
    'lectures': 'Lectures',
    'assignments': 'Assignments',
    'notes': 'Study Notes',
    'references': 'Reference Materials',
    'exams': 'Exams & Tests',
    'projects': 'Projects',
    'labs': 'Lab Materials',
    'resources': 'Additional Resources',
    'general': 'General',
}

MB = 1024 * 1024

FILE_TYPES = {
    'pdf': {
        'mime_types': ['application/pdf'],
        'max_size': 50 * MB,
    },
    'video': {
        'mime_types': ['video/mp4', 'video/webm', 'video/ogg', 'video/quicktime'],
        'max_size': 500 * MB,
    },
    'document': {
        'mime_types': [
            'application/msword',
            'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
            'text/plain',
            'application/rtf',
        ],
        'max_size': 25 * MB,
    },
    'presentation': {
        'mime_types': [
            'application/vnd.ms-powerpoint',
            'application/vnd.openxmlformats-officedocument.presentationml.presentation',
        ],
        'max_size': 100 * MB,
    },
}

COUPONS = {
    'LEARN10': 10,
    'STUDENT20': 20,
}


def current_academic_year(today=None):
    """Academic years run April to March, e.g. ``2026-2027``."""
    today = today or timezone.localdate()
    if today.month >= 4:
        return f'{today.year}-{today.year + 1}'
    return f'{today.year - 1}-{today.year}'


def default_subjects_for_grade(standard):
    digits = ''.join(ch for ch in str(standard) if ch.isdigit())
    number = int(digits) if digits else 0

    if number <= 5:
        return ['Mathematics', 'Science', 'English', 'Hindi', 'Environmental Studies']
    elif number <= 8:
        return ['Mathematics', 'Science', 'English', 'Hindi', 'Social Studies', 'Computer Science']
    elif number <= 10:
        return ['Mathematics', 'Physics', 'Chemistry', 'Biology', 'English', 'Hindi', 'Social Studies']
    return ['Mathematics', 'Physics', 'Chemistry', 'Biology', 'English', 'Computer Science', 'Economics']


def file_type_for_mime(mime_type):
    for name, config in FILE_TYPES.items():
        if mime_type in config['mime_types']:
            return name
    return None
