import logging
import math
import uuid
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Avg, Max, Min
from django.utils import timezone

from .constants import (
    BATCH_CHOICES, BOARD_CHOICES, CATEGORY_CHOICES, CLASS_TYPE_CHOICES, CURRENCY_CHOICES,
    GRADE_NAME_CHOICES, LEVEL_CHOICES, MEDIUM_CHOICES, STANDARD_CHOICES, SUBJECT_CHOICES,
    current_academic_year,
)
from .exceptions import WorkflowError

logger = logging.getLogger(__name__)


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Please provide an email')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', 'admin')
        extra_fields.setdefault('onboarding_status', 'completed')
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    ROLE_CHOICES = [
        ('student', 'Student'),
        ('teacher', 'Teacher'),
        ('admin', 'Admin'),
        ('owner', 'Owner'),
    ]
    ONBOARDING_CHOICES = [
        ('pending', 'Pending'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
        ('rejected', 'Rejected'),
    ]

    username = None
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='student')
    phone = models.CharField(
        max_length=10, blank=True,
        validators=[RegexValidator(r'^[0-9]{10}$', 'Please provide a valid phone number')],
    )
    avatar = models.FileField(upload_to='avatars/', null=True, blank=True)
    bio = models.TextField(max_length=500, blank=True)
    street = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)
    qualification = models.CharField(max_length=200, blank=True)
    experience = models.PositiveIntegerField(default=0)

    # academic profile, students
    board = models.CharField(max_length=20, choices=BOARD_CHOICES, blank=True)
    standard = models.CharField(max_length=5, choices=GRADE_NAME_CHOICES, blank=True)
    medium = models.CharField(max_length=20, choices=MEDIUM_CHOICES, blank=True)
    school = models.CharField(max_length=200, blank=True)
    parent_name = models.CharField(max_length=150, blank=True)
    parent_phone = models.CharField(max_length=15, blank=True)
    parent_email = models.EmailField(blank=True)

    # academic profile, teachers
    can_teach_boards = models.JSONField(default=list, blank=True)
    can_teach_standards = models.JSONField(default=list, blank=True)
    can_teach_subjects = models.JSONField(default=list, blank=True)  # [{"subject", "is_primary", "specialization"}]

    onboarding_status = models.CharField(max_length=20, choices=ONBOARDING_CHOICES, default='pending')
    onboarding_completed_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_users')
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    login_attempts = models.PositiveIntegerField(default=0)
    lock_until = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    class Meta:
        ordering = ['-date_joined']

    def __str__(self):
        return f"{self.name or self.email}({self.role})"

    @property
    def is_locked(self):
        return bool(self.lock_until and self.lock_until > timezone.now())

    @property
    def is_onboarded(self):
        return self.role in ('admin', 'owner') or self.onboarding_status == 'completed'

    @property
    def is_admin_role(self):
        return self.role in ('admin', 'owner')

    def register_failed_login(self):
        """Count a failed login, locking the account once the limit is hit."""
        max_attempts = settings.LMS['MAX_LOGIN_ATTEMPTS']
        now = timezone.now()

        if self.lock_until and self.lock_until < now:
            # previous lock expired, start counting again
            self.login_attempts = 1
            self.lock_until = None
        else:
            self.login_attempts += 1
            if self.login_attempts >= max_attempts and not self.is_locked:
                self.lock_until = now + timedelta(hours=settings.LMS['LOCK_TIME_HOURS'])
                logger.warning('Account %s locked after %d failed logins', self.email, self.login_attempts)
        self.save(update_fields=['login_attempts', 'lock_until'])

    def reset_login_attempts(self):
        self.login_attempts = 0
        self.lock_until = None
        self.last_login = timezone.now()
        self.save(update_fields=['login_attempts', 'lock_until', 'last_login'])


class Grade(models.Model):
    name = models.CharField(max_length=5, choices=GRADE_NAME_CHOICES)
    board = models.CharField(max_length=20, choices=BOARD_CHOICES)
    academic_year = models.CharField(max_length=9, default=current_academic_year)
    medium = models.CharField(max_length=20, choices=MEDIUM_CHOICES, default='English')
    description = models.TextField(max_length=1000, blank=True)
    is_active = models.BooleanField(default=True)
    enrollment_price = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    discount_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    max_students = models.PositiveIntegerField(default=100)
    enrolled_students = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='enrolled_grades')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='created_grades')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        unique_together = [('name', 'board', 'academic_year')]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return f"{self.name} - {self.board} ({self.academic_year})"


class Subject(models.Model):
    name = models.CharField(max_length=50, choices=SUBJECT_CHOICES)
    code = models.CharField(max_length=30, unique=True)
    description = models.TextField(max_length=1000, blank=True)
    grade = models.ForeignKey(Grade, on_delete=models.CASCADE, related_name='subjects')
    teachers = models.ManyToManyField(settings.AUTH_USER_MODEL, through='SubjectTeacher', blank=True, related_name='assigned_subjects')
    schedule = models.JSONField(default=list, blank=True)  # [{"day_of_week", "start_time", "end_time"}]
    syllabus = models.JSONField(default=list, blank=True)  # [{"topic", "description", "order", "is_completed"}]
    total_classes = models.PositiveIntegerField(default=0)
    completed_classes = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='created_subjects')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        self.code = self.code.upper()
        super().save(*args, **kwargs)


class SubjectTeacher(models.Model):
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name='teacher_assignments')
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='subject_assignments')
    is_primary = models.BooleanField(default=False)
    specialization = models.CharField(max_length=100, blank=True)
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('subject', 'teacher')]


class Course(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending', 'Pending'),
        ('published', 'Published'),
        ('archived', 'Archived'),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField(max_length=2000)
    thumbnail = models.CharField(max_length=500, blank=True)
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='courses')
    board = models.CharField(max_length=20, choices=BOARD_CHOICES)
    standard = models.CharField(max_length=5, choices=STANDARD_CHOICES)
    subject = models.CharField(max_length=50, choices=SUBJECT_CHOICES)
    batch = models.CharField(max_length=10, choices=BATCH_CHOICES, default='A')
    academic_year = models.CharField(max_length=9, default=current_academic_year)
    medium = models.CharField(max_length=20, choices=MEDIUM_CHOICES, default='English')
    class_type = models.CharField(max_length=20, choices=CLASS_TYPE_CHOICES, default='Regular')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='Other')
    level = models.CharField(max_length=20, choices=LEVEL_CHOICES, default='Beginner')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    discount_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='INR')
    duration = models.PositiveIntegerField(help_text='Duration in hours')
    total_lectures = models.PositiveIntegerField(default=0)
    language = models.CharField(max_length=50, default='English')
    prerequisites = models.JSONField(default=list, blank=True)
    learning_objectives = models.JSONField(default=list, blank=True)
    syllabus_description = models.TextField(max_length=5000, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    published_at = models.DateTimeField(null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)
    certificate_available = models.BooleanField(default=True)
    max_students = models.PositiveIntegerField(null=True, blank=True)
    enrollment_deadline = models.DateTimeField(null=True, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    average_rating = models.FloatField(default=0, validators=[MinValueValidator(0), MaxValueValidator(5)])
    total_reviews = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['teacher', 'status'], name='course_teacher_status_idx'),
            models.Index(fields=['category', 'level', 'status'], name='course_cat_level_status_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def effective_price(self):
        return self.discount_price if self.discount_price else self.price

    @property
    def enrolled_students(self):
        return User.objects.filter(
            enrollments__course=self,
            enrollments__status__in=['active', 'completed', 'suspended'],
        ).distinct()

    def enrolled_count(self):
        return self.enrollments.exclude(status='dropped').count()

    def enrollment_block_reason(self):
        """Why a student can't enroll right now, or None when enrollment is open."""
        if self.status != 'published':
            return 'This class is not yet published. Please contact the teacher.'
        if not self.is_active:
            return 'This class is not currently active.'
        if self.max_students and self.enrolled_count() >= self.max_students:
            return 'This class is full. Maximum enrollment reached.'
        if self.enrollment_deadline and timezone.now() > self.enrollment_deadline:
            return 'Enrollment deadline has passed for this class.'
        return None

    def can_enroll(self):
        return self.enrollment_block_reason() is None

    def total_lessons(self):
        return Lesson.objects.filter(module__course=self).count()

    def recalculate_total_lectures(self):
        self.total_lectures = self.total_lessons()
        self.save(update_fields=['total_lectures', 'updated_at'])

    def recalculate_rating(self):
        stats = self.ratings.aggregate(avg=Avg('rating'))
        self.total_reviews = self.ratings.count()
        self.average_rating = round(stats['avg'], 1) if stats['avg'] is not None else 0
        self.save(update_fields=['average_rating', 'total_reviews', 'updated_at'])


class Module(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='modules')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return f"{self.course.title}: {self.title}"


class Lesson(models.Model):
    TYPE_CHOICES = [
        ('video', 'Video'),
        ('document', 'Document'),
        ('quiz', 'Quiz'),
        ('assignment', 'Assignment'),
    ]

    module = models.ForeignKey(Module, on_delete=models.CASCADE, related_name='lessons')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    content_url = models.CharField(max_length=500, blank=True)
    duration = models.PositiveIntegerField(null=True, blank=True)
    file_size = models.PositiveBigIntegerField(null=True, blank=True)
    order = models.PositiveIntegerField(default=0)
    is_preview = models.BooleanField(default=False)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return self.title


class CourseRating(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='ratings')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='course_ratings')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    review = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = [('course', 'student')]

    def __str__(self):
        return f"{self.student} rated {self.course}: {self.rating}"


class Enrollment(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('dropped', 'Dropped'),
        ('suspended', 'Suspended'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('partial', 'Partial'),
        ('refunded', 'Refunded'),
        ('waived', 'Waived'),
    ]
    FINAL_GRADE_CHOICES = [(g, g) for g in ('A+', 'A', 'B+', 'B', 'C+', 'C', 'D', 'F')]

    # lower bound of each band, checked top-down
    GRADE_BANDS = [(90, 'A+'), (80, 'A'), (70, 'B+'), (60, 'B'), (50, 'C+'), (40, 'C'), (30, 'D')]

    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='enrollments')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='enrollments')
    enrolled_at = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')

    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    payment_date = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=30, blank=True)
    transaction_id = models.CharField(max_length=100, blank=True)

    percentage_complete = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    current_lesson = models.ForeignKey(Lesson, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    last_accessed_at = models.DateTimeField(null=True, blank=True)

    final_grade = models.CharField(max_length=2, choices=FINAL_GRADE_CHOICES, null=True, blank=True)
    total_score = models.FloatField(default=0)
    grade_percentage = models.FloatField(null=True, blank=True)

    certificate_issued = models.BooleanField(default=False)
    certificate_issued_at = models.DateTimeField(null=True, blank=True)
    certificate_id = models.CharField(max_length=100, blank=True)
    certificate_url = models.CharField(max_length=300, blank=True)

    completion_date = models.DateTimeField(null=True, blank=True)
    access_duration = models.PositiveIntegerField(default=365, help_text='Access in days')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-enrolled_at']
        unique_together = [('student', 'course')]
        indexes = [
            models.Index(fields=['status', 'enrolled_at'], name='enroll_status_date_idx'),
            models.Index(fields=['payment_status'], name='enroll_payment_status_idx'),
            models.Index(fields=['course', 'status'], name='enroll_course_status_idx'),
        ]

    def __str__(self):
        return f"{self.student}'s enrollment for {self.course}"

    def complete_lesson(self, lesson, time_spent=0):
        completion, created = LessonCompletion.objects.get_or_create(
            enrollment=self, lesson=lesson, defaults={'time_spent': time_spent or 0},
        )
        if not created and time_spent:
            completion.time_spent += time_spent
            completion.save(update_fields=['time_spent'])

        self.current_lesson = lesson
        self.last_accessed_at = timezone.now()
        self.update_progress()
        return completion

    def update_progress(self):
        total = self.course.total_lessons()
        completed = self.completed_lessons.count()
        self.percentage_complete = min(100, round(completed / total * 100)) if total > 0 else 0
        self.save()
        return self.percentage_complete

    def record_assignment_grade(self, assignment, score, graded_by, feedback=''):
        AssignmentGrade.objects.update_or_create(
            enrollment=self, assignment=assignment,
            defaults={
                'score': score,
                'max_score': assignment.max_score,
                'graded_by': graded_by,
                'graded_at': timezone.now(),
                'feedback': feedback or '',
            },
        )
        return self.calculate_final_grade()

    def calculate_final_grade(self):
        total_score = 0
        total_max = 0
        for grade in self.assignment_grades.all():
            total_score += grade.score or 0
            total_max += grade.max_score or 0

        if total_max > 0:
            self.total_score = total_score
            self.grade_percentage = total_score * 100 / total_max
            self.final_grade = 'F'
            for lower_bound, letter in self.GRADE_BANDS:
                if self.grade_percentage >= lower_bound:
                    self.final_grade = letter
                    break
            self.save(update_fields=['total_score', 'grade_percentage', 'final_grade', 'updated_at'])
        return self.final_grade

    def attendance_percentage(self):
        records = list(self.attendance.all())
        if not records:
            return 0
        present = sum(1 for r in records if r.status in ('present', 'late'))
        return round(present / len(records) * 100)

    def is_eligible_for_certificate(self):
        return (
            self.percentage_complete == 100
            and self.status == 'completed'
            and self.grade_percentage is not None
            and self.grade_percentage >= 40
        )

    def issue_certificate(self):
        if not self.is_eligible_for_certificate():
            raise WorkflowError('Not eligible for certificate yet')
        if not self.certificate_issued:
            now = timezone.now()
            self.certificate_issued = True
            self.certificate_issued_at = now
            self.certificate_id = f"CERT-{int(now.timestamp())}-{self.pk}"
            self.certificate_url = f"/certificates/{self.pk}.pdf"
            self.save()
        return self


class LessonCompletion(models.Model):
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name='completed_lessons')
    lesson = models.ForeignKey(Lesson, on_delete=models.CASCADE, related_name='completions')
    completed_at = models.DateTimeField(default=timezone.now)
    time_spent = models.PositiveIntegerField(default=0, help_text='Seconds')

    class Meta:
        unique_together = [('enrollment', 'lesson')]


class AttendanceRecord(models.Model):
    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('late', 'Late'),
        ('excused', 'Excused'),
    ]
    SESSION_CHOICES = [
        ('lecture', 'Lecture'),
        ('lab', 'Lab'),
        ('tutorial', 'Tutorial'),
        ('exam', 'Exam'),
    ]

    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    session_type = models.CharField(max_length=10, choices=SESSION_CHOICES, default='lecture')
    duration = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-date']


class Assignment(models.Model):
    TYPE_CHOICES = [
        ('homework', 'Homework'),
        ('project', 'Project'),
        ('lab', 'Lab'),
        ('presentation', 'Presentation'),
        ('essay', 'Essay'),
    ]

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='assignments')
    module = models.ForeignKey(Module, on_delete=models.SET_NULL, null=True, blank=True, related_name='assignments')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='created_assignments')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='homework')
    title = models.CharField(max_length=200)
    description = models.TextField()
    instructions = models.TextField()
    attachment = models.FileField(upload_to='assignments/', null=True, blank=True)
    max_score = models.PositiveIntegerField(default=100)
    passing_score = models.PositiveIntegerField(default=40)
    due_date = models.DateTimeField()
    available_from = models.DateTimeField(default=timezone.now)
    allow_late_submission = models.BooleanField(default=True)
    late_penalty = models.PositiveSmallIntegerField(default=10, validators=[MaxValueValidator(100)], help_text='Percent of max score')
    max_attempts = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    is_published = models.BooleanField(default=False)

    total_submissions = models.PositiveIntegerField(default=0)
    average_score = models.FloatField(default=0)
    highest_score = models.FloatField(default=0)
    lowest_score = models.FloatField(default=0)
    on_time_submissions = models.PositiveIntegerField(default=0)
    late_submissions = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['due_date']
        indexes = [
            models.Index(fields=['course', 'due_date'], name='assignment_course_due_idx'),
            models.Index(fields=['created_by', 'is_published'], name='assignment_creator_pub_idx'),
        ]

    def __str__(self):
        return f"{self.title} - {self.course.title}"

    def submit(self, student, content='', file=None):
        now = timezone.now()
        is_late = now > self.due_date
        if is_late and not self.allow_late_submission:
            raise WorkflowError('Late submissions are not accepted for this assignment')

        submission = self.submissions.filter(student=student).first()
        if submission is not None:
            if submission.attempt >= self.max_attempts:
                raise WorkflowError('Maximum attempts reached')
            submission.attempt += 1
            submission.status = 'late' if is_late else 'resubmitted'
            # a resubmission needs grading again
            submission.score = None
            submission.graded_at = None
            submission.graded_by = None
        else:
            submission = Submission(assignment=self, student=student, status='late' if is_late else 'submitted')

        submission.submitted_at = now
        submission.content = content or ''
        if file is not None:
            submission.file = file
        submission.is_late = is_late
        submission.save()

        self.update_statistics()
        return submission

    def grade(self, student, score, graded_by, feedback=''):
        submission = self.submissions.filter(student=student).first()
        if submission is None:
            raise WorkflowError('Submission not found', status_code=404)
        if score < 0 or score > self.max_score:
            raise WorkflowError(f'Score must be between 0 and {self.max_score}')

        if submission.is_late and self.late_penalty > 0:
            score = max(0, score - (self.max_score * self.late_penalty / 100))

        submission.score = score
        submission.feedback = feedback or ''
        submission.graded_by = graded_by
        submission.graded_at = timezone.now()
        submission.status = 'graded'
        submission.save()

        self.update_statistics()
        return submission

    def update_statistics(self):
        submissions = self.submissions.all()
        self.total_submissions = submissions.count()
        self.on_time_submissions = submissions.filter(is_late=False).count()
        self.late_submissions = submissions.filter(is_late=True).count()

        scores = submissions.filter(score__isnull=False).aggregate(avg=Avg('score'), high=Max('score'), low=Min('score'))
        self.average_score = scores['avg'] or 0
        self.highest_score = scores['high'] or 0
        self.lowest_score = scores['low'] or 0
        self.save(update_fields=[
            'total_submissions', 'on_time_submissions', 'late_submissions',
            'average_score', 'highest_score', 'lowest_score', 'updated_at',
        ])


class Submission(models.Model):
    STATUS_CHOICES = [
        ('submitted', 'Submitted'),
        ('late', 'Late'),
        ('graded', 'Graded'),
        ('returned', 'Returned'),
        ('resubmitted', 'Resubmitted'),
    ]

    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name='submissions')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='submissions')
    attempt = models.PositiveSmallIntegerField(default=1)
    content = models.TextField(blank=True)
    file = models.FileField(upload_to='submissions/', null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='submitted')
    is_late = models.BooleanField(default=False)
    submitted_at = models.DateTimeField(default=timezone.now)
    score = models.FloatField(null=True, blank=True)
    feedback = models.TextField(blank=True)
    graded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='graded_submissions')
    graded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-submitted_at']
        unique_together = [('assignment', 'student')]

    def __str__(self):
        return f"{self.assignment}'s submission by {self.student}"


class AssignmentGrade(models.Model):
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name='assignment_grades')
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name='enrollment_grades')
    score = models.FloatField()
    max_score = models.FloatField()
    graded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+')
    graded_at = models.DateTimeField(default=timezone.now)
    feedback = models.TextField(blank=True)

    class Meta:
        unique_together = [('enrollment', 'assignment')]


class StudentGroup(models.Model):
    TYPE_CHOICES = [
        ('performance', 'Performance'),
        ('project', 'Project'),
        ('study', 'Study'),
        ('custom', 'Custom'),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='student_groups')
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='student_groups')
    students = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='group_memberships')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='custom')
    color = models.CharField(max_length=7, default='#3B82F6')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['teacher', 'course'], name='group_teacher_course_idx')]

    def __str__(self):
        return f"{self.name} - {self.course.title}"

    def add_students(self, students):
        self.students.add(*students)

    def remove_students(self, students):
        self.students.remove(*students)

    def performance(self):
        """Average percentage over the members' graded submissions in the group's class."""
        submissions = Submission.objects.filter(
            assignment__course=self.course,
            student__in=self.students.all(),
            score__isnull=False,
        ).select_related('assignment')
        percentages = [s.score * 100 / s.assignment.max_score for s in submissions if s.assignment.max_score]
        return {
            'assignments_count': self.course.assignments.filter(is_published=True).count(),
            'average_performance': round(sum(percentages) / len(percentages), 2) if percentages else 0,
        }


class LiveClass(models.Model):
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('live', 'Live'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    RECURRING_CHOICES = [
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
    ]
    JOIN_WINDOW_MINUTES = 15

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='live_classes')
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='live_classes')
    title = models.CharField(max_length=200)
    description = models.TextField()
    scheduled_at = models.DateTimeField()
    duration = models.PositiveIntegerField(default=60, validators=[MinValueValidator(15), MaxValueValidator(480)])
    meeting_url = models.URLField(max_length=500)
    meeting_id = models.CharField(max_length=100, unique=True)
    password = models.CharField(max_length=20, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled')
    max_attendees = models.PositiveIntegerField(default=100)
    is_recurring = models.BooleanField(default=False)
    recurring_pattern = models.CharField(max_length=10, choices=RECURRING_CHOICES, blank=True)
    recording_url = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['scheduled_at']
        indexes = [
            models.Index(fields=['course', 'scheduled_at'], name='liveclass_course_sched_idx'),
            models.Index(fields=['teacher', 'status'], name='liveclass_teacher_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} @ {self.scheduled_at:%Y-%m-%d %H:%M}"

    @property
    def ends_at(self):
        return self.scheduled_at + timedelta(minutes=self.duration)

    @property
    def is_upcoming(self):
        return self.status == 'scheduled' and self.scheduled_at > timezone.now()

    @property
    def is_ongoing(self):
        now = timezone.now()
        return self.status == 'live' and self.scheduled_at <= now <= self.ends_at

    def start(self):
        if self.status != 'scheduled':
            raise WorkflowError('Class can only be started from scheduled status')
        self.status = 'live'
        self.save(update_fields=['status', 'updated_at'])

    def end(self):
        if self.status != 'live':
            raise WorkflowError('Class can only be ended from live status')
        now = timezone.now()
        self.status = 'completed'
        self.save(update_fields=['status', 'updated_at'])

        for attendee in self.attendees.filter(joined_at__isnull=False):
            attendee.attended = True
            if attendee.left_at is None:
                attendee.left_at = now
            attendee.save(update_fields=['attended', 'left_at'])

    def join_block_reason(self):
        if self.status == 'completed':
            return 'This class has already ended'
        if self.status == 'cancelled':
            return 'This class has been cancelled'
        minutes_to_start = (self.scheduled_at - timezone.now()).total_seconds() / 60
        if self.status != 'live' and minutes_to_start > self.JOIN_WINDOW_MINUTES:
            return 'Class has not started yet. You can join 15 minutes before the scheduled time.'
        return None

    def add_attendee(self, student):
        attendee, created = self.attendees.get_or_create(student=student, defaults={'joined_at': timezone.now()})
        if not created and attendee.joined_at is None:
            attendee.joined_at = timezone.now()
            attendee.save(update_fields=['joined_at'])
        return attendee

    def remove_attendee(self, student):
        attendee = self.attendees.filter(student=student, joined_at__isnull=False).first()
        if attendee is not None:
            attendee.left_at = timezone.now()
            attendee.save(update_fields=['left_at'])
        return attendee


class LiveClassAttendee(models.Model):
    live_class = models.ForeignKey(LiveClass, on_delete=models.CASCADE, related_name='attendees')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='live_class_attendance')
    joined_at = models.DateTimeField(null=True, blank=True)
    left_at = models.DateTimeField(null=True, blank=True)
    attended = models.BooleanField(default=False)

    class Meta:
        unique_together = [('live_class', 'student')]

    @property
    def minutes_attended(self):
        if self.joined_at and self.left_at:
            return round((self.left_at - self.joined_at).total_seconds() / 60)
        return None


class StudyMaterial(models.Model):
    TYPE_CHOICES = [
        ('pdf', 'PDF'),
        ('video', 'Video'),
        ('document', 'Document'),
        ('presentation', 'Presentation'),
        ('link', 'Link'),
    ]
    CATEGORY_CHOICES = [
        ('lectures', 'Lectures'),
        ('assignments', 'Assignments'),
        ('notes', 'Study Notes'),
        ('references', 'Reference Materials'),
        ('exams', 'Exams & Tests'),
        ('projects', 'Projects'),
        ('labs', 'Lab Materials'),
        ('resources', 'Additional Resources'),
        ('general', 'General'),
    ]
    VISIBILITY_CHOICES = [
        ('public', 'Public'),
        ('enrolled', 'Enrolled'),
        ('private', 'Private'),
    ]
    HISTORY_LIMIT = 100

    title = models.CharField(max_length=200)
    description = models.TextField(max_length=1000)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='document')
    file = models.FileField(upload_to='study-materials/%Y/%m/', null=True, blank=True)
    file_url = models.CharField(max_length=500, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    file_size = models.PositiveBigIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='materials')
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='uploaded_materials')
    module = models.CharField(max_length=200, blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='general')
    tags = models.JSONField(default=list, blank=True)
    visibility = models.CharField(max_length=10, choices=VISIBILITY_CHOICES, default='enrolled')
    downloads = models.PositiveIntegerField(default=0)
    views = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['course', 'uploaded_by'], name='material_course_uploader_idx'),
            models.Index(fields=['type'], name='material_type_idx'),
            models.Index(fields=['category'], name='material_category_idx'),
            models.Index(fields=['visibility'], name='material_visibility_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def formatted_file_size(self):
        if not self.file_size:
            return 'N/A'
        sizes = ['Bytes', 'KB', 'MB', 'GB']
        i = min(int(math.floor(math.log(self.file_size, 1024))), len(sizes) - 1)
        return f"{round(self.file_size / math.pow(1024, i), 2)} {sizes[i]}"

    def increment_views(self, user=None):
        self.views += 1
        self.save(update_fields=['views'])
        if user is None:
            return
        since = timezone.now() - timedelta(hours=24)
        if not self.view_history.filter(user=user, viewed_at__gte=since).exists():
            MaterialView.objects.create(material=self, user=user)
            self._trim_history(self.view_history)

    def increment_downloads(self, user=None):
        self.downloads += 1
        self.save(update_fields=['downloads'])
        if user is not None:
            MaterialDownload.objects.create(material=self, user=user)
            self._trim_history(self.download_history)

    def _trim_history(self, history):
        stale = history.order_by('-pk').values_list('pk', flat=True)[self.HISTORY_LIMIT:]
        stale_ids = list(stale)
        if stale_ids:
            history.model.objects.filter(pk__in=stale_ids).delete()


class MaterialView(models.Model):
    material = models.ForeignKey(StudyMaterial, on_delete=models.CASCADE, related_name='view_history')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='+')
    viewed_at = models.DateTimeField(default=timezone.now)


class MaterialDownload(models.Model):
    material = models.ForeignKey(StudyMaterial, on_delete=models.CASCADE, related_name='download_history')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='+')
    downloaded_at = models.DateTimeField(default=timezone.now)


def generate_order_id():
    return f"order_{uuid.uuid4().hex[:14]}"


class Payment(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]
    METHOD_CHOICES = [
        ('razorpay', 'Razorpay'),
        ('stripe', 'Stripe'),
        ('bank_transfer', 'Bank Transfer'),
        ('cash', 'Cash'),
    ]

    order_id = models.CharField(max_length=64, unique=True, default=generate_order_id)
    payment_id = models.CharField(max_length=64, blank=True)
    signature = models.CharField(max_length=128, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='INR')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='payments')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='payments')
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='razorpay')
    coupon_code = models.CharField(max_length=30, blank=True)
    discount_percent = models.PositiveSmallIntegerField(default=0)
    paid_at = models.DateTimeField(null=True, blank=True)
    refund_id = models.CharField(max_length=64, blank=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    refund_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['student', 'status'], name='payment_student_status_idx'),
            models.Index(fields=['course', 'status'], name='payment_course_status_idx'),
        ]

    def __str__(self):
        return f"{self.order_id} ({self.status})"


class Notification(models.Model):
    TYPE_CHOICES = [
        ('assignment_created', 'Assignment Created'),
        ('assignment_submitted', 'Assignment Submitted'),
        ('assignment_graded', 'Assignment Graded'),
        ('class_enrolled', 'Class Enrolled'),
        ('class_starting', 'Class Starting'),
        ('material_uploaded', 'Material Uploaded'),
        ('payment_received', 'Payment Received'),
        ('general', 'General'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='sent_notifications')
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField(max_length=1000)
    course = models.ForeignKey(Course, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    assignment = models.ForeignKey(Assignment, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    material = models.ForeignKey(StudyMaterial, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    link = models.CharField(max_length=300, blank=True)
    is_read = models.BooleanField(default=False)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
            models.Index(fields=['type', 'created_at'], name='notif_type_created_idx'),
        ]

    def __str__(self):
        return f"{self.recipient}: {self.title[:50]}"
